"""Storage line schemas: intake, movements, cost results and daily job"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .common import ORMModel


class IntakeRequest(BaseModel):
    """Barang masuk. berat_kg falls back to the item's actual weight."""
    item_id: int
    berat_kg: Optional[Decimal] = Field(None, ge=0)
    lokasi: Optional[str] = Field(None, max_length=30)
    tanggal_masuk: Optional[date] = None
    reference_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class MovementIdRequest(BaseModel):
    stock_movement_id: int


class StockMovement(ORMModel):
    id: int
    item_id: int
    batch_id: Optional[int] = None
    lot_id: Optional[int] = None
    lokasi: Optional[str] = None
    lokasi_asal: Optional[str] = None
    movement_type: str
    quantity: int
    tanggal_masuk: date
    tanggal_pindah: Optional[date] = None
    tanggal_keluar: Optional[date] = None
    status: Optional[str] = None
    berat_kg: Optional[Decimal] = None
    volume_m3: Optional[Decimal] = None
    hari_simpan: int
    total_biaya: Decimal
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    ceisa_status: Optional[str] = None


class CostResult(BaseModel):
    stock_movement_id: int
    hari_simpan: int
    total_biaya: Decimal
    lokasi: Optional[str] = None


class CostPreview(BaseModel):
    lokasi: Optional[str] = None
    hari_simpan: int
    berat_kg: Decimal
    volume_m3: Decimal
    tarif_per_kg: Decimal
    biaya_berat: Decimal
    biaya_volume: Decimal
    total_biaya: Decimal


class StorageCost(ORMModel):
    id: int
    stock_movement_id: int
    tanggal_hitung: date
    lokasi: Optional[str] = None
    hari_simpan: int
    berat_kg: Decimal
    volume_m3: Decimal
    tarif_per_kg: Decimal
    biaya_berat: Decimal
    biaya_volume: Decimal
    total_biaya: Decimal
    periode_akhir: datetime


class TransferResult(BaseModel):
    stock_movement_id: int
    lokasi: str
    status: str
    tanggal_pindah: date
    hari_simpan: int
    total_biaya: Decimal


class PickupResult(BaseModel):
    stock_movement_id: int
    status: str
    tanggal_keluar: date
    total_biaya: Decimal


class DailyRunResult(BaseModel):
    tanggal: date
    total_processed: int
    success_count: int
    error_count: int
    total_biaya_hari_ini: Decimal
    alert_sent: bool
    errors: List[Dict[str, Any]] = []


class DailySummary(ORMModel):
    tanggal: date
    total_aktif: int
    total_dipindah: int
    total_diambil: int
    total_biaya: Decimal
    updated_at: Optional[datetime] = None
