"""Location hierarchy schemas: warehouse, zone, rack and lot"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import ORMModel


class WarehouseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    total_capacity_label: Optional[str] = Field(None, max_length=50)


class Warehouse(ORMModel):
    id: int
    name: str
    location: Optional[str] = None
    total_capacity_label: Optional[str] = None
    created_at: Optional[datetime] = None


class ZoneCreate(BaseModel):
    warehouse_id: int
    name: str = Field(..., min_length=1, max_length=100)


class Zone(ORMModel):
    id: int
    warehouse_id: int
    name: str


class RackCreate(BaseModel):
    zone_id: int
    code: str = Field(..., min_length=1, max_length=30)


class Rack(ORMModel):
    id: int
    zone_id: int
    code: str


class LotCreate(BaseModel):
    rack_id: int
    code: str = Field(..., min_length=1, max_length=30)
    capacity: int = Field(..., ge=0)


class Lot(ORMModel):
    id: int
    rack_id: int
    code: str
    capacity: int
    current_load: int
    available_capacity: int


class LoadMismatch(BaseModel):
    lot_id: int
    lot_code: str
    current_load: int
    batch_total: int
    difference: int
