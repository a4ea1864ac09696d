"""
Gudang Movement Models
Stock movement ledger, storage cost audit trail and batch relocations
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, Date, DateTime, Text, ForeignKey
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gudang.core.database import Base


class MovementStatus:
    AKTIF = "Aktif"
    DIPINDAHKAN = "Dipindahkan"
    DIAMBIL = "Diambil"

    ACCRUING = (AKTIF, DIPINDAHKAN)
    ALL = (AKTIF, DIPINDAHKAN, DIAMBIL)


class MovementType:
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"

    ALL = (IN, OUT, TRANSFER, INBOUND, OUTBOUND)


class StockMovement(Base):
    """
    Ledger row. Line rows (lokasi/status set) accrue storage cost;
    hari_simpan and total_biaya are cached outputs of the cost engine.
    """
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("item_batches.id", ondelete="SET NULL"))
    lot_id = Column(Integer, ForeignKey("lots.id", ondelete="SET NULL"))

    lokasi = Column(String(30), index=True, doc="Storage line, e.g. 'Lini 1'")
    lokasi_asal = Column(String(30), doc="Line the goods came from")
    movement_type = Column(String(20), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    tanggal_masuk = Column(Date, nullable=False, doc="Intake date, start of accrual")
    tanggal_pindah = Column(Date, doc="Date moved to the next line")
    tanggal_keluar = Column(Date, doc="Date picked up by supplier")
    status = Column(String(20), index=True)

    berat_kg = Column(Numeric(12, 3))
    volume_m3 = Column(Numeric(12, 4))

    # Derived, overwritten on every cost calculation
    hari_simpan = Column(Integer, nullable=False, default=0)
    total_biaya = Column(Numeric(18, 2), nullable=False, default=0)

    reference_number = Column(String(50))
    notes = Column(Text)
    ceisa_status = Column(String(20), doc="pending, sent or failed")

    created_at = Column(DateTime, server_default=func.current_timestamp())
    updated_at = Column(DateTime, server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    item = relationship("Item")
    batch = relationship("ItemBatch")
    lot = relationship("Lot")
    storage_costs = relationship("StorageCost", back_populates="stock_movement", order_by="StorageCost.id")


class StorageCost(Base):
    """Append-only audit row written by every cost calculation"""
    __tablename__ = "storage_costs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    stock_movement_id = Column(Integer, ForeignKey("stock_movements.id", ondelete="CASCADE"), nullable=False, index=True)
    tanggal_hitung = Column(Date, nullable=False)
    lokasi = Column(String(30))
    hari_simpan = Column(Integer, nullable=False)
    berat_kg = Column(Numeric(12, 3), nullable=False)
    volume_m3 = Column(Numeric(12, 4), nullable=False)
    tarif_per_kg = Column(Numeric(12, 2), nullable=False)
    biaya_berat = Column(Numeric(18, 2), nullable=False)
    biaya_volume = Column(Numeric(18, 2), nullable=False)
    total_biaya = Column(Numeric(18, 2), nullable=False)
    periode_akhir = Column(DateTime, nullable=False)

    stock_movement = relationship("StockMovement", back_populates="storage_costs")


class BatchRelocation(Base):
    """Append-only log of intra-warehouse batch moves"""
    __tablename__ = "batch_relocations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_id = Column(Integer, ForeignKey("item_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    new_batch_id = Column(Integer, ForeignKey("item_batches.id", ondelete="SET NULL"), doc="Split batch created at the destination")
    from_lot_id = Column(Integer, ForeignKey("lots.id", ondelete="SET NULL"))
    to_lot_id = Column(Integer, ForeignKey("lots.id", ondelete="SET NULL"), nullable=False)
    quantity = Column(Integer, nullable=False)
    reason = Column(Text)
    relocated_at = Column(DateTime, nullable=False)
    relocated_by = Column(String(50), nullable=False)

    batch = relationship("ItemBatch", foreign_keys=[batch_id])
    from_lot = relationship("Lot", foreign_keys=[from_lot_id])
    to_lot = relationship("Lot", foreign_keys=[to_lot_id])
