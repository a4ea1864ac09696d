"""
Gudang Item Models
Item master data and batches held at lots
"""
from sqlalchemy import (
    Column, String, Integer, Numeric, Date, DateTime, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gudang.core.database import Base


class BatchStatus:
    ACTIVE = "active"
    DEPLETED = "depleted"
    EXPIRED = "expired"
    QUARANTINE = "quarantine"

    ALL = (ACTIVE, DEPLETED, EXPIRED, QUARANTINE)


class Item(Base):
    """Item master - dimensional defaults for movements"""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False)
    unit = Column(String(20), default="pcs")

    # Dimensions
    length_cm = Column(Numeric(10, 2))
    width_cm = Column(Numeric(10, 2))
    height_cm = Column(Numeric(10, 2))
    actual_weight_kg = Column(Numeric(12, 3), doc="Default weight when a movement omits berat_kg")
    volume_m3 = Column(Numeric(12, 4), doc="Default volume when a movement omits volume_m3")

    created_at = Column(DateTime, server_default=func.current_timestamp())

    batches = relationship("ItemBatch", back_populates="item")


class ItemBatch(Base):
    """Batch - depletable quantity of one item at one lot"""
    __tablename__ = "item_batches"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_code = Column(String(50), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True)
    lot_id = Column(Integer, ForeignKey("lots.id", ondelete="SET NULL"), index=True)
    quantity = Column(Integer, nullable=False, default=0)
    manufacture_date = Column(Date)
    expiry_date = Column(Date, index=True)
    status = Column(String(20), nullable=False, default=BatchStatus.ACTIVE)

    created_at = Column(DateTime, server_default=func.current_timestamp())
    updated_at = Column(DateTime, server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    item = relationship("Item", back_populates="batches")
    lot = relationship("Lot", back_populates="batches")
