"""
Gudang Location Models
Warehouse → zone → rack → lot hierarchy with per-lot occupancy
"""
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gudang.core.database import Base


class Warehouse(Base):
    """Warehouse master data"""
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, doc="Warehouse name")
    location = Column(String(200), doc="Address or site description")
    total_capacity_label = Column(String(50), doc="Free-text capacity label, e.g. '5000 m2'")

    created_at = Column(DateTime, server_default=func.current_timestamp())

    zones = relationship("Zone", back_populates="warehouse", cascade="all, delete-orphan")


class Zone(Base):
    """Zone within a warehouse"""
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, autoincrement=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)

    warehouse = relationship("Warehouse", back_populates="zones")
    racks = relationship("Rack", back_populates="zone", cascade="all, delete-orphan")


class Rack(Base):
    """Rack within a zone"""
    __tablename__ = "racks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(30), nullable=False)

    zone = relationship("Zone", back_populates="racks")
    lots = relationship("Lot", back_populates="rack", cascade="all, delete-orphan")


class Lot(Base):
    """Lot - smallest addressable storage location"""
    __tablename__ = "lots"
    __table_args__ = (
        CheckConstraint("capacity >= 0", name="capacity_non_negative"),
        CheckConstraint("current_load >= 0 AND current_load <= capacity", name="load_within_capacity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    rack_id = Column(Integer, ForeignKey("racks.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(30), unique=True, nullable=False, doc="Scannable lot code")
    capacity = Column(Integer, nullable=False, default=0, doc="Maximum units")
    current_load = Column(Integer, nullable=False, default=0, doc="Units currently stored")

    rack = relationship("Rack", back_populates="lots")
    batches = relationship("ItemBatch", back_populates="lot")

    @property
    def available_capacity(self) -> int:
        return (self.capacity or 0) - (self.current_load or 0)
