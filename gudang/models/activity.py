"""
Activity Log and Daily Summary Models
Append-only audit trail for line and allocator operations
"""
from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, JSON, BigInteger

from gudang.core.database import Base


class ActivityLog(Base):
    """One row per business event; new_data holds a typed payload"""
    __tablename__ = "activity_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    created_at = Column(DateTime, nullable=False, index=True)
    entity_table = Column(String(50), nullable=False, index=True)
    record_id = Column(String(50), index=True)
    action_type = Column(String(30), nullable=False, index=True)
    new_data = Column(JSON)
    changed_by = Column(String(50), nullable=False)


class DailySummary(Base):
    """Per-day aggregate, upserted by the daily storage job"""
    __tablename__ = "daily_summary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tanggal = Column(Date, unique=True, nullable=False)
    total_aktif = Column(Integer, nullable=False, default=0)
    total_dipindah = Column(Integer, nullable=False, default=0)
    total_diambil = Column(Integer, nullable=False, default=0)
    total_biaya = Column(Numeric(18, 2), nullable=False, default=0)
    updated_at = Column(DateTime)
