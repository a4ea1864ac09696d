"""
Customs Document Model
Documents reported to CEISA (BC 2.3 inbound, BC 4.0 outbound)
"""
from sqlalchemy import Column, String, Integer, DateTime, JSON
from sqlalchemy.sql import func

from gudang.core.database import Base


class CustomsDocStatus:
    DRAFT = "draft"
    SENT = "sent"
    FAILED = "failed"


class CustomsDocument(Base):
    __tablename__ = "customs_docs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    id_dokumen = Column(String(36), unique=True, nullable=False, index=True)
    document_type = Column(String(10), nullable=False, doc="BC23 or BC40")
    document_number = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=CustomsDocStatus.DRAFT)
    payload = Column(JSON, nullable=False)
    ceisa_response = Column(JSON)
    movement_ids = Column(JSON, doc="Stock movements reported by this document")

    created_at = Column(DateTime, server_default=func.current_timestamp())
    updated_at = Column(DateTime, server_default=func.current_timestamp(), onupdate=func.current_timestamp())
