"""Customs (CEISA) document schemas"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .common import ORMModel


class DocumentType(str, Enum):
    BC23 = "BC23"
    BC40 = "BC40"


class CustomsReportRequest(BaseModel):
    movement_ids: List[int] = Field(..., min_length=1)
    document_type: DocumentType
    reference_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class CustomsDocument(ORMModel):
    id: int
    id_dokumen: str
    document_type: str
    document_number: str
    status: str
    payload: Any
    ceisa_response: Optional[Any] = None
    movement_ids: Optional[List[int]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
