"""Item, batch and allocator (put-away, picking, relocation) schemas"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from .common import ORMModel


class BatchStatusEnum(str, Enum):
    ACTIVE = "active"
    DEPLETED = "depleted"
    EXPIRED = "expired"
    QUARANTINE = "quarantine"


class ItemCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    unit: str = Field("pcs", max_length=20)
    length_cm: Optional[Decimal] = Field(None, ge=0)
    width_cm: Optional[Decimal] = Field(None, ge=0)
    height_cm: Optional[Decimal] = Field(None, ge=0)
    actual_weight_kg: Optional[Decimal] = Field(None, ge=0)
    volume_m3: Optional[Decimal] = Field(None, ge=0)


class Item(ORMModel):
    id: int
    sku: str
    name: str
    unit: Optional[str] = None
    length_cm: Optional[Decimal] = None
    width_cm: Optional[Decimal] = None
    height_cm: Optional[Decimal] = None
    actual_weight_kg: Optional[Decimal] = None
    volume_m3: Optional[Decimal] = None


class ItemBatch(ORMModel):
    id: int
    batch_code: str
    item_id: int
    lot_id: Optional[int] = None
    quantity: int
    manufacture_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: str


class BatchStatusUpdate(BaseModel):
    status: BatchStatusEnum


class ExpireRequest(BaseModel):
    as_of: Optional[date] = None


class PutAwayRequest(BaseModel):
    item_id: int
    lot_id: Optional[int] = None
    lot_code: Optional[str] = None
    quantity: int = Field(..., gt=0)
    batch_code: str = Field(..., min_length=1, max_length=50)
    manufacture_date: Optional[date] = None
    expiry_date: Optional[date] = None
    reference_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_lot(self):
        if self.lot_id is None and not self.lot_code:
            raise ValueError("Either lot_id or lot_code is required")
        return self


class PutAwayResult(BaseModel):
    batch_id: int
    lot_id: int
    movement_id: int
    quantity: int
    lot_current_load: int


class PickRequest(BaseModel):
    item_id: int
    quantity: int = Field(..., gt=0)
    batch_id: Optional[int] = None
    warehouse_id: Optional[int] = None
    reference_number: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class PickLeg(BaseModel):
    batch_id: int
    lot_id: Optional[int] = None
    quantity: int
    movement_id: int


class PickResult(BaseModel):
    item_id: int
    quantity: int
    legs: List[PickLeg]


class RelocationRequest(BaseModel):
    batch_id: int
    to_lot_id: int
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class BatchRelocation(ORMModel):
    id: int
    batch_id: int
    new_batch_id: Optional[int] = None
    from_lot_id: Optional[int] = None
    to_lot_id: int
    quantity: int
    reason: Optional[str] = None
    relocated_at: datetime
    relocated_by: str
