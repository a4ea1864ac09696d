"""Typed activity-log payloads, one model per action type"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ActivityAction(str, Enum):
    INSERT = "INSERT"
    CALCULATE_COST = "CALCULATE_COST"
    TRANSFER_TO_LINI2 = "TRANSFER_TO_LINI2"
    PICKED_BY_SUPPLIER = "PICKED_BY_SUPPLIER"
    PUT_AWAY = "PUT_AWAY"
    PICK = "PICK"
    RELOCATE_BATCH = "RELOCATE_BATCH"
    BATCH_STATUS = "BATCH_STATUS"
    DAILY_CALC_BATCH = "DAILY_CALC_BATCH"
    HIGH_COST_ALERT = "HIGH_COST_ALERT"
    CEISA_SEND_REQUEST = "CEISA_SEND_REQUEST"
    CEISA_SEND_RESPONSE = "CEISA_SEND_RESPONSE"


class ActivityPayload(BaseModel):
    """Base payload; every entry carries a human-readable message"""
    message: str

    action: ActivityAction  # overridden with a fixed default in subclasses

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"action"})


class IntakeRecorded(ActivityPayload):
    action: ActivityAction = ActivityAction.INSERT
    item_id: int
    lokasi: str
    status: str


class CostCalculated(ActivityPayload):
    action: ActivityAction = ActivityAction.CALCULATE_COST
    hari_simpan: int
    total_biaya: Decimal
    lokasi: Optional[str] = None


class TransferredToLine(ActivityPayload):
    action: ActivityAction = ActivityAction.TRANSFER_TO_LINI2
    lokasi: str
    lokasi_asal: Optional[str] = None
    status: str
    tanggal_pindah: date


class PickedBySupplier(ActivityPayload):
    action: ActivityAction = ActivityAction.PICKED_BY_SUPPLIER
    status: str
    tanggal_keluar: date
    total_biaya: Decimal


class PutAwayRecorded(ActivityPayload):
    action: ActivityAction = ActivityAction.PUT_AWAY
    batch_id: int
    lot_id: int
    quantity: int


class PickRecorded(ActivityPayload):
    action: ActivityAction = ActivityAction.PICK
    item_id: int
    legs: List[Dict[str, int]]


class BatchRelocated(ActivityPayload):
    action: ActivityAction = ActivityAction.RELOCATE_BATCH
    from_lot_id: Optional[int] = None
    to_lot_id: int
    quantity: int


class BatchStatusChanged(ActivityPayload):
    action: ActivityAction = ActivityAction.BATCH_STATUS
    old_status: str
    new_status: str


class DailyCalcCompleted(ActivityPayload):
    action: ActivityAction = ActivityAction.DAILY_CALC_BATCH
    total_processed: int
    success_count: int
    error_count: int
    total_biaya_hari_ini: Decimal
    errors: Optional[List[Dict[str, Any]]] = None


class HighCostAlert(ActivityPayload):
    action: ActivityAction = ActivityAction.HIGH_COST_ALERT
    total_biaya: Decimal
    threshold: Decimal
    tanggal: date


class CeisaRequestSent(ActivityPayload):
    action: ActivityAction = ActivityAction.CEISA_SEND_REQUEST
    document_type: str
    document_number: str


class CeisaResponseReceived(ActivityPayload):
    action: ActivityAction = ActivityAction.CEISA_SEND_RESPONSE
    status: str
    error_message: Optional[str] = None
