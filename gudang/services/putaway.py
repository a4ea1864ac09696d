"""
Put-Away Service
Assigns received quantity to a lot, respecting lot capacity
"""
from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from gudang.core.clock import today, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.item import Item, ItemBatch, BatchStatus
from gudang.models.movement import StockMovement, MovementType
from gudang.schemas.activity import PutAwayRecorded
from gudang.services.activity import log_activity
from gudang.services.location_registry import LocationRegistryService


def _as_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class PutAwayService:

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.registry = LocationRegistryService(db, self.acting_user)

    def put_away(self, putaway_data: Dict, now: Optional[datetime] = None) -> Dict:
        """
        Store received goods at a lot.

        Validates capacity first, then creates (or tops up) the batch at the
        lot, increments the lot counter and appends an INBOUND movement as a
        single unit of work.
        """
        now = now or utcnow()
        item = self.db.get(Item, putaway_data.get("item_id"))
        if not item:
            raise NotFoundError(f"Item {putaway_data.get('item_id')} not found")

        if putaway_data.get("lot_id") is not None:
            lot = self.registry.get_lot(putaway_data["lot_id"])
        elif putaway_data.get("lot_code"):
            lot = self.registry.find_lot_by_code(putaway_data["lot_code"])
        else:
            raise ValidationError("Harap pilih lokasi")

        quantity = int(putaway_data.get("quantity") or 0)
        batch_code = (putaway_data.get("batch_code") or "").strip()
        if quantity <= 0:
            raise ValidationError("Put-away quantity must be positive")
        if not batch_code:
            raise ValidationError("Batch code is required")

        manufacture_date = _as_date(putaway_data.get("manufacture_date"))
        expiry_date = _as_date(putaway_data.get("expiry_date"))
        if manufacture_date and expiry_date and expiry_date < manufacture_date:
            raise ValidationError("Expiry date cannot be before manufacture date")

        self.registry.check_can_adjust(lot, quantity)

        batch = self.db.query(ItemBatch).filter(
            ItemBatch.item_id == item.id,
            ItemBatch.lot_id == lot.id,
            ItemBatch.batch_code == batch_code,
        ).first()
        if batch and batch.status in (BatchStatus.EXPIRED, BatchStatus.QUARANTINE):
            raise ValidationError(
                f"Batch {batch_code} at lot {lot.code} is {batch.status} and cannot receive stock"
            )
        if batch:
            for field, requested in (("manufacture_date", manufacture_date), ("expiry_date", expiry_date)):
                stored = getattr(batch, field)
                if requested and stored and requested != stored:
                    raise ValidationError(
                        f"Batch {batch_code} at lot {lot.code} has {field} {stored}, not {requested}"
                    )

        with unit_of_work(self.db):
            if batch:
                batch.quantity += quantity
                batch.status = BatchStatus.ACTIVE
                batch.manufacture_date = batch.manufacture_date or manufacture_date
                batch.expiry_date = batch.expiry_date or expiry_date
            else:
                batch = ItemBatch(
                    batch_code=batch_code,
                    item_id=item.id,
                    lot_id=lot.id,
                    quantity=quantity,
                    manufacture_date=manufacture_date,
                    expiry_date=expiry_date,
                    status=BatchStatus.ACTIVE,
                )
                self.db.add(batch)

            self.registry.adjust_load(lot, quantity)
            self.db.flush()

            movement = StockMovement(
                item_id=item.id,
                batch_id=batch.id,
                lot_id=lot.id,
                movement_type=MovementType.INBOUND,
                quantity=quantity,
                tanggal_masuk=today(now),
                reference_number=putaway_data.get("reference_number"),
                notes=putaway_data.get("notes"),
            )
            self.db.add(movement)
            self.db.flush()

            log_activity(
                self.db,
                entity_table="item_batches",
                record_id=batch.id,
                payload=PutAwayRecorded(
                    batch_id=batch.id,
                    lot_id=lot.id,
                    quantity=quantity,
                    message=f"{quantity} {item.unit} {item.name} ({batch_code}) disimpan di {lot.code}",
                ),
                changed_by=self.acting_user,
            )

        return {
            "batch_id": batch.id,
            "lot_id": lot.id,
            "movement_id": movement.id,
            "quantity": quantity,
            "lot_current_load": lot.current_load,
        }
