"""
Batch Relocation Service
Moves a batch's stored quantity between lots
"""
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gudang.core.clock import utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.item import ItemBatch
from gudang.models.movement import BatchRelocation
from gudang.schemas.activity import BatchRelocated
from gudang.services.activity import log_activity
from gudang.services.location_registry import LocationRegistryService


class RelocationService:

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.registry = LocationRegistryService(db, self.acting_user)

    def relocate(self, relocation_data: Dict, now: Optional[datetime] = None) -> BatchRelocation:
        """
        Move quantity of a batch to another lot.

        Moving the whole batch re-points it at the destination lot. Moving
        part of it splits off a new batch row (same code and dates) at the
        destination so each lot's load still equals its batches' sum.
        """
        batch = self.db.get(ItemBatch, relocation_data.get("batch_id"))
        if not batch:
            raise NotFoundError(f"Batch {relocation_data.get('batch_id')} not found")

        to_lot = self.registry.get_lot(relocation_data.get("to_lot_id"))
        from_lot = batch.lot
        quantity = int(relocation_data.get("quantity") or 0)

        if quantity <= 0:
            raise ValidationError("Relocation quantity must be positive")
        if quantity > batch.quantity:
            raise ValidationError(
                f"Cannot relocate {quantity}, batch {batch.batch_code} holds {batch.quantity}"
            )
        if from_lot is not None and from_lot.id == to_lot.id:
            raise ValidationError("Source and destination lot are the same")
        if from_lot is not None and (
            self.registry.warehouse_of_lot(from_lot) != self.registry.warehouse_of_lot(to_lot)
        ):
            raise ValidationError(
                f"Lot {to_lot.code} is in another warehouse than {from_lot.code}; "
                "relocation stays within one warehouse"
            )

        self.registry.check_can_adjust(to_lot, quantity)
        if from_lot is not None:
            self.registry.check_can_adjust(from_lot, -quantity)

        with unit_of_work(self.db):
            if from_lot is not None:
                self.registry.adjust_load(from_lot, -quantity)
            self.registry.adjust_load(to_lot, quantity)

            new_batch = None
            if quantity == batch.quantity:
                batch.lot_id = to_lot.id
            else:
                batch.quantity -= quantity
                new_batch = ItemBatch(
                    batch_code=batch.batch_code,
                    item_id=batch.item_id,
                    lot_id=to_lot.id,
                    quantity=quantity,
                    manufacture_date=batch.manufacture_date,
                    expiry_date=batch.expiry_date,
                    status=batch.status,
                )
                self.db.add(new_batch)
                self.db.flush()

            relocation = BatchRelocation(
                batch_id=batch.id,
                new_batch_id=new_batch.id if new_batch else None,
                from_lot_id=from_lot.id if from_lot is not None else None,
                to_lot_id=to_lot.id,
                quantity=quantity,
                reason=relocation_data.get("reason"),
                relocated_at=now or utcnow(),
                relocated_by=self.acting_user,
            )
            self.db.add(relocation)
            self.db.flush()

            log_activity(
                self.db,
                entity_table="batch_relocations",
                record_id=relocation.id,
                payload=BatchRelocated(
                    from_lot_id=relocation.from_lot_id,
                    to_lot_id=to_lot.id,
                    quantity=quantity,
                    message=(
                        f"Batch {batch.batch_code}: {quantity} dipindah dari "
                        f"{from_lot.code if from_lot is not None else '-'} ke {to_lot.code}"
                    ),
                ),
                changed_by=self.acting_user,
            )
        return relocation

    def history(self, batch_id: Optional[int] = None, limit: int = 100) -> List[BatchRelocation]:
        query = self.db.query(BatchRelocation)
        if batch_id is not None:
            query = query.filter(BatchRelocation.batch_id == batch_id)
        return query.order_by(BatchRelocation.relocated_at.desc(), BatchRelocation.id.desc()).limit(limit).all()
