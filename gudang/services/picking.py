"""
Picking Service
Releases stock from batches for outbound order lines using FEFO
(First-Expired-First-Out) ordering.
"""
from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from gudang.core.clock import today, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.item import Item, ItemBatch, BatchStatus
from gudang.models.location import Lot, Rack, Zone
from gudang.models.movement import StockMovement, MovementType
from gudang.schemas.activity import PickRecorded
from gudang.services.activity import log_activity
from gudang.services.location_registry import LocationRegistryService


class PickingService:

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.registry = LocationRegistryService(db, self.acting_user)

    def eligible_batches(
        self,
        item_id: int,
        warehouse_id: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> List[ItemBatch]:
        """
        Active batches with stock, in FEFO order.

        Sort: expiry_date ascending, batches without expiry last, id as
        tie-breaker. Batches already past expiry on as_of are excluded.
        """
        as_of = as_of or today()
        query = self.db.query(ItemBatch).filter(
            ItemBatch.item_id == item_id,
            ItemBatch.status == BatchStatus.ACTIVE,
            ItemBatch.quantity > 0,
        )
        if warehouse_id is not None:
            query = (
                query.join(Lot, ItemBatch.lot_id == Lot.id)
                .join(Rack, Lot.rack_id == Rack.id)
                .join(Zone, Rack.zone_id == Zone.id)
                .filter(Zone.warehouse_id == warehouse_id)
            )

        batches = [
            b for b in query.all()
            if b.expiry_date is None or b.expiry_date >= as_of
        ]
        batches.sort(key=lambda b: (b.expiry_date is None, b.expiry_date or date.max, b.id))
        return batches

    def scan(
        self,
        item_id: int,
        code: str,
        warehouse_id: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> ItemBatch:
        """Resolve a scanned batch code or lot code to an eligible batch"""
        for batch in self.eligible_batches(item_id, warehouse_id, as_of):
            if batch.batch_code == code or (batch.lot is not None and batch.lot.code == code):
                return batch
        raise NotFoundError(f"Batch/Lot {code} tidak ditemukan")

    def plan(
        self,
        item_id: int,
        quantity: int,
        warehouse_id: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> List[Tuple[ItemBatch, int]]:
        """Greedy FEFO slicing of quantity across eligible batches"""
        remaining = quantity
        legs: List[Tuple[ItemBatch, int]] = []
        for batch in self.eligible_batches(item_id, warehouse_id, as_of):
            if remaining <= 0:
                break
            take = min(remaining, batch.quantity)
            legs.append((batch, take))
            remaining -= take

        if remaining > 0:
            available = quantity - remaining
            raise ValidationError(
                f"Insufficient stock for item {item_id}. Available: {available}, Requested: {quantity}"
            )
        return legs

    def pick(self, pick_data: Dict, now: Optional[datetime] = None) -> Dict:
        """
        Pick an order line.

        With batch_id the chosen batch must hold the full quantity; without it
        the FEFO plan may span several batches. Every leg decrements batch and
        lot and appends one OUTBOUND movement.
        """
        now = now or utcnow()
        item = self.db.get(Item, pick_data.get("item_id"))
        if not item:
            raise NotFoundError(f"Item {pick_data.get('item_id')} not found")

        quantity = int(pick_data.get("quantity") or 0)
        if quantity <= 0:
            raise ValidationError("Pick quantity must be positive")

        warehouse_id = pick_data.get("warehouse_id")
        as_of = today(now)

        if pick_data.get("batch_id") is not None:
            legs = [(self._selected_batch(item.id, pick_data["batch_id"], quantity, warehouse_id, as_of), quantity)]
        else:
            legs = self.plan(item.id, quantity, warehouse_id, as_of)

        for batch, take in legs:
            if batch.lot is not None:
                self.registry.check_can_adjust(batch.lot, -take)

        leg_results = []
        with unit_of_work(self.db):
            for batch, take in legs:
                batch.quantity -= take
                if batch.quantity == 0:
                    batch.status = BatchStatus.DEPLETED
                if batch.lot is not None:
                    self.registry.adjust_load(batch.lot, -take)

                movement = StockMovement(
                    item_id=item.id,
                    batch_id=batch.id,
                    lot_id=batch.lot_id,
                    movement_type=MovementType.OUTBOUND,
                    quantity=take,
                    tanggal_masuk=as_of,
                    tanggal_keluar=as_of,
                    reference_number=pick_data.get("reference_number"),
                    notes=pick_data.get("notes"),
                    ceisa_status="pending",
                )
                self.db.add(movement)
                self.db.flush()
                leg_results.append({
                    "batch_id": batch.id,
                    "lot_id": batch.lot_id,
                    "quantity": take,
                    "movement_id": movement.id,
                })

            log_activity(
                self.db,
                entity_table="item_batches",
                record_id=legs[0][0].id,
                payload=PickRecorded(
                    item_id=item.id,
                    legs=[{"batch_id": leg["batch_id"], "quantity": leg["quantity"]} for leg in leg_results],
                    message=f"{quantity} {item.unit} {item.name} di-pick dari {len(leg_results)} batch",
                ),
                changed_by=self.acting_user,
            )

        return {"item_id": item.id, "quantity": quantity, "legs": leg_results}

    def _selected_batch(
        self,
        item_id: int,
        batch_id: int,
        quantity: int,
        warehouse_id: Optional[int],
        as_of: date,
    ) -> ItemBatch:
        eligible = {b.id: b for b in self.eligible_batches(item_id, warehouse_id, as_of)}
        batch = eligible.get(batch_id)
        if batch is None:
            if self.db.get(ItemBatch, batch_id) is None:
                raise NotFoundError(f"Batch {batch_id} not found")
            raise ValidationError(f"Batch {batch_id} is not available for picking item {item_id}")
        if quantity > batch.quantity:
            raise ValidationError(
                f"Insufficient batch quantity. Available: {batch.quantity}, Requested: {quantity}"
            )
        return batch
