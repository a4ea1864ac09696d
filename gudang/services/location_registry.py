"""
Location Registry Service
Warehouse/zone/rack/lot hierarchy and the lot occupancy counter
"""
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.core.logging import get_logger
from gudang.models.item import ItemBatch
from gudang.models.location import Warehouse, Zone, Rack, Lot

logger = get_logger("business")


class LocationRegistryService:
    """
    Location hierarchy management.

    adjust_load is the only code path that changes Lot.current_load; it
    enforces 0 <= current_load <= capacity before mutating.
    """

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR

    # Hierarchy

    def create_warehouse(self, data: Dict) -> Warehouse:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Warehouse name is required")

        with unit_of_work(self.db):
            warehouse = Warehouse(
                name=name,
                location=data.get("location"),
                total_capacity_label=data.get("total_capacity_label"),
            )
            self.db.add(warehouse)
        return warehouse

    def create_zone(self, data: Dict) -> Zone:
        warehouse = self.db.get(Warehouse, data.get("warehouse_id"))
        if not warehouse:
            raise NotFoundError(f"Warehouse {data.get('warehouse_id')} not found")
        if not data.get("name"):
            raise ValidationError("Zone name is required")

        with unit_of_work(self.db):
            zone = Zone(warehouse_id=warehouse.id, name=data["name"])
            self.db.add(zone)
        return zone

    def create_rack(self, data: Dict) -> Rack:
        zone = self.db.get(Zone, data.get("zone_id"))
        if not zone:
            raise NotFoundError(f"Zone {data.get('zone_id')} not found")
        if not data.get("code"):
            raise ValidationError("Rack code is required")

        with unit_of_work(self.db):
            rack = Rack(zone_id=zone.id, code=data["code"])
            self.db.add(rack)
        return rack

    def create_lot(self, data: Dict) -> Lot:
        rack = self.db.get(Rack, data.get("rack_id"))
        if not rack:
            raise NotFoundError(f"Rack {data.get('rack_id')} not found")

        code = data.get("code")
        capacity = int(data.get("capacity", 0))
        current_load = int(data.get("current_load") or 0)

        if not code:
            raise ValidationError("Lot code is required")
        if capacity < 0:
            raise ValidationError("Lot capacity cannot be negative")
        if current_load != 0:
            raise ValidationError(
                f"Lot {code} must start empty; stock is added through put-away"
            )
        if self.db.query(Lot).filter(Lot.code == code).first():
            raise ValidationError(f"Lot code {code} already exists")

        with unit_of_work(self.db):
            lot = Lot(rack_id=rack.id, code=code, capacity=capacity, current_load=0)
            self.db.add(lot)
        return lot

    # Lookups

    def get_lot(self, lot_id: int) -> Lot:
        lot = self.db.get(Lot, lot_id)
        if not lot:
            raise NotFoundError(f"Lot {lot_id} not found")
        return lot

    def find_lot_by_code(self, code: str) -> Lot:
        lot = self.db.query(Lot).filter(Lot.code == code).first()
        if not lot:
            raise NotFoundError(f"Lot {code} not found")
        return lot

    def list_warehouses(self) -> List[Warehouse]:
        return self.db.query(Warehouse).order_by(Warehouse.name).all()

    def list_lots(self, warehouse_id: Optional[int] = None) -> List[Lot]:
        query = self.db.query(Lot)
        if warehouse_id is not None:
            query = query.join(Rack).join(Zone).filter(Zone.warehouse_id == warehouse_id)
        return query.order_by(Lot.code).all()

    @staticmethod
    def warehouse_of_lot(lot: Lot) -> Optional[int]:
        if lot.rack and lot.rack.zone:
            return lot.rack.zone.warehouse_id
        return None

    # Occupancy

    @staticmethod
    def check_can_adjust(lot: Lot, delta: int) -> None:
        """Raise ValidationError if applying delta would break the invariant"""
        new_load = (lot.current_load or 0) + delta
        if new_load > lot.capacity:
            raise ValidationError(
                f"Lot {lot.code} capacity exceeded: {lot.current_load} + {delta} > {lot.capacity}"
            )
        if new_load < 0:
            raise ValidationError(
                f"Lot {lot.code} load cannot go below zero: {lot.current_load} - {abs(delta)}"
            )

    def adjust_load(self, lot: Lot, delta: int) -> Lot:
        """Apply delta to the lot counter inside the caller's unit of work"""
        self.check_can_adjust(lot, delta)
        lot.current_load = (lot.current_load or 0) + delta
        return lot

    def reconcile_loads(self, fix: bool = False) -> List[Dict]:
        """
        Compare each lot counter with the sum of batch quantities stored there.

        Returns one entry per mismatching lot. With fix=True the counter is
        rewritten to the batch sum.
        """
        sums = dict(
            self.db.query(ItemBatch.lot_id, func.coalesce(func.sum(ItemBatch.quantity), 0))
            .filter(ItemBatch.lot_id.isnot(None))
            .group_by(ItemBatch.lot_id)
            .all()
        )

        discrepancies = []
        for lot in self.db.query(Lot).order_by(Lot.id).all():
            batch_total = int(sums.get(lot.id, 0))
            if batch_total != lot.current_load:
                discrepancies.append({
                    "lot_id": lot.id,
                    "lot_code": lot.code,
                    "current_load": lot.current_load,
                    "batch_total": batch_total,
                    "difference": lot.current_load - batch_total,
                })

        if discrepancies:
            logger.warning(f"Lot load reconciliation found {len(discrepancies)} mismatched lots")

        if fix and discrepancies:
            with unit_of_work(self.db):
                for entry in discrepancies:
                    if entry["batch_total"] > self.db.get(Lot, entry["lot_id"]).capacity:
                        raise ValidationError(
                            f"Lot {entry['lot_code']} holds {entry['batch_total']} units, above its capacity"
                        )
                    self.db.get(Lot, entry["lot_id"]).current_load = entry["batch_total"]

        return discrepancies
