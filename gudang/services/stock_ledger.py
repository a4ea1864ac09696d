"""
Stock Movement Ledger Service
Line intake and ledger queries. Movements are never deleted.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from gudang.core.clock import today, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.item import Item
from gudang.models.movement import StockMovement, MovementStatus, MovementType
from gudang.schemas.activity import IntakeRecorded
from gudang.services.activity import log_activity
from gudang.services.storage_cost import StorageCostEngine


class StockLedgerService:

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.cost_engine = StorageCostEngine(db, self.acting_user)

    def register_intake(self, intake_data: Dict, now: Optional[datetime] = None) -> StockMovement:
        """
        Receive goods onto a storage line.

        Creates an Aktif line movement, runs the first cost calculation and
        logs the intake, all in one unit of work.
        """
        now = now or utcnow()
        item = self.db.get(Item, intake_data.get("item_id"))
        if not item:
            raise NotFoundError(f"Item {intake_data.get('item_id')} not found")

        berat_kg = intake_data.get("berat_kg")
        if berat_kg is None:
            berat_kg = item.actual_weight_kg
        if berat_kg is None:
            raise ValidationError("Item dan berat wajib diisi")
        berat_kg = Decimal(str(berat_kg))
        if berat_kg < 0:
            raise ValidationError("berat_kg cannot be negative")

        lokasi = intake_data.get("lokasi") or settings.DEFAULT_INTAKE_LINE
        if lokasi not in settings.LINE_TARIFF_PER_KG:
            raise ValidationError(f"Unknown storage line: {lokasi}")

        tanggal_masuk = intake_data.get("tanggal_masuk") or today(now)
        if isinstance(tanggal_masuk, str):
            tanggal_masuk = date.fromisoformat(tanggal_masuk)

        with unit_of_work(self.db):
            movement = StockMovement(
                item_id=item.id,
                lokasi=lokasi,
                lokasi_asal=intake_data.get("lokasi_asal"),
                movement_type=MovementType.IN,
                quantity=1,
                tanggal_masuk=tanggal_masuk,
                status=MovementStatus.AKTIF,
                berat_kg=berat_kg,
                volume_m3=item.volume_m3 if item.volume_m3 is not None else Decimal("0"),
                reference_number=intake_data.get("reference_number"),
                notes=intake_data.get("notes"),
            )
            self.db.add(movement)
            self.db.flush()

            self.cost_engine.accrue(movement, now)

            log_activity(
                self.db,
                entity_table="stock_movements",
                record_id=movement.id,
                payload=IntakeRecorded(
                    item_id=item.id,
                    lokasi=lokasi,
                    status=MovementStatus.AKTIF,
                    message=f"Barang {item.name} masuk ke {lokasi}",
                ),
                changed_by=self.acting_user,
            )
        return movement

    def get_movement(self, movement_id: int) -> StockMovement:
        movement = self.db.get(StockMovement, movement_id)
        if not movement:
            raise NotFoundError(f"Stock movement {movement_id} not found")
        return movement

    def list_line_movements(
        self,
        lokasi: Optional[str] = None,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[StockMovement]:
        """Movements currently or previously held on a storage line"""
        query = self.db.query(StockMovement).filter(StockMovement.lokasi.isnot(None))
        if lokasi:
            query = query.filter(StockMovement.lokasi == lokasi)
        if status:
            if status not in MovementStatus.ALL:
                raise ValidationError(f"Invalid status filter: {status}")
            query = query.filter(StockMovement.status == status)
        return (
            query.order_by(StockMovement.tanggal_masuk.desc(), StockMovement.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
