"""
Line-Transfer State Machine
Governs Aktif -> Dipindahkan -> Diambil and the side effects of each step.

    Aktif ──transfer──> Dipindahkan
      │                     │
      └──pickup──> Diambil <┘pickup

Diambil is absorbing. Cached cost stops accruing at pickup.
"""
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.orm import Session

from gudang.core.clock import today, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models.movement import StockMovement, MovementStatus
from gudang.schemas.activity import PickedBySupplier, TransferredToLine
from gudang.services.activity import log_activity
from gudang.services.storage_cost import StorageCostEngine


class LineTransferService:

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.cost_engine = StorageCostEngine(db, self.acting_user)

    def _load(self, movement_id: int) -> StockMovement:
        movement = self.db.get(StockMovement, movement_id)
        if not movement:
            raise NotFoundError(f"Stock movement {movement_id} not found")
        return movement

    @staticmethod
    def _item_name(movement: StockMovement) -> str:
        return movement.item.name if movement.item else f"#{movement.item_id}"

    def transfer_to_lini2(self, movement_id: int, now: Optional[datetime] = None) -> Dict:
        """
        Move an Aktif Lini 1 movement to Lini 2.

        The location change is flushed before the cost engine runs so the
        recompute applies the new line's tariff.
        """
        now = now or utcnow()
        movement = self._load(movement_id)

        source_line = settings.TRANSFER_SOURCE_LINE
        target_line = settings.TRANSFER_TARGET_LINE
        if movement.status != MovementStatus.AKTIF:
            raise ValidationError(
                f"Cannot transfer movement {movement_id} with status {movement.status}"
            )
        if movement.lokasi != source_line:
            raise ValidationError(
                f"Only goods on {source_line} can be transferred, movement {movement_id} is on {movement.lokasi}"
            )

        tanggal_pindah = today(now)
        with unit_of_work(self.db):
            movement.lokasi_asal = movement.lokasi
            movement.lokasi = target_line
            movement.status = MovementStatus.DIPINDAHKAN
            movement.tanggal_pindah = tanggal_pindah
            self.db.flush()

            breakdown = self.cost_engine.accrue(movement, now)

            log_activity(
                self.db,
                entity_table="stock_movements",
                record_id=movement.id,
                payload=TransferredToLine(
                    lokasi=target_line,
                    lokasi_asal=source_line,
                    status=MovementStatus.DIPINDAHKAN,
                    tanggal_pindah=tanggal_pindah,
                    message=(
                        f"Barang {self._item_name(movement)} dipindahkan ke {target_line} "
                        f"pada {tanggal_pindah.strftime('%d/%m/%Y')}"
                    ),
                ),
                changed_by=self.acting_user,
            )

        return {
            "stock_movement_id": movement_id,
            "lokasi": target_line,
            "status": MovementStatus.DIPINDAHKAN,
            "tanggal_pindah": tanggal_pindah,
            "hari_simpan": breakdown.hari_simpan,
            "total_biaya": breakdown.total_biaya,
        }

    def mark_picked_up(self, movement_id: int, now: Optional[datetime] = None) -> Dict:
        """Supplier pickup. The cached total at this moment is the final charge."""
        movement = self._load(movement_id)
        if movement.status not in MovementStatus.ACCRUING:
            raise ValidationError(
                f"Cannot mark movement {movement_id} as picked up from status {movement.status}"
            )

        tanggal_keluar = today(now)
        with unit_of_work(self.db):
            movement.status = MovementStatus.DIAMBIL
            movement.tanggal_keluar = tanggal_keluar

            log_activity(
                self.db,
                entity_table="stock_movements",
                record_id=movement.id,
                payload=PickedBySupplier(
                    status=MovementStatus.DIAMBIL,
                    tanggal_keluar=tanggal_keluar,
                    total_biaya=movement.total_biaya,
                    message=(
                        f"Barang {self._item_name(movement)} diambil oleh supplier "
                        f"pada {tanggal_keluar.strftime('%d/%m/%Y')}"
                    ),
                ),
                changed_by=self.acting_user,
            )

        return {
            "stock_movement_id": movement_id,
            "status": MovementStatus.DIAMBIL,
            "tanggal_keluar": tanggal_keluar,
            "total_biaya": movement.total_biaya,
        }

    def recompute(self, movement_id: int, now: Optional[datetime] = None) -> Dict:
        """Hitung Ulang: rerun the cost engine without changing status or line"""
        movement = self._load(movement_id)
        if movement.status not in MovementStatus.ACCRUING:
            raise ValidationError(
                f"Cannot recompute cost for movement {movement_id} with status {movement.status}"
            )
        return self.cost_engine.calculate_storage_cost(movement_id, now)
