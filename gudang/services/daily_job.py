"""
Daily Storage Job
Nightly sweep that recomputes cost for every accruing line movement,
refreshes the per-day summary and raises a high-cost alert.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from gudang.core.clock import to_utc_naive, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import GudangException
from gudang.core.logging import get_logger
from gudang.models.activity import DailySummary
from gudang.models.movement import StockMovement, MovementStatus
from gudang.schemas.activity import DailyCalcCompleted, HighCostAlert
from gudang.services.activity import log_activity
from gudang.services.storage_cost import StorageCostEngine, format_rupiah

logger = get_logger("business")


class DailyStorageJob:
    """
    runDailyStorageCalc.

    Each movement is recomputed in its own unit of work, so a failure on one
    is collected and the sweep carries on.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cost_engine = StorageCostEngine(db, settings.DAILY_JOB_ACTOR)

    def run(self, now: Optional[datetime] = None) -> Dict:
        now = to_utc_naive(now) or utcnow()
        tanggal = now.date()

        movement_ids = [
            row.id for row in
            self.db.query(StockMovement.id)
            .filter(StockMovement.status.in_(MovementStatus.ACCRUING))
            .order_by(StockMovement.id)
            .all()
        ]
        logger.info(f"Daily storage calculation started for {len(movement_ids)} movements")

        success_count = 0
        total_biaya = Decimal("0")
        errors: List[Dict] = []
        for movement_id in movement_ids:
            try:
                result = self.cost_engine.calculate_storage_cost(movement_id, now)
            except GudangException as e:
                logger.error(f"Daily calculation failed for movement {movement_id}: {e.message}")
                errors.append({"stock_movement_id": movement_id, "error": e.kind, "message": e.message})
                continue
            success_count += 1
            total_biaya += result["total_biaya"]

        counts = self._status_counts()
        alert_sent = total_biaya > Decimal(settings.DAILY_COST_ALERT_THRESHOLD)

        with unit_of_work(self.db):
            summary = self.db.query(DailySummary).filter(DailySummary.tanggal == tanggal).first()
            if summary is None:
                summary = DailySummary(tanggal=tanggal)
                self.db.add(summary)
            summary.total_aktif = counts.get(MovementStatus.AKTIF, 0)
            summary.total_dipindah = counts.get(MovementStatus.DIPINDAHKAN, 0)
            summary.total_diambil = counts.get(MovementStatus.DIAMBIL, 0)
            summary.total_biaya = total_biaya
            summary.updated_at = now

            log_activity(
                self.db,
                entity_table="stock_movements",
                record_id=None,
                payload=DailyCalcCompleted(
                    total_processed=len(movement_ids),
                    success_count=success_count,
                    error_count=len(errors),
                    total_biaya_hari_ini=total_biaya,
                    errors=errors or None,
                    message=(
                        f"Perhitungan harian: {success_count}/{len(movement_ids)} berhasil, "
                        f"total {format_rupiah(total_biaya)}"
                    ),
                ),
                changed_by=settings.DAILY_JOB_ACTOR,
            )

            if alert_sent:
                log_activity(
                    self.db,
                    entity_table="daily_summary",
                    record_id=tanggal.isoformat(),
                    payload=HighCostAlert(
                        total_biaya=total_biaya,
                        threshold=Decimal(settings.DAILY_COST_ALERT_THRESHOLD),
                        tanggal=tanggal,
                        message=f"Biaya penyimpanan hari ini tinggi: {format_rupiah(total_biaya)}",
                    ),
                    changed_by=settings.ALERT_ACTOR,
                )
                logger.warning(f"High daily storage cost on {tanggal}: {total_biaya}")

        logger.info(
            f"Daily storage calculation finished: {success_count} ok, {len(errors)} failed, total {total_biaya}"
        )
        return {
            "tanggal": tanggal,
            "total_processed": len(movement_ids),
            "success_count": success_count,
            "error_count": len(errors),
            "total_biaya_hari_ini": total_biaya,
            "alert_sent": alert_sent,
            "errors": errors,
        }

    def _status_counts(self) -> Dict[str, int]:
        rows = (
            self.db.query(StockMovement.status, func.count(StockMovement.id))
            .filter(StockMovement.status.in_(MovementStatus.ALL))
            .group_by(StockMovement.status)
            .all()
        )
        return {status: count for status, count in rows}

    def list_summaries(self, limit: int = 30) -> List[DailySummary]:
        return (
            self.db.query(DailySummary)
            .order_by(DailySummary.tanggal.desc())
            .limit(limit)
            .all()
        )
