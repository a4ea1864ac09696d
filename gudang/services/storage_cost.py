"""
Storage Cost Engine
Converts a line movement's location, weight, volume and elapsed days into
an accrued holding cost.

Cost model:
    hari_simpan  = max(0, floor((now - tanggal_masuk) / 1 day))
    biaya_berat  = berat_kg * tariff(lokasi) * hari_simpan
    biaya_volume = volume_m3 * VOLUME_RATE_PER_M3 * hari_simpan
    total_biaya  = biaya_berat + biaya_volume

The tariff of the movement's current lokasi applies to every day since
intake, including days spent on an earlier line.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from sqlalchemy.orm import Session

from gudang.core.clock import to_utc_naive, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.core.logging import get_logger
from gudang.models.movement import MovementStatus, StockMovement, StorageCost
from gudang.schemas.activity import CostCalculated
from gudang.services.activity import log_activity

logger = get_logger("business")

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class CostBreakdown:
    lokasi: Optional[str]
    hari_simpan: int
    berat_kg: Decimal
    volume_m3: Decimal
    tarif_per_kg: Decimal
    biaya_berat: Decimal
    biaya_volume: Decimal
    total_biaya: Decimal

    def as_dict(self) -> Dict:
        return {
            "lokasi": self.lokasi,
            "hari_simpan": self.hari_simpan,
            "berat_kg": self.berat_kg,
            "volume_m3": self.volume_m3,
            "tarif_per_kg": self.tarif_per_kg,
            "biaya_berat": self.biaya_berat,
            "biaya_volume": self.biaya_volume,
            "total_biaya": self.total_biaya,
        }


def days_stored(tanggal_masuk, now: datetime) -> int:
    """Whole days between intake (midnight UTC for a date) and now, never negative"""
    if isinstance(tanggal_masuk, datetime):
        start = to_utc_naive(tanggal_masuk)
    elif isinstance(tanggal_masuk, date):
        start = datetime.combine(tanggal_masuk, datetime.min.time())
    else:
        raise ValidationError(f"Invalid tanggal_masuk: {tanggal_masuk!r}")

    elapsed = to_utc_naive(now) - start
    return max(0, elapsed // ONE_DAY)


def tariff_for(lokasi: Optional[str]) -> Decimal:
    """Per-kg per-day tariff of a line; unknown lines fall back to zero"""
    tariff = settings.LINE_TARIFF_PER_KG.get(lokasi or "")
    if tariff is not None:
        return Decimal(tariff)
    if settings.STRICT_LINE_TARIFF:
        raise ValidationError(f"No storage tariff configured for location {lokasi!r}")
    logger.warning(f"No storage tariff for location {lokasi!r}, using 0")
    return Decimal("0")


def _first_present(*values) -> Decimal:
    for value in values:
        if value is not None:
            return Decimal(value)
    return Decimal("0")


def _money(value: Decimal) -> Decimal:
    exponent = Decimal(1).scaleb(-settings.CURRENCY_DECIMAL_PLACES)
    return value.quantize(exponent, rounding=ROUND_HALF_UP)


def compute_cost(movement: StockMovement, now: datetime) -> CostBreakdown:
    """Pure cost function of (lokasi, tanggal_masuk, berat, volume, now)"""
    item = movement.item
    hari_simpan = days_stored(movement.tanggal_masuk, now)
    berat_kg = _first_present(movement.berat_kg, item.actual_weight_kg if item else None)
    volume_m3 = _first_present(movement.volume_m3, item.volume_m3 if item else None)
    tarif_per_kg = tariff_for(movement.lokasi)

    biaya_berat = berat_kg * tarif_per_kg * hari_simpan
    biaya_volume = volume_m3 * Decimal(settings.VOLUME_RATE_PER_M3) * hari_simpan

    return CostBreakdown(
        lokasi=movement.lokasi,
        hari_simpan=hari_simpan,
        berat_kg=berat_kg,
        volume_m3=volume_m3,
        tarif_per_kg=tarif_per_kg,
        biaya_berat=_money(biaya_berat),
        biaya_volume=_money(biaya_volume),
        total_biaya=_money(biaya_berat + biaya_volume),
    )


def format_rupiah(amount: Decimal) -> str:
    """Rp 1.234.567 (id-ID grouping, no decimals when whole)"""
    whole = amount == amount.to_integral_value()
    text = f"{amount:,.0f}" if whole else f"{amount:,.2f}"
    return "Rp " + text.replace(",", "_").replace(".", ",").replace("_", ".")


class StorageCostEngine:
    """
    Computes and persists accrued storage cost for line movements.

    calculate_storage_cost runs as its own unit of work. accrue() is the same
    computation for callers that already hold one (line transfer).
    """

    def __init__(self, db: Session, acting_user: Optional[str] = None):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR

    def _load(self, stock_movement_id: int) -> StockMovement:
        movement = self.db.get(StockMovement, stock_movement_id)
        if not movement:
            raise NotFoundError(f"Stock movement {stock_movement_id} not found")
        return movement

    def preview(self, stock_movement_id: int, now: Optional[datetime] = None) -> CostBreakdown:
        """Cost as of now without writing anything"""
        return compute_cost(self._load(stock_movement_id), now or utcnow())

    def accrue(self, movement: StockMovement, now: Optional[datetime] = None) -> CostBreakdown:
        """Overwrite cached totals, append the audit row and activity entry"""
        now = to_utc_naive(now) or utcnow()
        breakdown = compute_cost(movement, now)

        movement.hari_simpan = breakdown.hari_simpan
        movement.total_biaya = breakdown.total_biaya

        self.db.add(StorageCost(
            stock_movement_id=movement.id,
            tanggal_hitung=now.date(),
            lokasi=breakdown.lokasi,
            hari_simpan=breakdown.hari_simpan,
            berat_kg=breakdown.berat_kg,
            volume_m3=breakdown.volume_m3,
            tarif_per_kg=breakdown.tarif_per_kg,
            biaya_berat=breakdown.biaya_berat,
            biaya_volume=breakdown.biaya_volume,
            total_biaya=breakdown.total_biaya,
            periode_akhir=now,
        ))

        log_activity(
            self.db,
            entity_table="storage_costs",
            record_id=movement.id,
            payload=CostCalculated(
                hari_simpan=breakdown.hari_simpan,
                total_biaya=breakdown.total_biaya,
                lokasi=breakdown.lokasi,
                message=(
                    f"Biaya dihitung: {format_rupiah(breakdown.total_biaya)} "
                    f"untuk {breakdown.hari_simpan} hari"
                ),
            ),
            changed_by=self.acting_user,
        )
        return breakdown

    def calculate_storage_cost(self, stock_movement_id: int, now: Optional[datetime] = None) -> Dict:
        """
        Compute and persist the accrued holding cost as of now.

        Returns {stock_movement_id, hari_simpan, total_biaya, lokasi}.
        Raises NotFoundError when the movement does not exist and
        ValidationError when it no longer accrues (picked up or not a line row).
        """
        with unit_of_work(self.db):
            movement = self._load(stock_movement_id)
            if movement.status not in MovementStatus.ACCRUING:
                raise ValidationError(
                    f"Stock movement {stock_movement_id} with status {movement.status} does not accrue cost"
                )
            breakdown = self.accrue(movement, now)

        return {
            "stock_movement_id": stock_movement_id,
            "hari_simpan": breakdown.hari_simpan,
            "total_biaya": breakdown.total_biaya,
            "lokasi": breakdown.lokasi,
        }

    def cost_history(self, stock_movement_id: int):
        self._load(stock_movement_id)
        return (
            self.db.query(StorageCost)
            .filter(StorageCost.stock_movement_id == stock_movement_id)
            .order_by(StorageCost.id)
            .all()
        )
