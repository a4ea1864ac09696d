"""
Daily Storage Job Tests
Nightly sweep, daily summary upsert and high-cost alert
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from gudang.core.config import settings
from gudang.models import ActivityLog, DailySummary, StockMovement, MovementStatus, MovementType
from gudang.services.daily_job import DailyStorageJob
from gudang.services.line_transfer import LineTransferService
from gudang.services.stock_ledger import StockLedgerService

DAY_0 = datetime(2024, 3, 1, 8, 0, 0)
RUN_AT = datetime(2024, 3, 6, 1, 0, 0)


@pytest.fixture
def line_goods(db_session, items):
    """One Aktif, one Dipindahkan and one Diambil movement"""
    ledger = StockLedgerService(db_session)
    transfer = LineTransferService(db_session)

    aktif = ledger.register_intake({"item_id": items["kopi"].id, "berat_kg": "10"}, now=DAY_0)
    moved = ledger.register_intake({"item_id": items["kopi"].id, "berat_kg": "20"}, now=DAY_0)
    taken = ledger.register_intake({"item_id": items["kopi"].id, "berat_kg": "30"}, now=DAY_0)
    transfer.transfer_to_lini2(moved.id, now=DAY_0 + timedelta(days=1))
    transfer.mark_picked_up(taken.id, now=DAY_0 + timedelta(days=2))
    return {"aktif": aktif, "moved": moved, "taken": taken}


def test_recomputes_accruing_movements_only(db_session, line_goods):
    taken_before = db_session.get(StockMovement, line_goods["taken"].id).total_biaya

    result = DailyStorageJob(db_session).run(now=RUN_AT)

    assert result["total_processed"] == 2
    assert result["success_count"] == 2
    assert result["error_count"] == 0
    assert result["errors"] == []
    # 10 kg * 1500 * 5 + 20 kg * 2500 * 5
    assert result["total_biaya_hari_ini"] == Decimal("325000.00")
    assert result["alert_sent"] is False

    assert db_session.get(StockMovement, line_goods["aktif"].id).total_biaya == Decimal("75000.00")
    assert db_session.get(StockMovement, line_goods["moved"].id).total_biaya == Decimal("250000.00")
    assert db_session.get(StockMovement, line_goods["taken"].id).total_biaya == taken_before


def test_summary_upserted_once_per_day(db_session, line_goods):
    job = DailyStorageJob(db_session)
    job.run(now=RUN_AT)
    job.run(now=RUN_AT + timedelta(hours=1))

    summaries = db_session.query(DailySummary).all()
    assert len(summaries) == 1
    summary = summaries[0]
    assert summary.tanggal == date(2024, 3, 6)
    assert (summary.total_aktif, summary.total_dipindah, summary.total_diambil) == (1, 1, 1)
    assert summary.total_biaya == Decimal("325000.00")
    assert [s.tanggal for s in job.list_summaries()] == [date(2024, 3, 6)]


def test_batch_activity_logged_by_cron_actor(db_session, line_goods):
    DailyStorageJob(db_session).run(now=RUN_AT)

    entry = db_session.query(ActivityLog).filter(ActivityLog.action_type == "DAILY_CALC_BATCH").one()
    assert entry.changed_by == "system_cron"
    assert entry.new_data["success_count"] == 2

    recalculations = db_session.query(ActivityLog).filter(
        ActivityLog.action_type == "CALCULATE_COST",
        ActivityLog.changed_by == "system_cron",
    ).count()
    assert recalculations == 2


def test_high_cost_alert(db_session, line_goods, monkeypatch):
    monkeypatch.setattr(settings, "DAILY_COST_ALERT_THRESHOLD", Decimal("300000"))

    result = DailyStorageJob(db_session).run(now=RUN_AT)

    assert result["alert_sent"] is True
    alert = db_session.query(ActivityLog).filter(ActivityLog.action_type == "HIGH_COST_ALERT").one()
    assert alert.changed_by == "system_alert"
    assert alert.record_id == "2024-03-06"


def test_threshold_is_exclusive(db_session, line_goods, monkeypatch):
    monkeypatch.setattr(settings, "DAILY_COST_ALERT_THRESHOLD", Decimal("325000"))
    assert DailyStorageJob(db_session).run(now=RUN_AT)["alert_sent"] is False


def test_failures_are_collected_and_do_not_stop_the_sweep(db_session, items, line_goods, monkeypatch):
    stray = StockMovement(
        item_id=items["kopi"].id,
        lokasi="Lini 9",
        movement_type=MovementType.IN,
        quantity=1,
        tanggal_masuk=DAY_0.date(),
        status=MovementStatus.AKTIF,
        berat_kg=Decimal("5"),
    )
    db_session.add(stray)
    db_session.commit()
    monkeypatch.setattr(settings, "STRICT_LINE_TARIFF", True)

    result = DailyStorageJob(db_session).run(now=RUN_AT)

    assert result["total_processed"] == 3
    assert result["success_count"] == 2
    assert result["error_count"] == 1
    assert result["errors"][0]["stock_movement_id"] == stray.id
    assert result["errors"][0]["error"] == "validation_failure"
    assert result["total_biaya_hari_ini"] == Decimal("325000.00")


def test_empty_run(db_session):
    result = DailyStorageJob(db_session).run(now=RUN_AT)
    assert result["total_processed"] == 0
    assert result["total_biaya_hari_ini"] == Decimal("0")
    assert db_session.query(DailySummary).count() == 1


def test_database_error_on_one_movement_is_collected(db_session, line_goods, monkeypatch):
    locked_id = line_goods["aktif"].id
    real_get = db_session.get

    def locked_get(entity, ident, *args, **kwargs):
        if entity is StockMovement and ident == locked_id:
            raise OperationalError("SELECT stock_movements", {}, Exception("database is locked"))
        return real_get(entity, ident, *args, **kwargs)

    monkeypatch.setattr(db_session, "get", locked_get)

    result = DailyStorageJob(db_session).run(now=RUN_AT)

    assert result["total_processed"] == 2
    assert result["success_count"] == 1
    assert result["errors"][0]["stock_movement_id"] == locked_id
    assert result["errors"][0]["error"] == "persistence_failure"
    assert result["total_biaya_hari_ini"] == Decimal("250000.00")
    assert db_session.query(DailySummary).filter(DailySummary.tanggal == date(2024, 3, 6)).count() == 1
    assert db_session.query(ActivityLog).filter(ActivityLog.action_type == "DAILY_CALC_BATCH").count() == 1
