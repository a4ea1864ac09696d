"""
Line-Transfer State Machine Tests
Aktif -> Dipindahkan -> Diambil, intake and recomputation
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from gudang.core.exceptions import NotFoundError, ValidationError
from gudang.models import ActivityLog, StockMovement, MovementStatus, MovementType
from gudang.services.line_transfer import LineTransferService
from gudang.services.stock_ledger import StockLedgerService

DAY_0 = datetime(2024, 3, 1, 8, 0, 0)


@pytest.fixture
def intake(db_session, items):
    """Register a 10 kg Kopi intake on Lini 1 at DAY_0"""
    def _intake(**overrides):
        data = {"item_id": items["kopi"].id, "berat_kg": "10"}
        data.update(overrides)
        return StockLedgerService(db_session, "petugas").register_intake(data, now=DAY_0)
    return _intake


class TestIntake:

    def test_creates_aktif_line_movement(self, db_session, items, intake, activity_of):
        movement = intake()

        assert movement.lokasi == "Lini 1"
        assert movement.status == MovementStatus.AKTIF
        assert movement.movement_type == MovementType.IN
        assert movement.quantity == 1
        assert movement.tanggal_masuk == date(2024, 3, 1)
        assert movement.hari_simpan == 0
        assert movement.total_biaya == Decimal("0.00")
        assert activity_of("stock_movements", movement.id) == ["INSERT"]
        assert activity_of("storage_costs", movement.id) == ["CALCULATE_COST"]

    def test_weight_defaults_to_item_weight(self, intake, items):
        movement = intake(item_id=items["mesin"].id, berat_kg=None)
        assert movement.berat_kg == Decimal("25")
        assert movement.volume_m3 == Decimal("0.5")

    def test_weight_required_when_item_has_none(self, db_session, intake, items):
        with pytest.raises(ValidationError, match="berat wajib"):
            intake(item_id=items["kosong"].id, berat_kg=None)
        assert db_session.query(StockMovement).count() == 0

    def test_backdated_intake_accrues_immediately(self, intake):
        movement = intake(tanggal_masuk="2024-02-25")
        assert movement.hari_simpan == 5
        assert movement.total_biaya == Decimal("75000.00")

    def test_unknown_line_rejected(self, db_session, intake):
        with pytest.raises(ValidationError):
            intake(lokasi="Gudang Belakang")
        assert db_session.query(StockMovement).count() == 0

    def test_unknown_item(self, intake):
        with pytest.raises(NotFoundError):
            intake(item_id=999)

    def test_acting_user_recorded(self, db_session, intake):
        movement = intake()
        entry = db_session.query(ActivityLog).filter(
            ActivityLog.entity_table == "stock_movements",
            ActivityLog.record_id == str(movement.id),
        ).one()
        assert entry.changed_by == "petugas"
        assert entry.new_data["message"] == "Barang Kopi Arabika masuk ke Lini 1"


class TestTransfer:

    def test_transfer_on_day_eight_applies_lini2_tariff(self, db_session, intake, activity_of):
        movement = intake()
        result = LineTransferService(db_session).transfer_to_lini2(
            movement.id, now=DAY_0 + timedelta(days=8)
        )

        assert result["lokasi"] == "Lini 2"
        assert result["status"] == MovementStatus.DIPINDAHKAN
        assert result["tanggal_pindah"] == date(2024, 3, 9)
        assert result["hari_simpan"] == 8
        # 10 kg * 2500 * 8, the whole stay at the new line's tariff
        assert result["total_biaya"] == Decimal("200000.00")

        db_session.refresh(movement)
        assert movement.lokasi == "Lini 2"
        assert movement.lokasi_asal == "Lini 1"
        assert movement.total_biaya == Decimal("200000.00")
        assert activity_of("stock_movements", movement.id) == ["INSERT", "TRANSFER_TO_LINI2"]

    @pytest.mark.parametrize("first_step", ["transfer", "pickup"])
    def test_second_transfer_rejected_without_changes(self, db_session, intake, activity_of, first_step):
        movement = intake()
        service = LineTransferService(db_session)
        if first_step == "transfer":
            service.transfer_to_lini2(movement.id, now=DAY_0 + timedelta(days=2))
        else:
            service.mark_picked_up(movement.id, now=DAY_0 + timedelta(days=2))
        db_session.refresh(movement)
        snapshot = (movement.status, movement.lokasi, movement.total_biaya, movement.tanggal_pindah)
        log_before = activity_of("stock_movements", movement.id)

        with pytest.raises(ValidationError):
            service.transfer_to_lini2(movement.id, now=DAY_0 + timedelta(days=4))

        db_session.refresh(movement)
        assert (movement.status, movement.lokasi, movement.total_biaya, movement.tanggal_pindah) == snapshot
        assert activity_of("stock_movements", movement.id) == log_before

    def test_only_lini1_goods_transfer(self, db_session, intake):
        movement = intake(lokasi="Lini 2")
        with pytest.raises(ValidationError):
            LineTransferService(db_session).transfer_to_lini2(movement.id, now=DAY_0)

    def test_missing_movement(self, db_session):
        with pytest.raises(NotFoundError):
            LineTransferService(db_session).transfer_to_lini2(42)


class TestPickup:

    def test_pickup_freezes_cached_cost(self, db_session, intake, activity_of):
        movement = intake()
        service = LineTransferService(db_session, "supplier-desk")
        service.transfer_to_lini2(movement.id, now=DAY_0 + timedelta(days=3))

        result = service.mark_picked_up(movement.id, now=DAY_0 + timedelta(days=6))

        assert result["status"] == MovementStatus.DIAMBIL
        assert result["tanggal_keluar"] == date(2024, 3, 7)
        # cost as of the transfer; pickup does not recompute
        assert result["total_biaya"] == Decimal("75000.00")
        assert activity_of("stock_movements", movement.id)[-1] == "PICKED_BY_SUPPLIER"

    def test_pickup_directly_from_aktif(self, db_session, intake):
        movement = intake()
        result = LineTransferService(db_session).mark_picked_up(movement.id, now=DAY_0 + timedelta(days=1))
        assert result["status"] == MovementStatus.DIAMBIL

    def test_diambil_is_absorbing(self, db_session, intake):
        movement = intake()
        service = LineTransferService(db_session)
        service.mark_picked_up(movement.id, now=DAY_0)

        with pytest.raises(ValidationError):
            service.mark_picked_up(movement.id, now=DAY_0 + timedelta(days=1))
        with pytest.raises(ValidationError):
            service.recompute(movement.id, now=DAY_0 + timedelta(days=1))


class TestRecompute:

    def test_recompute_keeps_status_and_line(self, db_session, intake):
        movement = intake()
        result = LineTransferService(db_session).recompute(movement.id, now=DAY_0 + timedelta(days=2))

        assert result["total_biaya"] == Decimal("30000.00")
        db_session.refresh(movement)
        assert movement.status == MovementStatus.AKTIF
        assert movement.lokasi == "Lini 1"


class TestLedgerQueries:

    def test_list_filters_by_line_and_status(self, db_session, intake):
        first = intake()
        intake()
        LineTransferService(db_session).transfer_to_lini2(first.id, now=DAY_0 + timedelta(days=1))

        ledger = StockLedgerService(db_session)
        assert [m.id for m in ledger.list_line_movements(lokasi="Lini 2")] == [first.id]
        assert len(ledger.list_line_movements(status=MovementStatus.AKTIF)) == 1
        assert len(ledger.list_line_movements()) == 2

    def test_invalid_status_filter(self, db_session):
        with pytest.raises(ValidationError):
            StockLedgerService(db_session).list_line_movements(status="Hilang")
