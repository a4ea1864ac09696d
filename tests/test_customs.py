"""
Customs Reporting Tests
CEISA document creation, send outcome and manual resend
"""

from datetime import datetime

import httpx
import pytest

from gudang.core.config import settings
from gudang.core.exceptions import NotFoundError, UpstreamError, ValidationError
from gudang.models import ActivityLog, CustomsDocument, StockMovement, CustomsDocStatus
from gudang.services.customs import CeisaClient, CustomsReportingService
from gudang.services.picking import PickingService
from gudang.services.putaway import PutAwayService

NOW = datetime(2024, 3, 1, 8, 0, 0)


class FakeCeisa:
    """Records requests and answers with a configurable status"""

    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {"status": "accepted", "nomor_aju": "000123"}
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> CeisaClient:
        return CeisaClient(httpx.Client(transport=httpx.MockTransport(self)))


@pytest.fixture
def outbound_movements(db_session, items, warehouse_layout):
    PutAwayService(db_session).put_away({
        "item_id": items["kopi"].id,
        "lot_id": warehouse_layout["lot_a"].id,
        "quantity": 20,
        "batch_code": "B-001",
    }, now=NOW)
    result = PickingService(db_session).pick(
        {"item_id": items["kopi"].id, "quantity": 8, "reference_number": "SO-77"}, now=NOW
    )
    return [leg["movement_id"] for leg in result["legs"]]


def test_report_sends_document(db_session, outbound_movements, monkeypatch):
    monkeypatch.setattr(settings, "CEISA_API_TOKEN", "secret-token")
    ceisa = FakeCeisa()
    service = CustomsReportingService(db_session, "bea-cukai", client=ceisa.client())

    document = service.report_movements(outbound_movements, "BC40", now=NOW)

    assert document.status == CustomsDocStatus.SENT
    assert document.document_number.startswith("BC40-")
    assert document.ceisa_response == {"status": "accepted", "nomor_aju": "000123"}
    assert document.payload["transaction_type"] == "OUTBOUND"
    assert document.payload["reference_number"] == "SO-77"
    assert document.payload["items"] == [
        {"sku": "SKU-KOPI", "name": "Kopi Arabika", "quantity": 8, "unit": "karung"}
    ]

    request = ceisa.requests[0]
    assert request.method == "POST"
    assert str(request.url) == settings.CEISA_API_ENDPOINT
    assert request.headers["Authorization"] == "Bearer secret-token"

    movement = db_session.get(StockMovement, outbound_movements[0])
    assert movement.ceisa_status == "sent"

    actions = [
        row.action_type for row in db_session.query(ActivityLog)
        .filter(ActivityLog.record_id == document.id_dokumen)
        .order_by(ActivityLog.id)
    ]
    assert actions == ["CEISA_SEND_REQUEST", "CEISA_SEND_RESPONSE"]


def test_rejection_keeps_failed_marker(db_session, outbound_movements):
    ceisa = FakeCeisa(status_code=400, body={"message": "NPWP tidak valid"})
    service = CustomsReportingService(db_session, client=ceisa.client())

    with pytest.raises(UpstreamError, match="NPWP tidak valid"):
        service.report_movements(outbound_movements, "BC40", now=NOW)

    document = db_session.query(CustomsDocument).one()
    assert document.status == CustomsDocStatus.FAILED
    assert document.ceisa_response == {"message": "NPWP tidak valid"}
    assert db_session.get(StockMovement, outbound_movements[0]).ceisa_status == "failed"

    response_log = db_session.query(ActivityLog).filter(
        ActivityLog.action_type == "CEISA_SEND_RESPONSE"
    ).one()
    assert response_log.new_data["error_message"] == "NPWP tidak valid"


def test_transport_error_is_a_failed_send(db_session, outbound_movements):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = CeisaClient(httpx.Client(transport=httpx.MockTransport(unreachable)))
    service = CustomsReportingService(db_session, client=client)

    with pytest.raises(UpstreamError):
        service.report_movements(outbound_movements, "BC40", now=NOW)
    assert db_session.query(CustomsDocument).one().status == CustomsDocStatus.FAILED


def test_resend_after_failure(db_session, outbound_movements):
    failing = FakeCeisa(status_code=503, body={"message": "maintenance"})
    with pytest.raises(UpstreamError):
        CustomsReportingService(db_session, client=failing.client()).report_movements(
            outbound_movements, "BC40", now=NOW
        )
    id_dokumen = db_session.query(CustomsDocument).one().id_dokumen

    healthy = FakeCeisa()
    service = CustomsReportingService(db_session, client=healthy.client())
    document = service.resend(id_dokumen)

    assert document.status == CustomsDocStatus.SENT
    assert db_session.get(StockMovement, outbound_movements[0]).ceisa_status == "sent"
    with pytest.raises(ValidationError):
        service.resend(id_dokumen)


def test_invalid_requests(db_session, outbound_movements):
    service = CustomsReportingService(db_session, client=FakeCeisa().client())

    with pytest.raises(ValidationError):
        service.report_movements(outbound_movements, "BC99")
    with pytest.raises(ValidationError):
        service.report_movements([], "BC23")
    with pytest.raises(NotFoundError):
        service.report_movements([9999], "BC23")
    with pytest.raises(NotFoundError):
        service.get_document("does-not-exist")
    assert db_session.query(CustomsDocument).count() == 0
