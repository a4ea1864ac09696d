"""
API Integration Tests
End-to-end request handling, response envelope and error mapping
"""

import asyncio
from decimal import Decimal

import httpx
import pytest

from gudang.api.v1.customs import get_customs_service
from gudang.core.config import settings
from gudang.main import app
from gudang.models import ActivityLog
from gudang.services.customs import CeisaClient, CustomsReportingService

API = "/api/v1"


def test_info(client):
    response = client.get("/info")
    assert response.status_code == 200
    assert response.json()["tariffs"]["line_tariff_per_kg"] == {"Lini 1": "1500", "Lini 2": "2500"}


class TestStorageEndpoints:

    def test_intake_transfer_pickup_flow(self, client, items):
        response = client.post(
            f"{API}/storage/intake",
            json={"item_id": items["kopi"].id, "berat_kg": "10"},
            headers={"X-Acting-User": "operator-1"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        movement = body["data"]
        assert movement["lokasi"] == "Lini 1"
        assert movement["status"] == "Aktif"
        movement_id = movement["id"]

        response = client.post(f"{API}/storage/calculate", json={"stock_movement_id": movement_id})
        assert response.status_code == 200
        assert response.json()["data"]["hari_simpan"] == 0

        response = client.post(f"{API}/storage/movements/{movement_id}/transfer")
        assert response.status_code == 200
        assert response.json()["data"]["lokasi"] == "Lini 2"

        response = client.post(f"{API}/storage/movements/{movement_id}/pickup")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "Diambil"

        response = client.post(f"{API}/storage/movements/{movement_id}/transfer")
        assert response.status_code == 422
        assert response.json() == {
            "success": False,
            "error": "validation_failure",
            "message": f"Cannot transfer movement {movement_id} with status Diambil",
        }

        history = client.get(f"{API}/storage/movements/{movement_id}/costs").json()["data"]
        assert len(history) == 3

    def test_acting_user_header_reaches_activity_log(self, client, db_session, items):
        client.post(
            f"{API}/storage/intake",
            json={"item_id": items["kopi"].id},
            headers={"X-Acting-User": "operator-1"},
        )
        actors = {row.changed_by for row in db_session.query(ActivityLog).all()}
        assert "operator-1" in actors

    def test_default_actor(self, client, db_session, items):
        client.post(f"{API}/storage/intake", json={"item_id": items["kopi"].id})
        entry = db_session.query(ActivityLog).filter(ActivityLog.action_type == "INSERT").one()
        assert entry.changed_by == "system"

    def test_missing_movement_is_404(self, client):
        response = client.post(f"{API}/storage/calculate", json={"stock_movement_id": 404})
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_error_envelope_is_documented(self, client):
        missing = client.get(f"{API}/storage/movements/404").json()
        assert missing == {
            "success": False,
            "error": "not_found",
            "message": "Stock movement 404 not found",
        }

        paths = client.get(settings.OPENAPI_URL).json()["paths"]
        responses = paths[f"{API}/storage/movements/{{movement_id}}"]["get"]["responses"]
        assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
        assert "502" in paths[f"{API}/customs/report"]["post"]["responses"]

    def test_preview_and_daily_run(self, client, items):
        movement_id = client.post(
            f"{API}/storage/intake",
            json={"item_id": items["kopi"].id, "tanggal_masuk": "2020-01-01"},
        ).json()["data"]["id"]

        preview = client.get(f"{API}/storage/movements/{movement_id}/cost-preview").json()["data"]
        assert Decimal(str(preview["tarif_per_kg"])) == Decimal("1500")

        run = client.post(f"{API}/storage/daily-run").json()["data"]
        assert run["total_processed"] == 1
        assert run["success_count"] == 1

        summaries = client.get(f"{API}/storage/daily-summaries").json()["data"]
        assert len(summaries) == 1
        assert summaries[0]["total_aktif"] == 1

    def test_request_validation_uses_envelope(self, client):
        response = client.post(f"{API}/storage/intake", json={"berat_kg": "10"})
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failure"


class TestInventoryEndpoints:

    def test_put_away_capacity_and_pick(self, client, items, warehouse_layout):
        lot_id = warehouse_layout["lot_a"].id
        payload = {"item_id": items["kopi"].id, "lot_id": lot_id, "quantity": 60, "batch_code": "B-1"}

        response = client.post(f"{API}/inventory/put-away", json=payload)
        assert response.status_code == 201
        assert response.json()["data"]["lot_current_load"] == 60

        response = client.post(f"{API}/inventory/put-away", json={**payload, "quantity": 50, "batch_code": "B-2"})
        assert response.status_code == 422

        lot = client.get(f"{API}/locations/lots/{lot_id}").json()["data"]
        assert lot["current_load"] == 60
        assert lot["available_capacity"] == 40

        response = client.post(f"{API}/inventory/pick", json={"item_id": items["kopi"].id, "quantity": 25})
        assert response.status_code == 200
        assert response.json()["data"]["legs"][0]["quantity"] == 25

    def test_put_away_requires_a_lot(self, client, items):
        response = client.post(
            f"{API}/inventory/put-away",
            json={"item_id": items["kopi"].id, "quantity": 5, "batch_code": "B-1"},
        )
        assert response.status_code == 422

    def test_location_hierarchy_creation(self, client):
        warehouse = client.post(f"{API}/locations/warehouses", json={"name": "Gudang Baru"}).json()["data"]
        zone = client.post(f"{API}/locations/zones", json={"warehouse_id": warehouse["id"], "name": "Z1"}).json()["data"]
        rack = client.post(f"{API}/locations/racks", json={"zone_id": zone["id"], "code": "R1"}).json()["data"]
        response = client.post(f"{API}/locations/lots", json={"rack_id": rack["id"], "code": "R1-01", "capacity": 10})

        assert response.status_code == 201
        assert client.get(f"{API}/locations/lots/scan/R1-01").json()["data"]["capacity"] == 10


class TestCustomsEndpoints:

    @pytest.fixture
    def ceisa_status(self, db_session):
        """Route the customs service to a mock CEISA answering with the given status"""
        def _configure(status_code: int, on_request=None):
            def handler(request):
                if on_request is not None:
                    on_request(request)
                return httpx.Response(status_code, json={"message": "hasil"})

            def override():
                client = CeisaClient(httpx.Client(transport=httpx.MockTransport(handler)))
                return CustomsReportingService(db_session, client=client)

            app.dependency_overrides[get_customs_service] = override
        return _configure

    def _intake(self, client, items):
        return client.post(f"{API}/storage/intake", json={"item_id": items["kopi"].id}).json()["data"]["id"]

    def test_report_success(self, client, items, ceisa_status):
        ceisa_status(200)
        movement_id = self._intake(client, items)

        response = client.post(
            f"{API}/customs/report",
            json={"movement_ids": [movement_id], "document_type": "BC23"},
        )
        assert response.status_code == 201
        document = response.json()["data"]
        assert document["status"] == "sent"

        fetched = client.get(f"{API}/customs/documents/{document['id_dokumen']}")
        assert fetched.json()["data"]["document_number"] == document["document_number"]

    def test_report_rejected_is_502(self, client, items, ceisa_status):
        ceisa_status(500)
        movement_id = self._intake(client, items)

        response = client.post(
            f"{API}/customs/report",
            json={"movement_ids": [movement_id], "document_type": "BC23"},
        )
        assert response.status_code == 502
        assert response.json()["error"] == "upstream_failure"

        documents = client.get(f"{API}/customs/documents", params={"status": "failed"}).json()["data"]
        assert len(documents) == 1

    def test_ceisa_call_runs_off_the_event_loop(self, client, items, ceisa_status):
        loop_running = []

        def record(request):
            try:
                asyncio.get_running_loop()
                loop_running.append(True)
            except RuntimeError:
                loop_running.append(False)

        ceisa_status(200, on_request=record)
        movement_id = self._intake(client, items)

        response = client.post(
            f"{API}/customs/report",
            json={"movement_ids": [movement_id], "document_type": "BC23"},
        )
        assert response.status_code == 201
        assert loop_running == [False]
