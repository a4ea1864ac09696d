"""
Customs Reporting Service
Builds BC 2.3 / BC 4.0 documents from stock movements and sends them to
CEISA. The adapter is an external collaborator; only the outcome is recorded
here.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy.orm import Session

from gudang.core.clock import to_utc_naive, utcnow
from gudang.core.config import settings
from gudang.core.database import unit_of_work
from gudang.core.exceptions import NotFoundError, UpstreamError, ValidationError
from gudang.core.logging import get_logger
from gudang.models.customs import CustomsDocument, CustomsDocStatus
from gudang.models.movement import StockMovement
from gudang.schemas.activity import CeisaRequestSent, CeisaResponseReceived
from gudang.services.activity import log_activity

logger = get_logger("business")

TRANSACTION_TYPES = {
    "BC23": "INBOUND",
    "BC40": "OUTBOUND",
}


class CeisaClient:
    """Single-attempt HTTP client for the CEISA document endpoint"""

    def __init__(self, client: Optional[httpx.Client] = None):
        self._client = client

    def send(self, id_dokumen: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.CEISA_API_TOKEN or ''}",
        }
        try:
            if self._client is not None:
                response = self._client.post(settings.CEISA_API_ENDPOINT, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=settings.CEISA_TIMEOUT_SECONDS) as client:
                    response = client.post(settings.CEISA_API_ENDPOINT, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"CEISA request for {id_dokumen} failed: {e}")
            return {"success": False, "message": f"CEISA unreachable: {e}", "data": None}

        try:
            data = response.json()
        except ValueError:
            data = {"message": response.text}

        if response.is_success:
            return {"success": True, "message": "Document sent to CEISA successfully", "data": data}

        logger.warning(f"CEISA rejected {id_dokumen} with HTTP {response.status_code}")
        return {"success": False, "message": "Failed to send document to CEISA", "data": data}


class CustomsReportingService:

    def __init__(
        self,
        db: Session,
        acting_user: Optional[str] = None,
        client: Optional[CeisaClient] = None,
    ):
        self.db = db
        self.acting_user = acting_user or settings.DEFAULT_ACTOR
        self.client = client or CeisaClient()

    def get_document(self, id_dokumen: str) -> CustomsDocument:
        document = self.db.query(CustomsDocument).filter(CustomsDocument.id_dokumen == id_dokumen).first()
        if not document:
            raise NotFoundError(f"Customs document {id_dokumen} not found")
        return document

    def list_documents(self, status: Optional[str] = None, limit: int = 100) -> List[CustomsDocument]:
        query = self.db.query(CustomsDocument)
        if status:
            query = query.filter(CustomsDocument.status == status)
        return query.order_by(CustomsDocument.id.desc()).limit(limit).all()

    def report_movements(
        self,
        movement_ids: List[int],
        document_type: str,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CustomsDocument:
        """
        Report movements to CEISA as one document.

        The draft is committed before the call; the sent or failed marker is
        committed after it. A failed send raises UpstreamError.
        """
        now = to_utc_naive(now) or utcnow()
        if document_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unsupported customs document type: {document_type}")
        if not movement_ids:
            raise ValidationError("At least one stock movement is required")

        movements = []
        for movement_id in movement_ids:
            movement = self.db.get(StockMovement, movement_id)
            if not movement:
                raise NotFoundError(f"Stock movement {movement_id} not found")
            movements.append(movement)

        reference_number = reference_number or next(
            (m.reference_number for m in movements if m.reference_number), None
        )
        payload = {
            "transaction_type": TRANSACTION_TYPES[document_type],
            "transaction_id": ",".join(str(m.id) for m in movements),
            "items": [
                {
                    "sku": m.item.sku if m.item else None,
                    "name": m.item.name if m.item else None,
                    "quantity": m.quantity,
                    "unit": m.item.unit if m.item else None,
                }
                for m in movements
            ],
            "reference_number": reference_number,
            "notes": notes,
            "timestamp": now.isoformat() + "Z",
        }

        with unit_of_work(self.db):
            document = CustomsDocument(
                id_dokumen=str(uuid.uuid4()),
                document_type=document_type,
                document_number=f"{document_type}-{int(now.timestamp() * 1000)}",
                status=CustomsDocStatus.DRAFT,
                payload=payload,
                movement_ids=[m.id for m in movements],
            )
            self.db.add(document)

        return self._send(document)

    def resend(self, id_dokumen: str) -> CustomsDocument:
        """Manual retry of a draft or failed document"""
        document = self.get_document(id_dokumen)
        if document.status == CustomsDocStatus.SENT:
            raise ValidationError(f"Customs document {id_dokumen} was already sent")
        return self._send(document)

    def _send(self, document: CustomsDocument) -> CustomsDocument:
        with unit_of_work(self.db):
            log_activity(
                self.db,
                entity_table="customs_docs",
                record_id=document.id_dokumen,
                payload=CeisaRequestSent(
                    document_type=document.document_type,
                    document_number=document.document_number,
                    message=f"Dokumen {document.document_number} dikirim ke CEISA",
                ),
                changed_by=self.acting_user,
            )

        result = self.client.send(document.id_dokumen, document.payload)
        success = result["success"]
        data = result.get("data")
        error_message = None
        if not success:
            error_message = (data or {}).get("message") if isinstance(data, dict) else None
            error_message = error_message or result["message"]

        new_status = CustomsDocStatus.SENT if success else CustomsDocStatus.FAILED
        with unit_of_work(self.db):
            document.status = new_status
            document.ceisa_response = data
            for movement_id in document.movement_ids or []:
                movement = self.db.get(StockMovement, movement_id)
                if movement is not None:
                    movement.ceisa_status = new_status

            log_activity(
                self.db,
                entity_table="customs_docs",
                record_id=document.id_dokumen,
                payload=CeisaResponseReceived(
                    status="success" if success else "failed",
                    error_message=error_message,
                    message=result["message"],
                ),
                changed_by=self.acting_user,
            )

        if not success:
            raise UpstreamError(f"CEISA rejected {document.document_number}: {error_message}")
        return document
