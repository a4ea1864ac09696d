"""Customs reporting API endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gudang.api import deps
from gudang.schemas.common import ok
from gudang.schemas.customs import CustomsDocument, CustomsReportRequest
from gudang.services.customs import CustomsReportingService

router = APIRouter()


def get_customs_service(
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
) -> CustomsReportingService:
    return CustomsReportingService(db, acting_user)


@router.post("/report", status_code=status.HTTP_201_CREATED)
def report_movements(
    request: CustomsReportRequest,
    service: CustomsReportingService = Depends(get_customs_service),
):
    """
    Send a BC23 (inbound) or BC40 (outbound) document to CEISA.

    On rejection the document stays stored as failed and 502 is returned.
    """
    document = service.report_movements(
        request.movement_ids,
        request.document_type.value,
        reference_number=request.reference_number,
        notes=request.notes,
    )
    return ok(CustomsDocument.model_validate(document))


@router.get("/documents")
async def list_documents(
    doc_status: Optional[str] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    service: CustomsReportingService = Depends(get_customs_service),
):
    documents = service.list_documents(status=doc_status, limit=limit)
    return ok([CustomsDocument.model_validate(d) for d in documents])


@router.get("/documents/{id_dokumen}")
async def get_document(
    id_dokumen: str,
    service: CustomsReportingService = Depends(get_customs_service),
):
    return ok(CustomsDocument.model_validate(service.get_document(id_dokumen)))


@router.post("/documents/{id_dokumen}/resend")
def resend_document(
    id_dokumen: str,
    service: CustomsReportingService = Depends(get_customs_service),
):
    return ok(CustomsDocument.model_validate(service.resend(id_dokumen)))
