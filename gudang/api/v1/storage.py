"""Storage line API endpoints: intake, cost engine, line transfer and daily job"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gudang.api import deps
from gudang.schemas.common import ok
from gudang.schemas.storage import (
    CostPreview, CostResult, DailyRunResult, DailySummary, IntakeRequest, MovementIdRequest,
    PickupResult, StockMovement, StorageCost, TransferResult
)
from gudang.services.daily_job import DailyStorageJob
from gudang.services.line_transfer import LineTransferService
from gudang.services.stock_ledger import StockLedgerService
from gudang.services.storage_cost import StorageCostEngine

router = APIRouter()


@router.post("/intake", status_code=status.HTTP_201_CREATED)
async def register_intake(
    request: IntakeRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """
    Barang masuk ke Lini 1.

    Creates an Aktif movement and runs its first cost calculation.
    """
    movement = StockLedgerService(db, acting_user).register_intake(request.model_dump())
    return ok(StockMovement.model_validate(movement))


@router.get("/movements")
async def list_movements(
    lokasi: Optional[str] = Query(None, description="Storage line, e.g. 'Lini 1'"),
    movement_status: Optional[str] = Query(None, alias="status"),
    pagination: dict = Depends(deps.get_pagination_params),
    db: Session = Depends(deps.get_db),
):
    movements = StockLedgerService(db).list_line_movements(lokasi=lokasi, status=movement_status, **pagination)
    return ok([StockMovement.model_validate(m) for m in movements])


@router.get("/movements/{movement_id}")
async def get_movement(movement_id: int, db: Session = Depends(deps.get_db)):
    return ok(StockMovement.model_validate(StockLedgerService(db).get_movement(movement_id)))


@router.post("/calculate")
async def calculate_storage_cost(
    request: MovementIdRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """calculateStorageCost: recompute and persist cost as of now"""
    result = StorageCostEngine(db, acting_user).calculate_storage_cost(request.stock_movement_id)
    return ok(CostResult(**result))


@router.get("/movements/{movement_id}/cost-preview")
async def preview_cost(movement_id: int, db: Session = Depends(deps.get_db)):
    """Cost as of now, computed on read without writing"""
    breakdown = StorageCostEngine(db).preview(movement_id)
    return ok(CostPreview(**breakdown.as_dict()))


@router.get("/movements/{movement_id}/costs")
async def cost_history(movement_id: int, db: Session = Depends(deps.get_db)):
    rows = StorageCostEngine(db).cost_history(movement_id)
    return ok([StorageCost.model_validate(r) for r in rows])


@router.post("/movements/{movement_id}/transfer")
async def transfer_to_lini2(
    movement_id: int,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    result = LineTransferService(db, acting_user).transfer_to_lini2(movement_id)
    return ok(TransferResult(**result))


@router.post("/movements/{movement_id}/pickup")
async def mark_picked_up(
    movement_id: int,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    result = LineTransferService(db, acting_user).mark_picked_up(movement_id)
    return ok(PickupResult(**result))


@router.post("/movements/{movement_id}/recompute")
async def recompute(
    movement_id: int,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """Hitung Ulang"""
    result = LineTransferService(db, acting_user).recompute(movement_id)
    return ok(CostResult(**result))


@router.post("/daily-run")
async def run_daily_storage_calc(db: Session = Depends(deps.get_db)):
    """
    runDailyStorageCalc

    Normally triggered by the scheduler; exposed for manual runs.
    """
    result = DailyStorageJob(db).run()
    return ok(DailyRunResult(**result))


@router.get("/daily-summaries")
async def list_daily_summaries(
    limit: int = Query(30, ge=1, le=366),
    db: Session = Depends(deps.get_db),
):
    summaries = DailyStorageJob(db).list_summaries(limit)
    return ok([DailySummary.model_validate(s) for s in summaries])
