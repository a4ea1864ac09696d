"""Inventory API endpoints: items, batches, put-away, picking and relocation"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gudang.api import deps
from gudang.core.clock import today
from gudang.schemas.common import ok
from gudang.schemas.inventory import (
    BatchRelocation, BatchStatusEnum, BatchStatusUpdate, ExpireRequest, Item, ItemBatch, ItemCreate,
    PickRequest, PickResult, PutAwayRequest, PutAwayResult, RelocationRequest
)
from gudang.services.catalog import CatalogService
from gudang.services.picking import PickingService
from gudang.services.putaway import PutAwayService
from gudang.services.relocation import RelocationService

router = APIRouter()


# Items

@router.get("/items")
async def list_items(
    pagination: dict = Depends(deps.get_pagination_params),
    db: Session = Depends(deps.get_db),
):
    items = CatalogService(db).list_items(**pagination)
    return ok([Item.model_validate(i) for i in items])


@router.post("/items", status_code=status.HTTP_201_CREATED)
async def create_item(
    item_in: ItemCreate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    item = CatalogService(db, acting_user).create_item(item_in.model_dump())
    return ok(Item.model_validate(item))


@router.get("/items/{item_id}")
async def get_item(item_id: int, db: Session = Depends(deps.get_db)):
    return ok(Item.model_validate(CatalogService(db).get_item(item_id)))


@router.get("/items/{item_id}/eligible-batches")
async def eligible_batches(
    item_id: int,
    warehouse_id: Optional[int] = Query(None),
    db: Session = Depends(deps.get_db),
):
    """
    Batches available for picking, in FEFO order.

    Earliest expiry first; batches without expiry come last.
    """
    CatalogService(db).get_item(item_id)
    batches = PickingService(db).eligible_batches(item_id, warehouse_id)
    return ok([ItemBatch.model_validate(b) for b in batches])


@router.get("/items/{item_id}/scan/{code}")
async def scan_batch(
    item_id: int,
    code: str,
    warehouse_id: Optional[int] = Query(None),
    db: Session = Depends(deps.get_db),
):
    """Resolve a scanned batch code or lot code"""
    batch = PickingService(db).scan(item_id, code, warehouse_id)
    return ok(ItemBatch.model_validate(batch))


# Batches

@router.get("/batches")
async def list_batches(
    item_id: Optional[int] = Query(None),
    lot_id: Optional[int] = Query(None),
    batch_status: Optional[BatchStatusEnum] = Query(None, alias="status"),
    db: Session = Depends(deps.get_db),
):
    batches = CatalogService(db).list_batches(
        item_id=item_id,
        lot_id=lot_id,
        status=batch_status.value if batch_status else None,
    )
    return ok([ItemBatch.model_validate(b) for b in batches])


@router.get("/batches/{batch_id}")
async def get_batch(batch_id: int, db: Session = Depends(deps.get_db)):
    return ok(ItemBatch.model_validate(CatalogService(db).get_batch(batch_id)))


@router.put("/batches/{batch_id}/status")
async def set_batch_status(
    batch_id: int,
    status_in: BatchStatusUpdate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    batch = CatalogService(db, acting_user).set_batch_status(batch_id, status_in.status.value)
    return ok(ItemBatch.model_validate(batch))


@router.post("/batches/expire")
async def expire_batches(
    request: ExpireRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """Mark active batches past expiry as expired"""
    expired = CatalogService(db, acting_user).expire_batches(request.as_of or today())
    return ok({"expired_batch_ids": expired, "count": len(expired)})


# Allocator

@router.post("/put-away", status_code=status.HTTP_201_CREATED)
async def put_away(
    request: PutAwayRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """
    Store received goods at a lot.

    Rejected without any change when the lot lacks capacity.
    """
    result = PutAwayService(db, acting_user).put_away(request.model_dump())
    return ok(PutAwayResult(**result))


@router.post("/pick")
async def pick(
    request: PickRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """
    Pick an order line.

    Without batch_id the quantity is sliced across batches in FEFO order.
    """
    result = PickingService(db, acting_user).pick(request.model_dump())
    return ok(PickResult(**result))


@router.post("/relocate", status_code=status.HTTP_201_CREATED)
async def relocate(
    request: RelocationRequest,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    relocation = RelocationService(db, acting_user).relocate(request.model_dump())
    return ok(BatchRelocation.model_validate(relocation))


@router.get("/relocations")
async def relocation_history(
    batch_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(deps.get_db),
):
    relocations = RelocationService(db).history(batch_id=batch_id, limit=limit)
    return ok([BatchRelocation.model_validate(r) for r in relocations])
