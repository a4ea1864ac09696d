"""Location hierarchy API endpoints: warehouses, zones, racks and lots"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gudang.api import deps
from gudang.schemas.common import ok
from gudang.schemas.location import (
    Lot, LotCreate, LoadMismatch, Rack, RackCreate, Warehouse, WarehouseCreate, Zone, ZoneCreate
)
from gudang.services.location_registry import LocationRegistryService

router = APIRouter()


@router.get("/warehouses")
async def list_warehouses(db: Session = Depends(deps.get_db)):
    service = LocationRegistryService(db)
    return ok([Warehouse.model_validate(w) for w in service.list_warehouses()])


@router.post("/warehouses", status_code=status.HTTP_201_CREATED)
async def create_warehouse(
    warehouse_in: WarehouseCreate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    warehouse = LocationRegistryService(db, acting_user).create_warehouse(warehouse_in.model_dump())
    return ok(Warehouse.model_validate(warehouse))


@router.post("/zones", status_code=status.HTTP_201_CREATED)
async def create_zone(
    zone_in: ZoneCreate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    zone = LocationRegistryService(db, acting_user).create_zone(zone_in.model_dump())
    return ok(Zone.model_validate(zone))


@router.post("/racks", status_code=status.HTTP_201_CREATED)
async def create_rack(
    rack_in: RackCreate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    rack = LocationRegistryService(db, acting_user).create_rack(rack_in.model_dump())
    return ok(Rack.model_validate(rack))


@router.get("/lots")
async def list_lots(
    warehouse_id: Optional[int] = Query(None, description="Only lots of this warehouse"),
    db: Session = Depends(deps.get_db),
):
    lots = LocationRegistryService(db).list_lots(warehouse_id)
    return ok([Lot.model_validate(lot) for lot in lots])


@router.post("/lots", status_code=status.HTTP_201_CREATED)
async def create_lot(
    lot_in: LotCreate,
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """
    Create a lot under a rack.

    New lots start empty; stock arrives through put-away.
    """
    lot = LocationRegistryService(db, acting_user).create_lot(lot_in.model_dump())
    return ok(Lot.model_validate(lot))


@router.get("/lots/scan/{code}")
async def scan_lot(code: str, db: Session = Depends(deps.get_db)):
    """Resolve a scanned lot code"""
    return ok(Lot.model_validate(LocationRegistryService(db).find_lot_by_code(code)))


@router.get("/lots/{lot_id}")
async def get_lot(lot_id: int, db: Session = Depends(deps.get_db)):
    return ok(Lot.model_validate(LocationRegistryService(db).get_lot(lot_id)))


@router.post("/lots/reconcile")
async def reconcile_lots(
    fix: bool = Query(False, description="Rewrite counters to the batch totals"),
    db: Session = Depends(deps.get_db),
    acting_user: str = Depends(deps.get_acting_user),
):
    """Report lots whose load counter differs from the sum of their batches"""
    mismatches = LocationRegistryService(db, acting_user).reconcile_loads(fix=fix)
    return ok([LoadMismatch(**m) for m in mismatches])
