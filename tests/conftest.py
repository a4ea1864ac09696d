"""
Test Configuration and Fixtures
Shared testing infrastructure for Gudang
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from gudang.core.database import get_db, Base
from gudang.main import app
from gudang.models import ActivityLog
from gudang.services.catalog import CatalogService
from gudang.services.location_registry import LocationRegistryService

# Test database URL - in-memory SQLite shared across connections
TEST_DATABASE_URL = "sqlite://"

# Create test engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)



@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def warehouse_layout(db_session: Session) -> dict:
    """
    Two warehouses:
      Gudang Utama / Zona A / A-01 with lots A-01-01 (100) and A-01-02 (100)
      Gudang Timur / Zona T / T-01 with lot T-01-01 (50)
    """
    registry = LocationRegistryService(db_session, "test")

    main = registry.create_warehouse({"name": "Gudang Utama", "location": "Jakarta"})
    zone = registry.create_zone({"warehouse_id": main.id, "name": "Zona A"})
    rack = registry.create_rack({"zone_id": zone.id, "code": "A-01"})
    lot_a = registry.create_lot({"rack_id": rack.id, "code": "A-01-01", "capacity": 100})
    lot_b = registry.create_lot({"rack_id": rack.id, "code": "A-01-02", "capacity": 100})

    east = registry.create_warehouse({"name": "Gudang Timur", "location": "Surabaya"})
    east_zone = registry.create_zone({"warehouse_id": east.id, "name": "Zona T"})
    east_rack = registry.create_rack({"zone_id": east_zone.id, "code": "T-01"})
    lot_east = registry.create_lot({"rack_id": east_rack.id, "code": "T-01-01", "capacity": 50})

    return {
        "warehouse": main,
        "east_warehouse": east,
        "lot_a": lot_a,
        "lot_b": lot_b,
        "lot_east": lot_east,
    }


@pytest.fixture
def items(db_session: Session) -> dict:
    """Catalog items with and without default weight"""
    catalog = CatalogService(db_session, "test")
    return {
        "kopi": catalog.create_item({
            "sku": "SKU-KOPI", "name": "Kopi Arabika", "unit": "karung",
            "actual_weight_kg": "10", "volume_m3": "0",
        }),
        "mesin": catalog.create_item({
            "sku": "SKU-MESIN", "name": "Suku Cadang Mesin", "unit": "peti",
            "actual_weight_kg": "25", "volume_m3": "0.5",
        }),
        "kosong": catalog.create_item({
            "sku": "SKU-KOSONG", "name": "Barang Tanpa Berat", "unit": "pcs",
        }),
    }


@pytest.fixture
def activity_of(db_session: Session):
    """Return activity-log action types for an entity record, oldest first"""
    def _lookup(entity_table: str, record_id) -> list:
        rows = (
            db_session.query(ActivityLog)
            .filter(ActivityLog.entity_table == entity_table, ActivityLog.record_id == str(record_id))
            .order_by(ActivityLog.id)
            .all()
        )
        return [row.action_type for row in rows]
    return _lookup
