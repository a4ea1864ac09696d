#!/usr/bin/env python3
"""
Gudang Database Initialization Script
Creates database tables and optionally seeds a demo warehouse
"""
import argparse
import sys

from gudang.core.database import SessionLocal, check_db_connection, init_db
from gudang.core.exceptions import GudangException
from gudang.core.logging import get_logger, setup_logging
from gudang.services.catalog import CatalogService
from gudang.services.location_registry import LocationRegistryService

logger = get_logger("database")


def seed_demo_data():
    """Create one warehouse with a zone, a rack, two lots and two items"""
    db = SessionLocal()
    try:
        registry = LocationRegistryService(db, "init_db")
        if registry.list_warehouses():
            logger.info("Demo data skipped: warehouses already exist")
            return

        warehouse = registry.create_warehouse({
            "name": "Gudang Utama",
            "location": "Tanjung Priok, Jakarta",
            "total_capacity_label": "5000 m2",
        })
        zone = registry.create_zone({"warehouse_id": warehouse.id, "name": "Zona A"})
        rack = registry.create_rack({"zone_id": zone.id, "code": "A-01"})
        registry.create_lot({"rack_id": rack.id, "code": "A-01-01", "capacity": 100})
        registry.create_lot({"rack_id": rack.id, "code": "A-01-02", "capacity": 100})

        catalog = CatalogService(db, "init_db")
        catalog.create_item({
            "sku": "SKU-001", "name": "Kopi Arabika", "unit": "karung",
            "actual_weight_kg": "60", "volume_m3": "0.12",
        })
        catalog.create_item({
            "sku": "SKU-002", "name": "Suku Cadang Mesin", "unit": "peti",
            "actual_weight_kg": "25", "volume_m3": "0.08",
        })
        logger.info("Demo data created")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create Gudang database tables")
    parser.add_argument("--demo", action="store_true", help="Seed a demo warehouse and items")
    args = parser.parse_args()

    setup_logging()

    if not check_db_connection():
        logger.error("Cannot connect to database")
        return 1

    init_db()

    if args.demo:
        try:
            seed_demo_data()
        except GudangException as e:
            logger.error(f"Demo data failed: [{e.kind}] {e.message}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
