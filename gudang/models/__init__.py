"""
Gudang SQLAlchemy Models
"""

# Import all models to ensure they are registered with SQLAlchemy
from .location import Warehouse, Zone, Rack, Lot
from .item import Item, ItemBatch, BatchStatus
from .movement import (
    StockMovement, StorageCost, BatchRelocation, MovementStatus, MovementType
)
from .activity import ActivityLog, DailySummary
from .customs import CustomsDocument, CustomsDocStatus

__all__ = [
    "Warehouse",
    "Zone",
    "Rack",
    "Lot",
    "Item",
    "ItemBatch",
    "BatchStatus",
    "StockMovement",
    "StorageCost",
    "BatchRelocation",
    "MovementStatus",
    "MovementType",
    "ActivityLog",
    "DailySummary",
    "CustomsDocument",
    "CustomsDocStatus",
]
