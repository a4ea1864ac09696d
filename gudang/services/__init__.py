"""
Gudang Business Services
Storage-line cost accrual, line transfer, allocation and customs reporting
"""

from .catalog import CatalogService
from .customs import CeisaClient, CustomsReportingService
from .daily_job import DailyStorageJob
from .line_transfer import LineTransferService
from .location_registry import LocationRegistryService
from .picking import PickingService
from .putaway import PutAwayService
from .relocation import RelocationService
from .stock_ledger import StockLedgerService
from .storage_cost import StorageCostEngine

__all__ = [
    "CatalogService",
    "CeisaClient",
    "CustomsReportingService",
    "DailyStorageJob",
    "LineTransferService",
    "LocationRegistryService",
    "PickingService",
    "PutAwayService",
    "RelocationService",
    "StockLedgerService",
    "StorageCostEngine",
]
