"""
Main API Router - Consolidates all module routes
"""

from fastapi import APIRouter

from gudang.api.v1 import customs, inventory, locations, storage
from gudang.schemas.common import ErrorResponse

api_router = APIRouter()

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Referenced record not found"},
    422: {"model": ErrorResponse, "description": "Input or business rule rejected"},
    500: {"model": ErrorResponse, "description": "Database write failed"},
}

# Location hierarchy routes
api_router.include_router(
    locations.router, prefix="/locations", tags=["locations"], responses=ERROR_RESPONSES
)

# Item catalog and allocator routes
api_router.include_router(
    inventory.router, prefix="/inventory", tags=["inventory"], responses=ERROR_RESPONSES
)

# Storage line routes (Lini 1 / Lini 2)
api_router.include_router(
    storage.router, prefix="/storage", tags=["storage"], responses=ERROR_RESPONSES
)

# Customs reporting routes
api_router.include_router(
    customs.router,
    prefix="/customs",
    tags=["customs"],
    responses={
        **ERROR_RESPONSES,
        502: {"model": ErrorResponse, "description": "CEISA rejected or unreachable"},
    },
)
