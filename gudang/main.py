"""
Gudang FastAPI Main Application
Entry point for the warehouse storage-line REST API
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from gudang.api.v1.api_router import api_router
from gudang.core.config import settings
from gudang.core.database import check_db_connection, init_db
from gudang.core.exceptions import GudangException
from gudang.core.logging import get_logger, setup_logging
from gudang.schemas.common import ErrorResponse

logger = get_logger("api")

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Gudang Lini API

    Warehouse storage-line core for a bonded logistics warehouse.

    ### Key Features:
    - **Storage lines**: Lini 1 / Lini 2 intake, transfer and supplier pickup
    - **Storage cost**: per-kg and per-m3 daily tariffs, audited recomputation
    - **Allocator**: put-away with lot capacity, FEFO picking, batch relocation
    - **Daily job**: nightly cost sweep, daily summary and high-cost alert
    - **Customs**: BC 2.3 / BC 4.0 reporting to CEISA
    """,
    docs_url=settings.DOCS_URL,
    openapi_url=settings.OPENAPI_URL,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", tags=["System"])
async def health_check():
    """
    Health check endpoint for monitoring and load balancers

    Returns system status and database connectivity
    """
    db_status = check_db_connection()
    if not db_status:
        logger.error("Health check: database unreachable")

    return {
        "status": "healthy" if db_status else "degraded",
        "version": settings.APP_VERSION,
        "database": "connected" if db_status else "disconnected",
        "debug": settings.DEBUG
    }


# System information endpoint
@app.get("/info", tags=["System"])
async def system_info():
    """
    System information endpoint

    Returns application configuration and tariff settings
    """
    return {
        "application": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "api_version": "v1",
        "docs_url": settings.DOCS_URL,
        "tariffs": {
            "line_tariff_per_kg": {line: str(rate) for line, rate in settings.LINE_TARIFF_PER_KG.items()},
            "volume_rate_per_m3": str(settings.VOLUME_RATE_PER_M3),
            "daily_cost_alert_threshold": str(settings.DAILY_COST_ALERT_THRESHOLD),
        },
        "business_modules": {
            "storage": "Line intake, cost accrual, Lini 1 -> Lini 2 transfer, pickup",
            "inventory": "Items, batches, put-away, FEFO picking, relocation",
            "locations": "Warehouse, zone, rack and lot hierarchy",
            "customs": "CEISA document reporting"
        }
    }


# Application startup event
@app.on_event("startup")
async def startup_event():
    """
    Application startup tasks

    Configure logging and create tables
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not check_db_connection():
        logger.error("Failed to connect to database on startup")
        raise RuntimeError("Database connection failed")

    init_db()
    logger.info("Application startup completed successfully")


# Application shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down application")


@app.exception_handler(GudangException)
async def gudang_exception_handler(request: Request, exc: GudangException):
    """Map business failures to the error envelope"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.kind}] {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: [{exc.kind}] {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.kind, message=exc.message).model_dump()
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error="validation_failure", message=errors).model_dump()
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error="http_error", message=str(exc.detail)).model_dump()
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors

    Returns JSON error response
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="server_error",
            message=str(exc) if settings.DEBUG else "An unexpected error occurred",
        ).model_dump()
    )


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_STR)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gudang.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
