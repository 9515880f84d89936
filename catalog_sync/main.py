"""ASGI app for the catalog sync service.

Pulls products from an ERP and marketplaces and
reconciles them into the tenant's canonical catalog.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_sync import __version__
from catalog_sync.api.deps import reset_dependencies
from catalog_sync.api.routes.health import router as health_router
from catalog_sync.api.routes.sync import router as sync_router
from catalog_sync.config import settings
from catalog_sync.infra.database import close_db_engine, create_schema, verify_db_connection
from catalog_sync.infra.logging import get_logger, setup_logging
from catalog_sync.mappers.registry import get_mapper_registry
from catalog_sync.schemas.common import ErrorResponse
from catalog_sync.sources.registry import get_adapter_registry

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Warm the registries and check the store on startup; release everything on shutdown."""
    logger.info(
        "Catalog sync starting",
        environment=settings.environment,
        store_backend=settings.store_backend,
    )

    mappers = get_mapper_registry()
    adapters = get_adapter_registry()
    logger.info(
        "Registries initialized",
        mappers=mappers.get_available(),
        sources=adapters.get_available(),
    )

    if settings.store_backend == "postgres":
        if not await verify_db_connection():
            logger.warning("Catalog database unreachable at startup, requests will retry")
        elif settings.db_create_schema:
            await create_schema()

    yield

    logger.info("Catalog sync shutting down")
    await close_db_engine()
    get_mapper_registry().clear_instances()
    reset_dependencies()
    logger.info("Catalog sync stopped")


app = FastAPI(
    title="Catalog Sync",
    description="Multi-source product catalog synchronization",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

if settings.environment == "dev":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with status and duration."""
    start = time.perf_counter()
    response = await call_next(request)

    logger.info(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=int((time.perf_counter() - start) * 1000),
    )
    return response


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with a structured error response."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            error_type=type(exc).__name__,
        ).model_dump(),
    )


app.include_router(health_router, tags=["Health"])
app.include_router(sync_router, tags=["Sync"])


@app.get("/")
async def root() -> dict:
    """Service name, version and the sources it can sync from."""
    return {
        "service": "Catalog Sync",
        "version": __version__,
        "environment": settings.environment,
        "sources": get_adapter_registry().get_available(),
    }
