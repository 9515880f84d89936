"""Health check endpoints.

Provides health status for container probes and monitoring.
"""

from fastapi import APIRouter

from catalog_sync import __version__
from catalog_sync.api.deps import SyncService
from catalog_sync.config import settings
from catalog_sync.infra.database import verify_db_connection
from catalog_sync.infra.logging import get_logger
from catalog_sync.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Basic health check.

    Returns 200 if service is running.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={},
    )


@router.get("/health/ready", response_model=HealthResponse)
async def health_ready(service: SyncService) -> HealthResponse:
    """Readiness check.

    Verifies the catalog store is reachable and that sources are registered.
    """
    checks: dict[str, bool] = {}

    if settings.store_backend == "postgres":
        checks["store"] = await verify_db_connection()
    else:
        checks["store"] = True

    checks["sources"] = bool(service.adapters.get_available())

    all_healthy = all(checks.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        version=__version__,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
        checks={"alive": True},
    )
