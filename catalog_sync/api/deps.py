"""FastAPI dependencies for dependency injection.

Provides:
- Catalog store selected by ``store_backend``
- Catalog sync service singleton
- Source name validation (unknown source -> 404)
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from catalog_sync.config import settings
from catalog_sync.infra.database import get_db_session
from catalog_sync.infra.logging import get_logger
from catalog_sync.services.catalog_sync import CatalogSyncService
from catalog_sync.store.base import CatalogStore
from catalog_sync.store.memory import InMemoryCatalogStore
from catalog_sync.store.sql import SqlCatalogStore
from catalog_sync.store.sync_runs import SyncRunRepository

logger = get_logger(__name__)

_store: CatalogStore | None = None
_service: CatalogSyncService | None = None


def get_catalog_store() -> CatalogStore:
    """Get the process-wide catalog store."""
    global _store
    if _store is None:
        if settings.store_backend == "postgres":
            _store = SqlCatalogStore(get_db_session)
        else:
            _store = InMemoryCatalogStore()
        logger.info("Catalog store initialized", backend=settings.store_backend)
    return _store


def get_sync_service() -> CatalogSyncService:
    """Get the process-wide sync service.

    The service owns the session controller, so it must be shared for the
    one-run-per-tenant-and-source rule to hold across requests.
    """
    global _service
    if _service is None:
        run_repository = (
            SyncRunRepository(get_db_session) if settings.store_backend == "postgres" else None
        )
        _service = CatalogSyncService(get_catalog_store(), run_repository=run_repository)
    return _service


def reset_dependencies() -> None:
    """Drop cached store and service (application shutdown)."""
    global _store, _service
    _store = None
    _service = None


# Type aliases for cleaner annotations
SyncService = Annotated[CatalogSyncService, Depends(get_sync_service)]


async def get_source(source: str, service: SyncService) -> str:
    """Validate the ``{source}`` path parameter.

    Raises:
        HTTPException: 404 if no adapter and mapper are registered for it
    """
    if not service.is_supported(source):
        logger.warning("Unknown source requested", source=source)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Source not registered: {source}",
        )
    return source


ValidSource = Annotated[str, Depends(get_source)]
