"""Business logic services."""

from catalog_sync.services.catalog_sync import CatalogSyncService

__all__ = [
    "CatalogSyncService",
]
