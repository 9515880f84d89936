"""Catalog store implementations."""

from catalog_sync.store.base import CatalogStore
from catalog_sync.store.memory import InMemoryCatalogStore
from catalog_sync.store.sql import SessionFactory, SqlCatalogStore
from catalog_sync.store.sync_runs import SyncRunRepository

__all__ = [
    "CatalogStore",
    "InMemoryCatalogStore",
    "SessionFactory",
    "SqlCatalogStore",
    "SyncRunRepository",
]
