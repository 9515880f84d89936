"""SQLAlchemy models for the catalog database."""

from catalog_sync.models.base import Base, JSONType, TimestampMixin
from catalog_sync.models.product import ImageRecord, ProductRecord, VariantRecord
from catalog_sync.models.sync_run import SyncRunRecord

__all__ = [
    "Base",
    "ImageRecord",
    "JSONType",
    "ProductRecord",
    "SyncRunRecord",
    "TimestampMixin",
    "VariantRecord",
]
