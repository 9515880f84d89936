"""Domain model - Canonical Product aggregate, audit trail and errors."""

from catalog_sync.domain.audit import AuditAction, AuditRecord, AuditTrail
from catalog_sync.domain.errors import (
    CatalogSyncError,
    ConnectionFailure,
    EntityNotFound,
    InvariantViolation,
    MappingError,
    PersistenceError,
    SessionBusyError,
    SourceConnectionError,
    SourceFetchError,
    SyncCancelled,
    UnknownSourceError,
    ValidationError,
)
from catalog_sync.domain.product import (
    CanonicalProduct,
    Dimensions,
    Image,
    ProductStatus,
    ProductType,
    Variant,
)

__all__ = [
    "AuditAction",
    "AuditRecord",
    "AuditTrail",
    "CanonicalProduct",
    "CatalogSyncError",
    "ConnectionFailure",
    "Dimensions",
    "EntityNotFound",
    "Image",
    "InvariantViolation",
    "MappingError",
    "PersistenceError",
    "ProductStatus",
    "ProductType",
    "SessionBusyError",
    "SourceConnectionError",
    "SourceFetchError",
    "SyncCancelled",
    "UnknownSourceError",
    "ValidationError",
    "Variant",
]
