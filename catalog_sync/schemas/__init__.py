"""Pydantic schemas for source records, credentials, DTOs and API payloads."""

from catalog_sync.schemas.common import ErrorResponse, HealthResponse
from catalog_sync.schemas.credentials import (
    AmazonCredentials,
    OdooCredentials,
    ShopifyCredentials,
    TrendyolCredentials,
    parse_credentials,
)
from catalog_sync.schemas.normalized import (
    NormalizedImage,
    NormalizedProduct,
    NormalizedVariant,
)
from catalog_sync.schemas.sources import (
    AmazonListing,
    OdooProduct,
    ShopifyProduct,
    TrendyolProduct,
)
from catalog_sync.schemas.sync import (
    ConnectionTestRequest,
    ConnectionTestResponse,
    FilteredSyncRequest,
    SyncFilter,
    SyncRequest,
    SyncResult,
)

__all__ = [
    "AmazonCredentials",
    "AmazonListing",
    "ConnectionTestRequest",
    "ConnectionTestResponse",
    "ErrorResponse",
    "FilteredSyncRequest",
    "HealthResponse",
    "NormalizedImage",
    "NormalizedProduct",
    "NormalizedVariant",
    "OdooCredentials",
    "OdooProduct",
    "ShopifyCredentials",
    "ShopifyProduct",
    "SyncFilter",
    "SyncRequest",
    "SyncResult",
    "TrendyolCredentials",
    "TrendyolProduct",
    "parse_credentials",
]
