"""Source adapters: connectivity and paginated fetch per external source."""

from catalog_sync.sources.amazon import AmazonAdapter
from catalog_sync.sources.base import (
    ConnectionTestResult,
    FetchedPage,
    HttpSourceAdapter,
    SourceAdapter,
    classify_http_error,
)
from catalog_sync.sources.odoo import OdooAdapter
from catalog_sync.sources.registry import (
    SourceAdapterRegistry,
    create_default_registry,
    get_adapter_registry,
)
from catalog_sync.sources.shopify import ShopifyAdapter
from catalog_sync.sources.trendyol import TrendyolAdapter

__all__ = [
    "AmazonAdapter",
    "ConnectionTestResult",
    "FetchedPage",
    "HttpSourceAdapter",
    "OdooAdapter",
    "ShopifyAdapter",
    "SourceAdapter",
    "SourceAdapterRegistry",
    "TrendyolAdapter",
    "classify_http_error",
    "create_default_registry",
    "get_adapter_registry",
]
