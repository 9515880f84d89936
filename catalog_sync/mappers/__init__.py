"""Per-source mappers from native records to the Normalized Product DTO."""

from catalog_sync.mappers.amazon import AmazonMapper
from catalog_sync.mappers.base import (
    SourceMapper,
    estimate_cost,
    extract_short_description,
    strip_markup,
)
from catalog_sync.mappers.odoo import OdooMapper
from catalog_sync.mappers.registry import (
    MapperRegistry,
    create_default_registry,
    get_mapper_registry,
)
from catalog_sync.mappers.shopify import ShopifyMapper
from catalog_sync.mappers.trendyol import TrendyolMapper

__all__ = [
    "AmazonMapper",
    "MapperRegistry",
    "OdooMapper",
    "ShopifyMapper",
    "SourceMapper",
    "TrendyolMapper",
    "create_default_registry",
    "estimate_cost",
    "extract_short_description",
    "get_mapper_registry",
    "strip_markup",
]
