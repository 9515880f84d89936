"""Source Adapter Registry - lookup of source adapters by source name.

Unlike mappers, adapters hold a live HTTP client for the duration of one
session, so ``create`` always returns a fresh instance.
"""

from typing import Any

from catalog_sync.domain.errors import UnknownSourceError
from catalog_sync.infra.logging import get_logger
from catalog_sync.sources.base import SourceAdapter

logger = get_logger(__name__)


class SourceAdapterRegistry:
    """Registry for source adapter classes."""

    def __init__(self) -> None:
        self._adapters: dict[str, type[SourceAdapter]] = {}

    def register(self, name: str, adapter_class: type[SourceAdapter]) -> None:
        """Register an adapter class.

        Args:
            name: Source name (e.g., "odoo", "shopify")
            adapter_class: Adapter class to register
        """
        self._adapters[name] = adapter_class
        logger.debug("Source adapter registered", name=name, cls=adapter_class.__name__)

    def create(self, name: str, **init_kwargs: Any) -> SourceAdapter:
        """Create a new adapter instance for a session.

        Raises:
            UnknownSourceError: If no adapter is registered for the source
        """
        if name not in self._adapters:
            raise UnknownSourceError(name)
        return self._adapters[name](**init_kwargs)

    def get_available(self) -> list[str]:
        """Get list of registered source names."""
        return list(self._adapters.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._adapters


def create_default_registry() -> SourceAdapterRegistry:
    """Create a registry with the four supported sources registered."""
    from catalog_sync.sources.amazon import AmazonAdapter
    from catalog_sync.sources.odoo import OdooAdapter
    from catalog_sync.sources.shopify import ShopifyAdapter
    from catalog_sync.sources.trendyol import TrendyolAdapter

    registry = SourceAdapterRegistry()

    registry.register("odoo", OdooAdapter)
    registry.register("shopify", ShopifyAdapter)
    registry.register("trendyol", TrendyolAdapter)
    registry.register("amazon", AmazonAdapter)

    logger.info("Default source adapter registry created", sources=registry.get_available())

    return registry


# Singleton registry
_registry: SourceAdapterRegistry | None = None


def get_adapter_registry() -> SourceAdapterRegistry:
    """Get the singleton source adapter registry."""
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry
