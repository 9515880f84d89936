"""Mapper Registry - lookup of source mappers by source name.

Mappers are registered by source name and instantiated with the sync
policy (cost estimate ratio) they need. Instances are cached per set of
init kwargs since mappers are stateless.
"""

from typing import Any

from catalog_sync.domain.errors import UnknownSourceError
from catalog_sync.infra.logging import get_logger
from catalog_sync.mappers.base import SourceMapper

logger = get_logger(__name__)


def _make_hashable(obj: Any) -> Any:
    if isinstance(obj, dict):
        return tuple(sorted((k, _make_hashable(v)) for k, v in obj.items()))
    if isinstance(obj, list):
        return tuple(_make_hashable(x) for x in obj)
    return obj


class MapperRegistry:
    """Registry for source mappers."""

    def __init__(self) -> None:
        self._mappers: dict[str, type[SourceMapper[Any]]] = {}
        self._instances: dict[tuple[str, Any], SourceMapper[Any]] = {}

    def register(self, name: str, mapper_class: type[SourceMapper[Any]]) -> None:
        """Register a mapper class.

        Args:
            name: Source name (e.g., "odoo", "shopify")
            mapper_class: Mapper class to register
        """
        self._mappers[name] = mapper_class
        logger.debug("Mapper registered", name=name, cls=mapper_class.__name__)

    def get(self, name: str, **init_kwargs: Any) -> SourceMapper[Any]:
        """Get a mapper instance by source name.

        Raises:
            UnknownSourceError: If no mapper is registered for the source
        """
        cache_key = (name, _make_hashable(init_kwargs))

        if cache_key not in self._instances:
            if name not in self._mappers:
                raise UnknownSourceError(name)
            self._instances[cache_key] = self._mappers[name](**init_kwargs)
            logger.debug("Mapper instance created", name=name)

        return self._instances[cache_key]

    def get_available(self) -> list[str]:
        """Get list of registered source names."""
        return list(self._mappers.keys())

    def is_registered(self, name: str) -> bool:
        return name in self._mappers

    def clear_instances(self) -> None:
        """Clear cached mapper instances."""
        self._instances.clear()
        logger.info("Mapper instance cache cleared")


def create_default_registry() -> MapperRegistry:
    """Create a registry with the four supported sources registered."""
    from catalog_sync.mappers.amazon import AmazonMapper
    from catalog_sync.mappers.odoo import OdooMapper
    from catalog_sync.mappers.shopify import ShopifyMapper
    from catalog_sync.mappers.trendyol import TrendyolMapper

    registry = MapperRegistry()

    registry.register("odoo", OdooMapper)
    registry.register("shopify", ShopifyMapper)
    registry.register("trendyol", TrendyolMapper)
    registry.register("amazon", AmazonMapper)

    logger.info("Default mapper registry created", mappers=registry.get_available())

    return registry


# Singleton registry
_registry: MapperRegistry | None = None


def get_mapper_registry() -> MapperRegistry:
    """Get the singleton mapper registry."""
    global _registry
    if _registry is None:
        _registry = create_default_registry()
    return _registry
