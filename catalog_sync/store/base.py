"""Catalog Store protocol consumed by the reconciliation engine.

Each operation is atomic on its own. ``create`` must reject a second
product for an existing ``(tenant_id, sku)`` with ``PersistenceError`` so
that two concurrent syncs cannot both create the same identity.
"""

from typing import Protocol, runtime_checkable

from catalog_sync.domain.product import CanonicalProduct


@runtime_checkable
class CatalogStore(Protocol):
    async def find_by_sku(self, tenant_id: str, sku: str) -> CanonicalProduct | None:
        ...

    async def find_by_id(self, tenant_id: str, product_id: str) -> CanonicalProduct | None:
        ...

    async def create(self, product: CanonicalProduct) -> CanonicalProduct:
        ...

    async def update(self, product: CanonicalProduct) -> CanonicalProduct:
        ...

    async def sku_exists(
        self, tenant_id: str, sku: str, exclude_id: str | None = None
    ) -> bool:
        ...

    async def delete(self, tenant_id: str, product_id: str) -> bool:
        ...

    async def list_products(self, tenant_id: str) -> list[CanonicalProduct]:
        ...
