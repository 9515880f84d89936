"""In-memory catalog store.

Used by the API when ``store_backend=memory`` and throughout the tests.
Products are immutable values, so the store can hand them out directly.
"""

import asyncio

from catalog_sync.domain.errors import PersistenceError
from catalog_sync.domain.product import CanonicalProduct
from catalog_sync.infra.logging import get_logger

logger = get_logger(__name__)


class InMemoryCatalogStore:
    """Dict-backed store with a ``(tenant_id, sku)`` index.

    Every operation runs under one ``asyncio.Lock`` so check-and-write is
    atomic with respect to concurrent runs.
    """

    def __init__(self) -> None:
        self._products: dict[str, CanonicalProduct] = {}
        self._sku_index: dict[tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def find_by_sku(self, tenant_id: str, sku: str) -> CanonicalProduct | None:
        async with self._lock:
            product_id = self._sku_index.get((tenant_id, sku))
            return self._products.get(product_id) if product_id else None

    async def find_by_id(self, tenant_id: str, product_id: str) -> CanonicalProduct | None:
        async with self._lock:
            product = self._products.get(product_id)
            if product is None or product.tenant_id != tenant_id:
                return None
            return product

    async def create(self, product: CanonicalProduct) -> CanonicalProduct:
        async with self._lock:
            key = (product.tenant_id, product.sku)
            if key in self._sku_index:
                raise PersistenceError(
                    f"Product with SKU {product.sku} already exists for tenant {product.tenant_id}"
                )
            if product.id in self._products:
                raise PersistenceError(f"Product id already in use: {product.id}")

            self._products[product.id] = product
            self._sku_index[key] = product.id
            logger.debug("Product created", tenant_id=product.tenant_id, sku=product.sku)
            return product

    async def update(self, product: CanonicalProduct) -> CanonicalProduct:
        async with self._lock:
            current = self._products.get(product.id)
            if current is None or current.tenant_id != product.tenant_id:
                raise PersistenceError(f"Product not found: {product.id}")

            new_key = (product.tenant_id, product.sku)
            owner = self._sku_index.get(new_key)
            if owner is not None and owner != product.id:
                raise PersistenceError(
                    f"Product with SKU {product.sku} already exists for tenant {product.tenant_id}"
                )

            del self._sku_index[(current.tenant_id, current.sku)]
            self._sku_index[new_key] = product.id
            self._products[product.id] = product
            logger.debug("Product updated", tenant_id=product.tenant_id, sku=product.sku)
            return product

    async def sku_exists(
        self, tenant_id: str, sku: str, exclude_id: str | None = None
    ) -> bool:
        async with self._lock:
            owner = self._sku_index.get((tenant_id, sku))
            return owner is not None and owner != exclude_id

    async def delete(self, tenant_id: str, product_id: str) -> bool:
        async with self._lock:
            product = self._products.get(product_id)
            if product is None or product.tenant_id != tenant_id:
                return False
            del self._products[product_id]
            del self._sku_index[(product.tenant_id, product.sku)]
            logger.info("Product deleted", tenant_id=tenant_id, product_id=product_id)
            return True

    async def list_products(self, tenant_id: str) -> list[CanonicalProduct]:
        async with self._lock:
            products = [p for p in self._products.values() if p.tenant_id == tenant_id]
        return sorted(products, key=lambda p: p.created_at)
