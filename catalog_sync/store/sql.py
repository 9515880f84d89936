"""SQLAlchemy catalog store.

One transaction per call. Uniqueness of ``(tenant_id, sku)`` is enforced by
the ``uq_products_tenant_sku`` constraint, so a concurrent create that loses
the race surfaces as ``PersistenceError`` instead of a duplicate identity.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_sync.domain.errors import PersistenceError
from catalog_sync.domain.product import CanonicalProduct
from catalog_sync.infra.database import get_db_session
from catalog_sync.infra.logging import get_logger
from catalog_sync.models.product import ProductRecord

logger = get_logger(__name__)

SessionFactory = Callable[[str | None], AbstractAsyncContextManager[AsyncSession]]


class SqlCatalogStore:
    """Catalog store over the ``products`` tables.

    Args:
        session_factory: Callable taking a tenant id and returning an async
            context manager that yields a session and commits on exit.
            Defaults to ``get_db_session`` (RLS tenant context).
    """

    def __init__(self, session_factory: SessionFactory = get_db_session) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, tenant_id: str | None) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory(tenant_id) as session:
                yield session
        except IntegrityError as e:
            raise PersistenceError(f"Constraint violation: {e.orig}") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Database error: {e}") from e

    async def _get_record(
        self, session: AsyncSession, tenant_id: str, product_id: str
    ) -> ProductRecord | None:
        result = await session.execute(
            select(ProductRecord).where(
                ProductRecord.tenant_id == tenant_id,
                ProductRecord.id == product_id,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_sku(self, tenant_id: str, sku: str) -> CanonicalProduct | None:
        async with self._transaction(tenant_id) as session:
            result = await session.execute(
                select(ProductRecord).where(
                    ProductRecord.tenant_id == tenant_id,
                    ProductRecord.sku == sku,
                )
            )
            record = result.scalar_one_or_none()
            return record.to_domain() if record else None

    async def find_by_id(self, tenant_id: str, product_id: str) -> CanonicalProduct | None:
        async with self._transaction(tenant_id) as session:
            record = await self._get_record(session, tenant_id, product_id)
            return record.to_domain() if record else None

    async def create(self, product: CanonicalProduct) -> CanonicalProduct:
        async with self._transaction(product.tenant_id) as session:
            existing = await session.execute(
                select(ProductRecord.id).where(
                    ProductRecord.tenant_id == product.tenant_id,
                    ProductRecord.sku == product.sku,
                )
            )
            if existing.first() is not None:
                raise PersistenceError(
                    f"Product with SKU {product.sku} already exists for tenant {product.tenant_id}"
                )
            session.add(ProductRecord.from_domain(product))
            await session.flush()

        logger.debug("Product row inserted", tenant_id=product.tenant_id, sku=product.sku)
        return product

    async def update(self, product: CanonicalProduct) -> CanonicalProduct:
        async with self._transaction(product.tenant_id) as session:
            record = await self._get_record(session, product.tenant_id, product.id)
            if record is None:
                raise PersistenceError(f"Product not found: {product.id}")
            record.apply(product)
            await session.flush()

        logger.debug("Product row updated", tenant_id=product.tenant_id, sku=product.sku)
        return product

    async def sku_exists(
        self, tenant_id: str, sku: str, exclude_id: str | None = None
    ) -> bool:
        query = select(ProductRecord.id).where(
            ProductRecord.tenant_id == tenant_id,
            ProductRecord.sku == sku,
        )
        if exclude_id is not None:
            query = query.where(ProductRecord.id != exclude_id)

        async with self._transaction(tenant_id) as session:
            result = await session.execute(query.limit(1))
            return result.first() is not None

    async def delete(self, tenant_id: str, product_id: str) -> bool:
        async with self._transaction(tenant_id) as session:
            record = await self._get_record(session, tenant_id, product_id)
            if record is None:
                return False
            await session.delete(record)

        logger.info("Product deleted", tenant_id=tenant_id, product_id=product_id)
        return True

    async def list_products(self, tenant_id: str) -> list[CanonicalProduct]:
        async with self._transaction(tenant_id) as session:
            result = await session.execute(
                select(ProductRecord)
                .where(ProductRecord.tenant_id == tenant_id)
                .order_by(ProductRecord.created_at)
            )
            return [record.to_domain() for record in result.scalars().all()]
