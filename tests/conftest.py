"""Shared fixtures for the catalog sync test suite."""

import os

os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("STORE_BACKEND", "memory")

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_sync.api.deps import get_sync_service
from catalog_sync.domain.errors import SourceFetchError
from catalog_sync.domain.product import CanonicalProduct, ProductStatus, ProductType
from catalog_sync.models.base import Base
from catalog_sync.services.catalog_sync import CatalogSyncService
from catalog_sync.sources.base import ConnectionTestResult, FetchedPage
from catalog_sync.sources.registry import SourceAdapterRegistry
from catalog_sync.store.memory import InMemoryCatalogStore

TENANT = "tenant-a"


class FakeAdapter:
    """Scripted source adapter: serves ``pages`` in order, cursor = page index."""

    def __init__(
        self,
        pages: list[list[dict[str, Any]]] | None = None,
        source: str = "odoo",
        connect_result: ConnectionTestResult | None = None,
        fail_on_page: int | None = None,
    ) -> None:
        self.source = source
        self.pages = pages if pages is not None else [[]]
        self.connect_result = connect_result or ConnectionTestResult.ok()
        self.fail_on_page = fail_on_page
        self.test_calls = 0
        self.fetch_calls: list[tuple[Any, str | None]] = []
        self.closed = False

    async def test_connection(self, credentials: Any) -> ConnectionTestResult:
        self.test_calls += 1
        return self.connect_result

    async def fetch_page(
        self, credentials: Any, filters: Any = None, cursor: str | None = None
    ) -> FetchedPage:
        index = int(cursor) if cursor else 0
        self.fetch_calls.append((filters, cursor))
        if self.fail_on_page == index:
            raise SourceFetchError(self.source, f"page {index} unavailable")
        next_cursor = str(index + 1) if index + 1 < len(self.pages) else None
        return FetchedPage(
            items=self.pages[index],
            total=sum(len(page) for page in self.pages),
            next_cursor=next_cursor,
        )

    async def close(self) -> None:
        self.closed = True


def registry_with(adapter: FakeAdapter) -> SourceAdapterRegistry:
    """Registry whose ``create`` always hands out ``adapter``."""
    registry = SourceAdapterRegistry()
    for name in ("odoo", "shopify", "trendyol", "amazon"):
        registry.register(name, lambda **_: adapter)  # type: ignore[arg-type]
    return registry


def build_odoo_record(record_id: int, sku: str | None, name: str = "", **overrides: Any) -> dict[str, Any]:
    """Raw ``product.template`` row as returned by search_read."""
    record: dict[str, Any] = {
        "id": record_id,
        "name": name or f"Product {record_id}",
        "default_code": sku if sku is not None else False,
        "description": f"<p>Description of product {record_id}</p>",
        "description_sale": False,
        "list_price": 100.0,
        "standard_price": 60.0,
        "type": "consu",
        "categ_id": [1, "All / Saleable"],
        "active": True,
        "sale_ok": True,
        "purchase_ok": True,
        "weight": 1.5,
        "volume": False,
        "barcode": False,
        "create_date": "2024-01-01 10:00:00",
        "write_date": "2024-01-02 10:00:00",
    }
    record.update(overrides)
    return record


@pytest.fixture
def odoo_record() -> Callable[..., dict[str, Any]]:
    return build_odoo_record


@pytest.fixture
def fake_adapter() -> type[FakeAdapter]:
    return FakeAdapter


@pytest.fixture
def adapter_registry_for() -> Callable[[FakeAdapter], SourceAdapterRegistry]:
    return registry_with


@pytest.fixture
def tenant_id() -> str:
    return TENANT


@pytest.fixture
def store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def make_product() -> Callable[..., CanonicalProduct]:
    """Factory for valid canonical products."""

    def _make(sku: str = "SKU-1", name: str = "Widget", **fields: Any) -> CanonicalProduct:
        fields.setdefault("status", ProductStatus.ACTIVE)
        fields.setdefault("product_type", ProductType.SIMPLE)
        fields.setdefault("price", Decimal("100.00"))
        fields.setdefault("cost", Decimal("60.00"))
        tenant = fields.pop("tenant_id", TENANT)
        return CanonicalProduct.create(tenant, sku, name, **fields)

    return _make


@pytest_asyncio.fixture
async def session_factory() -> AsyncIterator[Callable[[str | None], Any]]:
    """Per-test in-memory SQLite database with the catalog schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def session_scope(tenant_id: str | None = None) -> AsyncIterator[AsyncSession]:
        async with factory() as session:
            async with session.begin():
                yield session

    yield session_scope

    await engine.dispose()


@pytest.fixture
def api_adapter() -> FakeAdapter:
    return FakeAdapter(pages=[[build_odoo_record(1, "SKU-1"), build_odoo_record(2, "SKU-2")]])


@pytest.fixture
def sync_service(store, api_adapter) -> CatalogSyncService:
    return CatalogSyncService(store, adapter_registry=registry_with(api_adapter))


@pytest_asyncio.fixture
async def client(sync_service) -> AsyncIterator[AsyncClient]:
    """HTTP client against the app with the sync service swapped for a scripted one."""
    from catalog_sync.main import app

    app.dependency_overrides[get_sync_service] = lambda: sync_service
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
