"""Tests for the SQLAlchemy catalog store (SQLite in memory)."""

from dataclasses import replace
from decimal import Decimal

import pytest

from catalog_sync.core.item_result import ItemEffect
from catalog_sync.core.reconciliation import ReconciliationEngine
from catalog_sync.domain.errors import PersistenceError
from catalog_sync.domain.product import ProductType, Variant
from catalog_sync.mappers.odoo import OdooMapper
from catalog_sync.store.sql import SqlCatalogStore


@pytest.fixture
def sql_store(session_factory) -> SqlCatalogStore:
    return SqlCatalogStore(session_factory)


class TestSqlCatalogStore:
    """Tests for SqlCatalogStore."""

    @pytest.mark.asyncio
    async def test_create_and_find(self, sql_store, make_product, tenant_id):
        product = make_product(
            weight=2.5,
            categories={"Office"},
            metadata={"odoo_id": 7},
        ).with_image_added("https://cdn/a.jpg", is_primary=True)

        await sql_store.create(product)
        stored = await sql_store.find_by_sku(tenant_id, "SKU-1")

        assert stored.id == product.id
        assert stored.price == Decimal("100.00")
        assert stored.weight == 2.5
        assert stored.categories == frozenset({"Office"})
        assert stored.metadata == {"odoo_id": 7}
        assert stored.primary_image_url == "https://cdn/a.jpg"
        assert stored.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_find_missing(self, sql_store, tenant_id):
        assert await sql_store.find_by_sku(tenant_id, "nope") is None
        assert await sql_store.find_by_id(tenant_id, "nope") is None

    @pytest.mark.asyncio
    async def test_tenant_scoped(self, sql_store, make_product):
        product = await sql_store.create(make_product())
        assert await sql_store.find_by_id("other-tenant", product.id) is None

    @pytest.mark.asyncio
    async def test_duplicate_sku_rejected(self, sql_store, make_product):
        await sql_store.create(make_product())
        with pytest.raises(PersistenceError, match="already exists"):
            await sql_store.create(make_product(name="Other"))

    @pytest.mark.asyncio
    async def test_unique_constraint_on_update(self, sql_store, make_product):
        await sql_store.create(make_product(sku="A"))
        other = await sql_store.create(make_product(sku="B"))
        moved = replace(other, sku="A")

        with pytest.raises(PersistenceError, match="Constraint violation"):
            await sql_store.update(moved)

    @pytest.mark.asyncio
    async def test_update_merges_variants_by_id(self, sql_store, make_product, tenant_id):
        product = make_product(
            product_type=ProductType.VARIABLE,
            variants=[Variant.new("V-S", stock_quantity=1), Variant.new("V-M", stock_quantity=2)],
        )
        await sql_store.create(product)

        kept = product.variants[1]
        updated = product.without_variant(product.variants[0].id)
        updated = updated.with_variant_added(Variant.new("V-L", stock_quantity=5))
        updated = updated.with_variant_stock(kept.id, 9)
        await sql_store.update(updated)

        stored = await sql_store.find_by_sku(tenant_id, "SKU-1")
        assert [v.sku for v in stored.variants] == ["V-M", "V-L"]
        assert stored.variants[0].id == kept.id
        assert stored.variants[0].stock_quantity == 9
        assert stored.total_stock == 14

    @pytest.mark.asyncio
    async def test_update_missing_product(self, sql_store, make_product):
        with pytest.raises(PersistenceError, match="not found"):
            await sql_store.update(make_product())

    @pytest.mark.asyncio
    async def test_sku_exists(self, sql_store, make_product, tenant_id):
        product = await sql_store.create(make_product())

        assert await sql_store.sku_exists(tenant_id, "SKU-1")
        assert not await sql_store.sku_exists(tenant_id, "SKU-1", exclude_id=product.id)

    @pytest.mark.asyncio
    async def test_delete(self, sql_store, make_product, tenant_id):
        product = await sql_store.create(make_product())

        assert await sql_store.delete(tenant_id, product.id) is True
        assert await sql_store.delete(tenant_id, product.id) is False
        assert await sql_store.list_products(tenant_id) == []

    @pytest.mark.asyncio
    async def test_list_products(self, sql_store, make_product, tenant_id):
        await sql_store.create(make_product(sku="A"))
        await sql_store.create(make_product(sku="B"))
        await sql_store.create(make_product(sku="C", tenant_id="tenant-b"))

        assert sorted(p.sku for p in await sql_store.list_products(tenant_id)) == ["A", "B"]


class TestSqlReconciliation:
    """Reconciling into the SQL store, where money columns hold two decimals."""

    @pytest.mark.asyncio
    async def test_sub_cent_price_resync_changes_nothing(self, sql_store, odoo_record, tenant_id):
        engine = ReconciliationEngine(sql_store)
        dto = OdooMapper().map(odoo_record(1, "SKU-1", list_price=19.999, standard_price=7.125))

        first = await engine.reconcile(dto, tenant_id)
        stored = await sql_store.find_by_sku(tenant_id, "SKU-1")
        second = await engine.reconcile(dto, tenant_id)
        third = await engine.reconcile(dto, tenant_id)
        after = await sql_store.find_by_sku(tenant_id, "SKU-1")

        assert first.effect is ItemEffect.CREATED
        assert stored.price == Decimal("20.00")
        assert stored.cost == Decimal("7.13")
        assert second.changed_fields == ()
        assert third.changed_fields == ()
        assert after.updated_at == stored.updated_at
