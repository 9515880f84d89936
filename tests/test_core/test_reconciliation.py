"""Tests for the reconciliation engine."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from catalog_sync.core.item_result import ItemEffect
from catalog_sync.core.reconciliation import (
    ReconciliationEngine,
    merge_images,
    merge_metadata,
    merge_variants,
)
from catalog_sync.domain.audit import AuditAction, AuditTrail
from catalog_sync.domain.errors import InvariantViolation, SyncCancelled
from catalog_sync.domain.product import Image, ProductStatus, ProductType, Variant
from catalog_sync.schemas.normalized import NormalizedImage, NormalizedProduct, NormalizedVariant


def dto(**overrides) -> NormalizedProduct:
    fields = {
        "source": "odoo",
        "source_id": "7",
        "sku": "SKU-1",
        "name": "Desk",
        "description": "<p>Oak desk</p>",
        "short_description": "Oak desk",
        "status": ProductStatus.ACTIVE,
        "product_type": ProductType.SIMPLE,
        "price": Decimal("100"),
        "cost": Decimal("60"),
        "weight": 12.0,
        "categories": ["Furniture"],
        "source_metadata": {"odoo_id": 7},
    }
    fields.update(overrides)
    return NormalizedProduct(**fields)


class TestMergeImages:
    """Tests for merge_images."""

    def test_new_images_first_is_primary(self):
        images = merge_images((), [NormalizedImage(url="a"), NormalizedImage(url="b")])
        assert [i.url for i in images] == ["a", "b"]
        assert [i.is_primary for i in images] == [True, False]
        assert [i.sort_order for i in images] == [0, 1]

    def test_reuses_identity_by_url(self):
        current = (Image.new("a", is_primary=False), Image.new("b", is_primary=True))
        images = merge_images(current, [NormalizedImage(url="b"), NormalizedImage(url="c")])

        assert images[0].id == current[1].id
        assert images[0].is_primary is True
        assert images[1].is_primary is False

    def test_primary_moves_when_its_url_disappears(self):
        current = (Image.new("a", is_primary=True),)
        images = merge_images(current, [NormalizedImage(url="x"), NormalizedImage(url="y")])
        assert images[0].url == "x"
        assert images[0].is_primary is True

    def test_duplicate_urls_collapsed(self):
        images = merge_images((), [NormalizedImage(url="a"), NormalizedImage(url="a")])
        assert len(images) == 1

    def test_empty_list_clears(self):
        assert merge_images((Image.new("a"),), []) == ()


class TestMergeVariants:
    """Tests for merge_variants."""

    def test_matched_by_sku(self):
        current = (Variant.new("S", stock_quantity=1, weight=0.3),)
        merged = merge_variants(current, [NormalizedVariant(sku="S", stock_quantity=5)])

        assert merged[0].id == current[0].id
        assert merged[0].stock_quantity == 5
        assert merged[0].weight == 0.3

    def test_unchanged_variant_kept_as_is(self):
        current = (Variant.new("S", name="Small", price=Decimal("10")),)
        merged = merge_variants(current, [NormalizedVariant(sku="S", name="Small", price=Decimal("10"))])
        assert merged[0] is current[0]

    def test_new_and_removed(self):
        current = (Variant.new("S"), Variant.new("M"))
        merged = merge_variants(current, [NormalizedVariant(sku="M"), NormalizedVariant(sku="L")])

        assert [v.sku for v in merged] == ["M", "L"]
        assert merged[0].id == current[1].id


class TestMergeMetadata:
    """Tests for merge_metadata."""

    def test_replaces_only_own_namespace(self):
        current = {"odoo_id": 1, "odoo_barcode": "x", "shopify_id": 9, "note": "manual"}
        merged = merge_metadata(current, "odoo", {"odoo_id": 2})
        assert merged == {"odoo_id": 2, "shopify_id": 9, "note": "manual"}


class TestReconciliationEngine:
    """Tests for ReconciliationEngine.reconcile."""

    @pytest.fixture
    def engine(self, store) -> ReconciliationEngine:
        return ReconciliationEngine(store)

    @pytest.mark.asyncio
    async def test_creates_when_sku_unknown(self, engine, store, tenant_id):
        trail = AuditTrail("sync:odoo")

        result = await engine.reconcile(dto(), tenant_id, audit=trail)

        assert result.effect is ItemEffect.CREATED
        product = await store.find_by_sku(tenant_id, "SKU-1")
        assert product.id == result.product_id
        assert product.name == "Desk"
        assert product.metadata == {"odoo_id": 7}
        assert trail.records[0].action is AuditAction.CREATED

    @pytest.mark.asyncio
    async def test_updates_existing_product(self, engine, store, tenant_id):
        created = await engine.reconcile(dto(), tenant_id)
        before = await store.find_by_sku(tenant_id, "SKU-1")
        trail = AuditTrail("sync:odoo")

        result = await engine.reconcile(dto(price=Decimal("120"), name="Desk XL"), tenant_id, audit=trail)

        after = await store.find_by_sku(tenant_id, "SKU-1")
        assert result.effect is ItemEffect.UPDATED
        assert result.product_id == created.product_id
        assert set(result.changed_fields) == {"name", "price"}
        assert after.id == before.id
        assert after.created_at == before.created_at
        assert after.price == Decimal("120")
        assert trail.records[0].action is AuditAction.UPDATED
        assert trail.records[0].new_values["price"] == "120"

    @pytest.mark.asyncio
    async def test_identical_update_keeps_timestamp(self, engine, store, tenant_id):
        await engine.reconcile(dto(), tenant_id)
        before = await store.find_by_sku(tenant_id, "SKU-1")
        trail = AuditTrail("sync:odoo")

        result = await engine.reconcile(dto(), tenant_id, audit=trail)

        assert result.effect is ItemEffect.UPDATED
        assert result.changed_fields == ()
        assert await store.find_by_sku(tenant_id, "SKU-1") == before
        assert trail.records == []

    @pytest.mark.asyncio
    async def test_unsupplied_fields_preserved(self, engine, store, tenant_id):
        await engine.reconcile(
            dto(
                source="shopify",
                images=[NormalizedImage(url="https://cdn/a.jpg")],
                source_metadata={"shopify_id": 1},
            ),
            tenant_id,
        )

        await engine.reconcile(dto(weight=None, images=None), tenant_id)

        product = await store.find_by_sku(tenant_id, "SKU-1")
        assert product.weight == 12.0
        assert product.primary_image_url == "https://cdn/a.jpg"
        assert product.metadata == {"shopify_id": 1, "odoo_id": 7}

    @pytest.mark.asyncio
    async def test_seo_fields_untouched(self, engine, store, tenant_id):
        await engine.reconcile(dto(), tenant_id)
        product = await store.find_by_sku(tenant_id, "SKU-1")
        await store.update(product.with_seo("Best desk", "Buy it"))

        await engine.reconcile(dto(price=Decimal("90")), tenant_id)

        assert (await store.find_by_sku(tenant_id, "SKU-1")).seo_title == "Best desk"

    @pytest.mark.asyncio
    async def test_invalid_dto_raises_validation(self, engine, store, tenant_id):
        with pytest.raises(InvariantViolation):
            await engine.reconcile(dto(name="   "), tenant_id)
        assert await store.list_products(tenant_id) == []

    @pytest.mark.asyncio
    async def test_variable_without_variants_rejected(self, engine, tenant_id):
        with pytest.raises(InvariantViolation):
            await engine.reconcile(dto(product_type=ProductType.VARIABLE, variants=[]), tenant_id)

    @pytest.mark.asyncio
    async def test_cancel_before_write(self, tenant_id):
        store = AsyncMock()
        store.find_by_sku.return_value = None
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(SyncCancelled):
            await ReconciliationEngine(store).reconcile(dto(), tenant_id, cancel=cancel)
        store.create.assert_not_called()
