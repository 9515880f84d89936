"""Tests for native source record models."""

import pydantic
import pytest

from catalog_sync.schemas.sources import OdooProduct, ShopifyProduct, TrendyolProduct


class TestNativeRecords:
    """Tests for per-source record parsing."""

    def test_odoo_false_is_none(self):
        product = OdooProduct.model_validate(
            {"id": 1, "name": "Desk", "default_code": False, "categ_id": False, "weight": False}
        )
        assert product.default_code is None
        assert product.category_name is None
        assert product.weight is None

    def test_odoo_category_name(self):
        product = OdooProduct.model_validate({"id": 1, "name": "Desk", "categ_id": [4, "All / Office"]})
        assert product.category_name == "All / Office"

    def test_shopify_tag_list(self):
        product = ShopifyProduct.model_validate({"id": 1, "title": "T", "tags": "a, b ,,c"})
        assert product.tag_list == ["a", "b", "c"]

    def test_trendyol_numeric_id(self):
        product = TrendyolProduct.model_validate({"id": 42, "title": "T"})
        assert product.id == "42"
        assert product.native_status == "pending"

    def test_unknown_keys_ignored(self):
        product = ShopifyProduct.model_validate({"id": 1, "title": "T", "admin_graphql_api_id": "gid://1"})
        assert product.title == "T"

    def test_source_tag_is_fixed_per_model(self):
        assert TrendyolProduct.model_validate({"id": "9", "title": "T"}).source == "trendyol"

        with pytest.raises(pydantic.ValidationError):
            OdooProduct.model_validate({"source": "shopify", "id": 9, "name": "T"})
