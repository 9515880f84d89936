"""Tests for the Amazon mapper."""

from decimal import Decimal

import pytest

from catalog_sync.domain.errors import MappingError
from catalog_sync.domain.product import ProductStatus
from catalog_sync.mappers.amazon import AmazonMapper


def amazon_listing(**overrides):
    listing = {
        "sku": "AMZ-1",
        "asin": "B000123",
        "title": "Travel Mug",
        "price": "24.99",
        "currency": "USD",
        "quantity": 7,
        "status": "Active",
        "condition": "new_new",
        "fulfillmentChannel": "DEFAULT",
        "imageUrl": "https://m.media-amazon.com/mug.jpg",
        "brand": "Acme",
    }
    listing.update(overrides)
    return listing


class TestAmazonMapper:
    """Tests for AmazonMapper."""

    @pytest.fixture
    def mapper(self) -> AmazonMapper:
        return AmazonMapper()

    def test_maps_core_fields(self, mapper):
        dto = mapper.map(amazon_listing())

        assert dto.sku == "AMZ-1"
        assert dto.source_id == "B000123"
        assert dto.status is ProductStatus.ACTIVE
        assert dto.price == Decimal("24.99")
        assert dto.cost == Decimal("17.49")
        assert dto.tags == ["Acme"]
        assert dto.images[0].url == "https://m.media-amazon.com/mug.jpg"

    def test_untitled_listing_named_after_sku(self, mapper):
        dto = mapper.map(amazon_listing(title=None))
        assert dto.name == "AMZ-1"

    def test_no_image_preserves_existing(self, mapper):
        assert mapper.map(amazon_listing(imageUrl=None)).images is None

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("Active", ProductStatus.ACTIVE),
            ("Inactive", ProductStatus.INACTIVE),
            ("Incomplete", ProductStatus.DRAFT),
            ("Suppressed", ProductStatus.DRAFT),
        ],
    )
    def test_status(self, mapper, status, expected):
        assert mapper.map(amazon_listing(status=status)).status is expected

    def test_missing_price_is_zero(self, mapper):
        dto = mapper.map(amazon_listing(price=None))
        assert dto.price == Decimal("0")
        assert dto.cost == Decimal("0.00")

    def test_missing_sku_is_mapping_error(self, mapper):
        with pytest.raises(MappingError) as exc_info:
            mapper.map(amazon_listing(sku=None))
        assert exc_info.value.identifier == "B000123"
