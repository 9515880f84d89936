"""Amazon marketplace mapper (flattened SP-API listing items)."""

from catalog_sync.domain.product import ProductStatus, ProductType
from catalog_sync.mappers.base import SourceMapper
from catalog_sync.schemas.normalized import NormalizedImage, NormalizedProduct
from catalog_sync.schemas.sources import AmazonListing

STATUS_TABLE = {
    "active": ProductStatus.ACTIVE,
    "inactive": ProductStatus.INACTIVE,
    "incomplete": ProductStatus.DRAFT,
}


class AmazonMapper(SourceMapper[AmazonListing]):
    source = "amazon"
    record_type = AmazonListing
    status_table = STATUS_TABLE
    default_status = ProductStatus.DRAFT
    short_description_limit = 120

    def identifier_keys(self) -> tuple[str, ...]:
        return ("sku", "asin", "title")

    def to_normalized(self, record: AmazonListing) -> NormalizedProduct:
        sku = self.require_sku(record.sku, record.asin or record.title)
        price = record.price or 0
        # Untitled listings are named after their SKU
        name = record.title or sku

        return NormalizedProduct(
            source=self.source,
            source_id=record.asin,
            sku=sku,
            name=name,
            description=record.description or "",
            short_description=self.short_description(record.description or record.title),
            status=self.map_status(record.status),
            product_type=ProductType.SIMPLE,
            price=price,
            cost=self.estimate_cost(price),
            categories=[record.category] if record.category else [],
            tags=[record.brand] if record.brand else [],
            images=[NormalizedImage(url=record.imageUrl, alt=name)] if record.imageUrl else None,
            source_metadata=self.metadata(
                asin=record.asin,
                condition=record.condition,
                fulfillment_channel=record.fulfillmentChannel,
                currency=record.currency,
                quantity=record.quantity,
                status=record.status,
            ),
        )
