"""Trendyol marketplace mapper."""

from catalog_sync.domain.product import ProductStatus, ProductType
from catalog_sync.mappers.base import SourceMapper
from catalog_sync.schemas.normalized import NormalizedImage, NormalizedProduct
from catalog_sync.schemas.sources import TrendyolProduct

STATUS_TABLE = {
    "active": ProductStatus.ACTIVE,
    "inactive": ProductStatus.INACTIVE,
    "pending": ProductStatus.DRAFT,
    "archived": ProductStatus.ARCHIVED,
}


class TrendyolMapper(SourceMapper[TrendyolProduct]):
    """Maps Trendyol supplier products.

    The product-level SKU is ``productMainId``; every Trendyol product is
    treated as ``simple`` and variants are never supplied.
    """

    source = "trendyol"
    record_type = TrendyolProduct
    status_table = STATUS_TABLE
    default_status = ProductStatus.INACTIVE
    short_description_limit = 150

    def identifier_keys(self) -> tuple[str, ...]:
        return ("productMainId", "title", "barcode", "id")

    def to_normalized(self, record: TrendyolProduct) -> NormalizedProduct:
        sku = self.require_sku(record.productMainId, record.title or record.id)
        price = record.salePrice if record.salePrice else record.listPrice

        return NormalizedProduct(
            source=self.source,
            source_id=record.id,
            sku=sku,
            name=record.title,
            description=record.description or "",
            short_description=self.short_description(record.description),
            status=self.map_status(record.native_status),
            product_type=ProductType.SIMPLE,
            price=price,
            cost=self.estimate_cost(price),
            categories=[record.categoryName] if record.categoryName else [],
            tags=[record.brand] if record.brand else [],
            images=[NormalizedImage(url=image.url, alt=record.title) for image in record.images],
            source_metadata=self.metadata(
                id=record.id,
                barcode=record.barcode,
                stock_code=record.stockCode,
                brand=record.brand,
                category=record.categoryName,
                original_price=record.listPrice,
                sale_price=record.salePrice,
                stock=record.quantity,
                dimensional_weight=record.dimensionalWeight,
                created_at=record.createDateTime,
                updated_at=record.lastUpdateDate,
            ),
        )
