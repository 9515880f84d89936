"""Shopify mapper (Admin REST product resource)."""

from decimal import Decimal

from catalog_sync.domain.errors import MappingError
from catalog_sync.domain.product import ProductStatus, ProductType
from catalog_sync.mappers.base import SourceMapper
from catalog_sync.schemas.normalized import NormalizedImage, NormalizedProduct, NormalizedVariant
from catalog_sync.schemas.sources import ShopifyProduct, ShopifyVariant

STATUS_TABLE = {
    "active": ProductStatus.ACTIVE,
    "draft": ProductStatus.DRAFT,
    "archived": ProductStatus.ARCHIVED,
}

# Multipliers to kilograms
WEIGHT_UNITS = {
    "kg": Decimal("1"),
    "g": Decimal("0.001"),
    "lb": Decimal("0.45359237"),
    "oz": Decimal("0.028349523125"),
}


def weight_in_kg(variant: ShopifyVariant) -> float | None:
    if variant.weight is None:
        return None
    factor = WEIGHT_UNITS.get(variant.weight_unit.lower(), Decimal("1"))
    return round(float(Decimal(str(variant.weight)) * factor), 3)


class ShopifyMapper(SourceMapper[ShopifyProduct]):
    """Maps Shopify products.

    Shopify is variant-aware: a product with more than one variant becomes
    ``variable`` and carries its variants; a single-variant product is
    ``simple`` with an empty variant list. The product SKU is the SKU of the
    first variant.
    """

    source = "shopify"
    record_type = ShopifyProduct
    status_table = STATUS_TABLE
    default_status = ProductStatus.DRAFT
    short_description_limit = 100

    def identifier_keys(self) -> tuple[str, ...]:
        return ("title", "handle", "id")

    def to_normalized(self, record: ShopifyProduct) -> NormalizedProduct:
        variants = sorted(record.variants, key=lambda v: v.position)
        first = variants[0] if variants else None
        sku = self.require_sku(first.sku if first else None, record.title or str(record.id))

        is_variable = len(variants) > 1
        price = first.price if first else Decimal("0")

        return NormalizedProduct(
            source=self.source,
            source_id=str(record.id),
            sku=sku,
            name=record.title,
            description=record.body_html or "",
            short_description=self.short_description(record.body_html),
            status=self.map_status(record.status),
            product_type=ProductType.VARIABLE if is_variable else ProductType.SIMPLE,
            price=price,
            cost=self.estimate_cost(price),
            weight=weight_in_kg(first) if first else None,
            categories=[record.product_type] if record.product_type else [],
            tags=record.tag_list,
            images=[
                NormalizedImage(url=image.src, alt=image.alt or record.title)
                for image in sorted(record.images, key=lambda i: i.position)
            ],
            variants=[self._variant(record, v) for v in variants] if is_variable else [],
            source_metadata=self.metadata(
                id=record.id,
                handle=record.handle,
                vendor=record.vendor,
                product_type=record.product_type,
                tags=record.tags or None,
                created_at=record.created_at,
                updated_at=record.updated_at,
                published_at=record.published_at,
            ),
        )

    def _variant(self, record: ShopifyProduct, variant: ShopifyVariant) -> NormalizedVariant:
        if not variant.sku or not variant.sku.strip():
            raise MappingError(
                self.source,
                record.title or str(record.id),
                f"Variant {variant.id} has no SKU",
            )

        option_values = (variant.option1, variant.option2, variant.option3)
        options = sorted(record.options, key=lambda o: o.position)
        attributes = {
            option.name: value
            for option, value in zip(options, option_values)
            if value is not None
        }
        attributes["shopify_variant_id"] = variant.id
        if variant.barcode:
            attributes["barcode"] = variant.barcode

        return NormalizedVariant(
            sku=variant.sku.strip(),
            name=variant.title,
            price=variant.price,
            cost=self.estimate_cost(variant.price),
            stock_quantity=max(variant.inventory_quantity, 0),
            weight=weight_in_kg(variant),
            attributes=attributes,
        )
