"""Odoo ERP mapper (``product.template``)."""

from catalog_sync.domain.product import ProductStatus, ProductType
from catalog_sync.mappers.base import SourceMapper
from catalog_sync.schemas.normalized import NormalizedProduct
from catalog_sync.schemas.sources import OdooProduct

# Odoo has no status field; archived templates come back with active=False
STATUS_TABLE = {
    "active": ProductStatus.ACTIVE,
    "archived": ProductStatus.INACTIVE,
}

TYPE_TABLE = {
    "consu": ProductType.SIMPLE,
    "product": ProductType.SIMPLE,
    "service": ProductType.EXTERNAL,
    "combo": ProductType.GROUPED,
}


class OdooMapper(SourceMapper[OdooProduct]):
    """Maps Odoo product templates.

    Odoo is the source of truth for cost, so ``standard_price`` is used when
    present. Images and variants are not read from Odoo.
    """

    source = "odoo"
    record_type = OdooProduct
    status_table = STATUS_TABLE
    default_status = ProductStatus.INACTIVE
    short_description_limit = 150

    def identifier_keys(self) -> tuple[str, ...]:
        return ("default_code", "name", "id")

    def to_normalized(self, record: OdooProduct) -> NormalizedProduct:
        sku = self.require_sku(record.default_code, record.name or str(record.id))

        if record.description_sale:
            short_description = self.short_description(record.description_sale)
        else:
            short_description = self.short_description(record.description)

        cost = record.standard_price
        if cost is None:
            cost = self.estimate_cost(record.list_price)

        category = record.category_name
        return NormalizedProduct(
            source=self.source,
            source_id=str(record.id),
            sku=sku,
            name=record.name,
            description=record.description or "",
            short_description=short_description,
            status=self.map_status("active" if record.active else "archived"),
            product_type=TYPE_TABLE.get(record.type, ProductType.SIMPLE),
            price=record.list_price,
            cost=cost,
            weight=record.weight,
            categories=[category] if category else [],
            tags=[],
            source_metadata=self.metadata(
                id=record.id,
                sku=record.default_code,
                barcode=record.barcode,
                type=record.type,
                category_id=record.categ_id[0] if record.categ_id else None,
                sale_ok=record.sale_ok,
                purchase_ok=record.purchase_ok,
                volume=record.volume,
                create_date=record.create_date,
                write_date=record.write_date,
            ),
        )
