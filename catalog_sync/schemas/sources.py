"""Native product records, one tagged model per source.

Each source returns a differently-shaped record. The models below keep the
field names each source uses on the wire so that adapters can hand raw
payloads straight to the mappers, which parse them with ``model_validate``.
"""

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _NativeRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =============================================================================
# Odoo (ERP)
# =============================================================================


class OdooProduct(_NativeRecord):
    """``product.template`` row returned by ``search_read``.

    Odoo encodes empty optional fields as ``False``; those are read as None.
    """

    source: Literal["odoo"] = "odoo"

    id: int
    name: str
    default_code: str | None = None
    description: str | None = None
    description_sale: str | None = None
    list_price: Decimal = Decimal("0")
    standard_price: Decimal | None = None
    type: str = "consu"
    categ_id: tuple[int, str] | None = None
    active: bool = True
    sale_ok: bool = True
    purchase_ok: bool = True
    weight: float | None = None
    volume: float | None = None
    barcode: str | None = None
    create_date: str | None = None
    write_date: str | None = None

    @field_validator(
        "default_code",
        "description",
        "description_sale",
        "standard_price",
        "categ_id",
        "weight",
        "volume",
        "barcode",
        "create_date",
        "write_date",
        mode="before",
    )
    @classmethod
    def odoo_false_is_none(cls, v: Any) -> Any:
        return None if v is False else v

    @property
    def category_name(self) -> str | None:
        return self.categ_id[1] if self.categ_id else None


# =============================================================================
# Shopify
# =============================================================================


class ShopifyVariant(_NativeRecord):
    id: int
    title: str = ""
    sku: str | None = None
    price: Decimal = Decimal("0")
    compare_at_price: Decimal | None = None
    position: int = 1
    inventory_quantity: int = 0
    weight: float | None = None
    weight_unit: str = "kg"
    barcode: str | None = None
    option1: str | None = None
    option2: str | None = None
    option3: str | None = None


class ShopifyOption(_NativeRecord):
    name: str
    position: int = 1
    values: list[str] = Field(default_factory=list)


class ShopifyImage(_NativeRecord):
    id: int | None = None
    src: str
    alt: str | None = None
    position: int = 1


class ShopifyProduct(_NativeRecord):
    """Product resource from the Admin REST ``products.json`` endpoint."""

    source: Literal["shopify"] = "shopify"

    id: int
    title: str
    body_html: str | None = None
    vendor: str | None = None
    product_type: str | None = None
    handle: str | None = None
    status: str = "draft"
    tags: str = ""
    created_at: str | None = None
    updated_at: str | None = None
    published_at: str | None = None
    variants: list[ShopifyVariant] = Field(default_factory=list)
    options: list[ShopifyOption] = Field(default_factory=list)
    images: list[ShopifyImage] = Field(default_factory=list)

    @property
    def tag_list(self) -> list[str]:
        return [tag.strip() for tag in self.tags.split(",") if tag.strip()]


# =============================================================================
# Trendyol
# =============================================================================


class TrendyolImage(_NativeRecord):
    url: str


class TrendyolProduct(_NativeRecord):
    """Supplier product from ``/suppliers/{sellerId}/products``."""

    source: Literal["trendyol"] = "trendyol"

    id: str
    productMainId: str | None = None
    barcode: str | None = None
    stockCode: str | None = None
    title: str
    description: str | None = None
    brand: str | None = None
    categoryName: str | None = None
    listPrice: Decimal = Decimal("0")
    salePrice: Decimal | None = None
    quantity: int = 0
    dimensionalWeight: float | None = None
    approved: bool = False
    archived: bool = False
    onSale: bool = False
    rejected: bool = False
    images: list[TrendyolImage] = Field(default_factory=list)
    createDateTime: int | None = None
    lastUpdateDate: int | None = None

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @property
    def native_status(self) -> str:
        """Collapse Trendyol's approval flags into a single status word."""
        if self.archived:
            return "archived"
        if self.rejected or not self.approved:
            return "pending"
        return "active" if self.onSale else "inactive"


# =============================================================================
# Amazon
# =============================================================================


class AmazonListing(_NativeRecord):
    """Flattened SP-API listing item."""

    source: Literal["amazon"] = "amazon"

    sku: str | None = None
    asin: str | None = None
    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    currency: str | None = None
    quantity: int = 0
    status: str = "Incomplete"
    condition: str | None = None
    fulfillmentChannel: str | None = None
    imageUrl: str | None = None
    brand: str | None = None
    category: str | None = None

