"""Product tables - persisted form of the Canonical Product aggregate.

``products`` carries the unique ``(tenant_id, sku)`` business key. Variants
and images live in child tables owned by the product row and are merged by
id when a product is updated.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_sync.domain.product import (
    CanonicalProduct,
    Dimensions,
    Image,
    ProductStatus,
    ProductType,
    Variant,
)
from catalog_sync.models.base import Base, JSONType, as_utc

MONEY = Numeric(12, 2)


class VariantRecord(Base):
    __tablename__ = "product_variants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    dimensions: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    attributes: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def assign(self, variant: Variant, position: int) -> None:
        self.position = position
        self.sku = variant.sku
        self.name = variant.name
        self.price = variant.price
        self.cost = variant.cost
        self.stock_quantity = variant.stock_quantity
        self.weight = variant.weight
        self.dimensions = variant.dimensions.to_dict() if variant.dimensions else None
        self.attributes = dict(variant.attributes)
        self.is_active = variant.is_active
        self.created_at = variant.created_at
        self.updated_at = variant.updated_at

    def to_domain(self) -> Variant:
        return Variant(
            id=self.id,
            sku=self.sku,
            name=self.name,
            price=self.price,
            cost=self.cost,
            stock_quantity=self.stock_quantity,
            weight=self.weight,
            dimensions=Dimensions.from_dict(self.dimensions),
            attributes=dict(self.attributes or {}),
            is_active=self.is_active,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def __repr__(self) -> str:
        return f"<VariantRecord(id={self.id}, sku='{self.sku}')>"


class ImageRecord(Base):
    __tablename__ = "product_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    alt_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def assign(self, image: Image, position: int) -> None:
        self.position = position
        self.url = image.url
        self.alt_text = image.alt_text
        self.sort_order = image.sort_order
        self.is_primary = image.is_primary
        self.created_at = image.created_at

    def to_domain(self) -> Image:
        return Image(
            id=self.id,
            url=self.url,
            alt_text=self.alt_text,
            sort_order=self.sort_order,
            is_primary=self.is_primary,
            created_at=as_utc(self.created_at),
        )

    def __repr__(self) -> str:
        return f"<ImageRecord(id={self.id}, url='{self.url}')>"


class ProductRecord(Base):
    """Canonical product row, unique per ``(tenant_id, sku)``."""

    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("tenant_id", "sku", name="uq_products_tenant_sku"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    short_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    product_type: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    cost: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    dimensions: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    tags: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONType, nullable=False, default=dict
    )
    seo_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    seo_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    seo_keywords: Mapped[list[str]] = mapped_column(JSONType, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Relationships
    variants: Mapped[list[VariantRecord]] = relationship(
        VariantRecord,
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=VariantRecord.position,
    )
    images: Mapped[list[ImageRecord]] = relationship(
        ImageRecord,
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by=ImageRecord.position,
    )

    @classmethod
    def from_domain(cls, product: CanonicalProduct) -> "ProductRecord":
        record = cls(id=product.id, tenant_id=product.tenant_id, variants=[], images=[])
        record.apply(product)
        return record

    def apply(self, product: CanonicalProduct) -> None:
        """Copy the aggregate onto this row, merging child rows by id."""
        self.sku = product.sku
        self.name = product.name
        self.description = product.description
        self.short_description = product.short_description
        self.status = product.status.value
        self.product_type = product.product_type.value
        self.price = product.price
        self.cost = product.cost
        self.weight = product.weight
        self.dimensions = product.dimensions.to_dict() if product.dimensions else None
        self.categories = sorted(product.categories)
        self.tags = sorted(product.tags)
        self.metadata_ = dict(product.metadata)
        self.seo_title = product.seo_title
        self.seo_description = product.seo_description
        self.seo_keywords = list(product.seo_keywords)
        self.created_at = product.created_at
        self.updated_at = product.updated_at

        variant_rows = {row.id: row for row in self.variants}
        merged_variants = []
        for position, variant in enumerate(product.variants):
            row = variant_rows.get(variant.id) or VariantRecord(id=variant.id)
            row.assign(variant, position)
            merged_variants.append(row)
        self.variants = merged_variants

        image_rows = {row.id: row for row in self.images}
        merged_images = []
        for position, image in enumerate(product.images):
            row = image_rows.get(image.id) or ImageRecord(id=image.id)
            row.assign(image, position)
            merged_images.append(row)
        self.images = merged_images

    def to_domain(self) -> CanonicalProduct:
        return CanonicalProduct(
            id=self.id,
            tenant_id=self.tenant_id,
            sku=self.sku,
            name=self.name,
            description=self.description,
            short_description=self.short_description,
            status=ProductStatus(self.status),
            product_type=ProductType(self.product_type),
            price=self.price,
            cost=self.cost,
            weight=self.weight,
            dimensions=Dimensions.from_dict(self.dimensions),
            categories=frozenset(self.categories or ()),
            tags=frozenset(self.tags or ()),
            variants=tuple(row.to_domain() for row in self.variants),
            images=tuple(row.to_domain() for row in self.images),
            metadata=dict(self.metadata_ or {}),
            seo_title=self.seo_title,
            seo_description=self.seo_description,
            seo_keywords=tuple(self.seo_keywords or ()),
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def __repr__(self) -> str:
        return f"<ProductRecord(id={self.id}, tenant_id='{self.tenant_id}', sku='{self.sku}')>"
