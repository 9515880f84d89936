"""Canonical Product aggregate.

A Canonical Product is an immutable value. Every change goes through a
``with_*``/``without_*`` transition that returns a new value; construction
(including the one performed by a transition) validates all invariants.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, TypeVar

from catalog_sync.domain.audit import AuditAction, AuditTrail
from catalog_sync.domain.errors import EntityNotFound, InvariantViolation

CENT = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def to_decimal(value: Any) -> Decimal:
    """Coerce numbers and numeric strings to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def to_money(value: Any) -> Decimal:
    """Decimal rounded half-up to whole cents, the precision prices are stored at."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


EnumT = TypeVar("EnumT", bound=Enum)


def _member(enum_cls: type[EnumT], value: Any, rule: str) -> EnumT:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        field_name = rule.removesuffix("_valid")
        raise InvariantViolation(
            rule, f"Unknown {field_name}: {value!r} (expected one of {allowed})"
        ) from None


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"
    ARCHIVED = "archived"


class ProductType(str, Enum):
    SIMPLE = "simple"
    VARIABLE = "variable"
    GROUPED = "grouped"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Dimensions:
    """Package dimensions in centimeters."""

    length: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if min(self.length, self.width, self.height) < 0:
            raise InvariantViolation(
                "dimensions_non_negative", "Dimensions cannot be negative"
            )

    def to_dict(self) -> dict[str, float]:
        return {"length": self.length, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Dimensions | None:
        if not data:
            return None
        return cls(
            length=float(data.get("length", 0)),
            width=float(data.get("width", 0)),
            height=float(data.get("height", 0)),
        )


@dataclass(frozen=True)
class Variant:
    """A sellable variation of a product with its own SKU and stock."""

    id: str
    sku: str
    name: str = ""
    price: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    stock_quantity: int = 0
    weight: float | None = None
    dimensions: Dimensions | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sku", (self.sku or "").strip())
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "cost", to_decimal(self.cost))
        object.__setattr__(self, "attributes", dict(self.attributes))

        if not self.sku:
            raise InvariantViolation("variant_sku_required", "Variant SKU is required")
        if self.price < 0:
            raise InvariantViolation("price_non_negative", "Price cannot be negative")
        if self.cost < 0:
            raise InvariantViolation("cost_non_negative", "Cost cannot be negative")
        if self.stock_quantity < 0:
            raise InvariantViolation(
                "stock_non_negative", "Stock quantity cannot be negative"
            )
        if self.weight is not None and self.weight < 0:
            raise InvariantViolation("weight_non_negative", "Weight cannot be negative")

    @classmethod
    def new(cls, sku: str, **fields: Any) -> Variant:
        now = utcnow()
        return cls(id=new_id(), sku=sku, created_at=now, updated_at=now, **fields)

    def content(self) -> dict[str, Any]:
        """Source-comparable fields (no identity, no timestamps)."""
        return {
            "sku": self.sku,
            "name": self.name,
            "price": self.price,
            "cost": self.cost,
            "stock_quantity": self.stock_quantity,
            "weight": self.weight,
            "dimensions": self.dimensions,
            "attributes": self.attributes,
            "is_active": self.is_active,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            **self.content(),
            "price": str(self.price),
            "cost": str(self.cost),
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class Image:
    """A product image reference."""

    id: str
    url: str
    alt_text: str | None = None
    sort_order: int = 0
    is_primary: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise InvariantViolation("image_url_required", "Image URL is required")

    @classmethod
    def new(cls, url: str, **fields: Any) -> Image:
        return cls(id=new_id(), url=url, **fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "alt_text": self.alt_text,
            "sort_order": self.sort_order,
            "is_primary": self.is_primary,
            "created_at": self.created_at.isoformat(),
        }


# Fields compared by changes_since(); identity and timestamps are excluded.
TRACKED_FIELDS: tuple[str, ...] = (
    "sku",
    "name",
    "description",
    "short_description",
    "status",
    "product_type",
    "price",
    "cost",
    "weight",
    "dimensions",
    "categories",
    "tags",
    "variants",
    "images",
    "metadata",
    "seo_title",
    "seo_description",
    "seo_keywords",
)


@dataclass(frozen=True)
class CanonicalProduct:
    """One sellable item within one tenant.

    Invariants (checked on every construction):
        - ``tenant_id``, ``name`` and ``sku`` are non-empty
        - ``price``, ``cost`` and ``weight`` are never negative
        - a ``simple`` product has no variants
        - a ``variable`` product has at least one variant
        - variant SKUs are unique within the product
        - at most one image is primary
    """

    id: str
    tenant_id: str
    sku: str
    name: str
    description: str = ""
    short_description: str = ""
    status: ProductStatus = ProductStatus.DRAFT
    product_type: ProductType = ProductType.SIMPLE
    price: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    weight: float | None = None
    dimensions: Dimensions | None = None
    categories: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    variants: tuple[Variant, ...] = ()
    images: tuple[Image, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self._coerce()
        self._validate()

    def _coerce(self) -> None:
        set_ = object.__setattr__
        set_(self, "name", (self.name or "").strip())
        set_(self, "sku", (self.sku or "").strip())
        set_(self, "description", self.description or "")
        set_(self, "short_description", self.short_description or "")
        set_(self, "status", _member(ProductStatus, self.status, "status_valid"))
        set_(self, "product_type", _member(ProductType, self.product_type, "product_type_valid"))
        set_(self, "price", to_decimal(self.price))
        set_(self, "cost", to_decimal(self.cost))
        set_(self, "categories", frozenset(self.categories or ()))
        set_(self, "tags", frozenset(self.tags or ()))
        set_(self, "variants", tuple(self.variants or ()))
        set_(self, "images", tuple(self.images or ()))
        set_(self, "metadata", dict(self.metadata or {}))
        set_(self, "seo_keywords", tuple(self.seo_keywords or ()))

    def _validate(self) -> None:
        if not self.tenant_id:
            raise InvariantViolation("tenant_required", "Product must belong to a tenant")
        if not self.name:
            raise InvariantViolation("name_required", "Product name is required")
        if not self.sku:
            raise InvariantViolation("sku_required", "Product SKU is required")
        if self.price < 0:
            raise InvariantViolation("price_non_negative", "Price cannot be negative")
        if self.cost < 0:
            raise InvariantViolation("cost_non_negative", "Cost cannot be negative")
        if self.weight is not None and self.weight < 0:
            raise InvariantViolation("weight_non_negative", "Weight cannot be negative")
        if self.product_type is ProductType.SIMPLE and self.variants:
            raise InvariantViolation(
                "simple_has_no_variants", "Simple products cannot have variants"
            )
        if self.product_type is ProductType.VARIABLE and not self.variants:
            raise InvariantViolation(
                "variable_requires_variants", "Variable products must have variants"
            )

        seen: set[str] = set()
        for variant in self.variants:
            if variant.sku in seen:
                raise InvariantViolation(
                    "unique_variant_skus", f"Duplicate variant SKU: {variant.sku}"
                )
            seen.add(variant.sku)

        if sum(1 for image in self.images if image.is_primary) > 1:
            raise InvariantViolation(
                "single_primary_image", "Only one image can be primary"
            )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(cls, tenant_id: str, sku: str, name: str, **fields: Any) -> CanonicalProduct:
        """Build a brand-new product with a fresh identity."""
        now = utcnow()
        return cls(
            id=new_id(),
            tenant_id=tenant_id,
            sku=sku,
            name=name,
            created_at=now,
            updated_at=now,
            **fields,
        )

    def _evolve(self, **changes: Any) -> CanonicalProduct:
        return replace(self, updated_at=utcnow(), **changes)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def with_name(self, name: str, audit: AuditTrail | None = None) -> CanonicalProduct:
        if not name or not name.strip():
            raise InvariantViolation("name_required", "Product name cannot be empty")
        updated = self._evolve(name=name)
        if audit:
            audit.record(self.id, AuditAction.RENAMED, {"name": self.name}, {"name": updated.name})
        return updated

    def with_description(
        self,
        description: str,
        short_description: str,
        audit: AuditTrail | None = None,
    ) -> CanonicalProduct:
        updated = self._evolve(description=description, short_description=short_description)
        if audit:
            audit.record(
                self.id,
                AuditAction.DESCRIPTION_CHANGED,
                {"description": self.description, "short_description": self.short_description},
                {"description": updated.description, "short_description": updated.short_description},
            )
        return updated

    def with_status(
        self, status: ProductStatus | str, audit: AuditTrail | None = None
    ) -> CanonicalProduct:
        updated = self._evolve(status=_member(ProductStatus, status, "status_valid"))
        if audit:
            audit.record(
                self.id,
                AuditAction.STATUS_CHANGED,
                {"status": self.status.value},
                {"status": updated.status.value},
            )
        return updated

    def with_price(
        self,
        price: Decimal | float | str,
        cost: Decimal | float | str | None = None,
        audit: AuditTrail | None = None,
    ) -> CanonicalProduct:
        changes: dict[str, Any] = {"price": to_decimal(price)}
        if cost is not None:
            changes["cost"] = to_decimal(cost)
        updated = self._evolve(**changes)
        if audit:
            audit.record(
                self.id,
                AuditAction.PRICE_CHANGED,
                {"price": str(self.price), "cost": str(self.cost)},
                {"price": str(updated.price), "cost": str(updated.cost)},
            )
        return updated

    def with_seo(
        self,
        title: str | None,
        description: str | None,
        keywords: Iterable[str] = (),
        audit: AuditTrail | None = None,
    ) -> CanonicalProduct:
        updated = self._evolve(
            seo_title=title, seo_description=description, seo_keywords=tuple(keywords)
        )
        if audit:
            audit.record(
                self.id,
                AuditAction.UPDATED,
                {"seo_title": self.seo_title, "seo_description": self.seo_description},
                {"seo_title": updated.seo_title, "seo_description": updated.seo_description},
            )
        return updated

    def with_variant_added(
        self, variant: Variant, audit: AuditTrail | None = None
    ) -> CanonicalProduct:
        if self.product_type is ProductType.SIMPLE:
            raise InvariantViolation(
                "simple_has_no_variants", "Cannot add variants to simple products"
            )
        if any(v.sku == variant.sku for v in self.variants):
            raise InvariantViolation(
                "unique_variant_skus", f"Variant with SKU {variant.sku} already exists"
            )
        updated = self._evolve(variants=(*self.variants, variant))
        if audit:
            audit.record(self.id, AuditAction.VARIANT_ADDED, None, variant.to_dict())
        return updated

    def without_variant(
        self, variant_id: str, audit: AuditTrail | None = None
    ) -> CanonicalProduct:
        removed = self._find_variant(variant_id)
        updated = self._evolve(variants=tuple(v for v in self.variants if v.id != variant_id))
        if audit:
            audit.record(self.id, AuditAction.VARIANT_REMOVED, removed.to_dict(), None)
        return updated

    def with_variant_stock(
        self, variant_id: str, quantity: int, audit: AuditTrail | None = None
    ) -> CanonicalProduct:
        if quantity < 0:
            raise InvariantViolation("stock_non_negative", "Stock quantity cannot be negative")
        current = self._find_variant(variant_id)
        updated = self._replace_variant(
            replace(current, stock_quantity=quantity, updated_at=utcnow())
        )
        if audit:
            audit.record(
                self.id,
                AuditAction.STOCK_CHANGED,
                {"variant_id": variant_id, "stock_quantity": current.stock_quantity},
                {"variant_id": variant_id, "stock_quantity": quantity},
            )
        return updated

    def with_variant_price(
        self,
        variant_id: str,
        price: Decimal | float | str,
        audit: AuditTrail | None = None,
    ) -> CanonicalProduct:
        price = to_decimal(price)
        if price < 0:
            raise InvariantViolation("price_non_negative", "Price cannot be negative")
        current = self._find_variant(variant_id)
        updated = self._replace_variant(replace(current, price=price, updated_at=utcnow()))
        if audit:
            audit.record(
                self.id,
                AuditAction.PRICE_CHANGED,
                {"variant_id": variant_id, "price": str(current.price)},
                {"variant_id": variant_id, "price": str(price)},
            )
        return updated

    def with_image_added(
        self,
        url: str,
        alt_text: str | None = None,
        sort_order: int | None = None,
        is_primary: bool = False,
        audit: AuditTrail | None = None,
    ) -> CanonicalProduct:
        image = Image.new(
            url,
            alt_text=alt_text,
            sort_order=len(self.images) if sort_order is None else sort_order,
            is_primary=is_primary,
        )
        images = self.images
        if is_primary:
            images = tuple(replace(img, is_primary=False) for img in images)
        updated = self._evolve(images=(*images, image))
        if audit:
            audit.record(self.id, AuditAction.IMAGE_ADDED, None, image.to_dict())
        return updated

    def without_image(self, image_id: str, audit: AuditTrail | None = None) -> CanonicalProduct:
        removed = self._find_image(image_id)
        updated = self._evolve(images=tuple(img for img in self.images if img.id != image_id))
        if audit:
            audit.record(self.id, AuditAction.IMAGE_REMOVED, removed.to_dict(), None)
        return updated

    def with_primary_image(
        self, image_id: str, audit: AuditTrail | None = None
    ) -> CanonicalProduct:
        self._find_image(image_id)
        previous = self.primary_image
        images = tuple(replace(img, is_primary=img.id == image_id) for img in self.images)
        updated = self._evolve(images=images)
        if audit:
            audit.record(
                self.id,
                AuditAction.PRIMARY_IMAGE_SET,
                {"image_id": previous.id if previous else None},
                {"image_id": image_id},
            )
        return updated

    def _find_variant(self, variant_id: str) -> Variant:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        raise EntityNotFound(f"Variant not found: {variant_id}")

    def _find_image(self, image_id: str) -> Image:
        for image in self.images:
            if image.id == image_id:
                return image
        raise EntityNotFound(f"Image not found: {image_id}")

    def _replace_variant(self, variant: Variant) -> CanonicalProduct:
        return self._evolve(
            variants=tuple(variant if v.id == variant.id else v for v in self.variants)
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def primary_image(self) -> Image | None:
        return next((img for img in self.images if img.is_primary), None)

    @property
    def primary_image_url(self) -> str | None:
        image = self.primary_image
        return image.url if image else None

    @property
    def total_stock(self) -> int:
        if self.product_type is ProductType.SIMPLE:
            return 0
        return sum(v.stock_quantity for v in self.variants)

    @property
    def min_price(self) -> Decimal | None:
        if not self.variants:
            return None
        return min(v.price for v in self.variants)

    @property
    def max_price(self) -> Decimal | None:
        if not self.variants:
            return None
        return max(v.price for v in self.variants)

    def is_in_stock(self) -> bool:
        return self.total_stock > 0

    def changes_since(self, previous: CanonicalProduct) -> dict[str, tuple[Any, Any]]:
        """Return ``{field: (old, new)}`` for every tracked field that differs."""
        changes: dict[str, tuple[Any, Any]] = {}
        for name in TRACKED_FIELDS:
            old = getattr(previous, name)
            new = getattr(self, name)
            if old != new:
                changes[name] = (old, new)
        return changes

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "sku": self.sku,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "status": self.status.value,
            "product_type": self.product_type.value,
            "price": str(self.price),
            "cost": str(self.cost),
            "weight": self.weight,
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
            "categories": sorted(self.categories),
            "tags": sorted(self.tags),
            "variants": [v.to_dict() for v in self.variants],
            "images": [img.to_dict() for img in self.images],
            "metadata": self.metadata,
            "seo_title": self.seo_title,
            "seo_description": self.seo_description,
            "seo_keywords": list(self.seo_keywords),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
