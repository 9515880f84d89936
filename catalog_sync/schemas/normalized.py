"""Normalized Product DTO - the single shape every source mapper produces."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog_sync.domain.product import ProductStatus, ProductType, to_money


class NormalizedImage(BaseModel):
    """Image reference supplied by a source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str
    alt: str | None = None


class NormalizedVariant(BaseModel):
    """Variant supplied by a variant-aware source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sku: str
    name: str = ""
    price: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    stock_quantity: int = 0
    weight: float | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True

    @field_validator("price", "cost")
    @classmethod
    def round_to_cents(cls, v: Decimal) -> Decimal:
        return to_money(v)


class NormalizedProduct(BaseModel):
    """Source-independent product representation.

    ``images``, ``variants`` and ``weight`` are optional: ``None`` means the
    source does not supply the field and the reconciler must preserve
    whatever the canonical product already holds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: str = Field(description="Source name that produced this record")
    source_id: str | None = Field(default=None, description="Source-native identifier")
    sku: str
    name: str
    description: str = ""
    short_description: str = ""
    status: ProductStatus
    product_type: ProductType
    price: Decimal
    cost: Decimal
    weight: float | None = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    images: list[NormalizedImage] | None = None
    variants: list[NormalizedVariant] | None = None
    source_metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("price", "cost")
    @classmethod
    def round_to_cents(cls, v: Decimal) -> Decimal:
        return to_money(v)

    @property
    def label(self) -> str:
        """Human-readable identifier used in error messages."""
        return self.name or self.sku or (self.source_id or "<unknown>")
