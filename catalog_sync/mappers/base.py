"""Base Mapper - pure transformation from a native record to a Normalized Product.

Mappers never do I/O. Each concrete mapper owns its source's status table,
product-type heuristic, short-description limit and metadata namespace.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, ClassVar, Generic, TypeVar

import pydantic
from bs4 import BeautifulSoup

from catalog_sync.domain.errors import MappingError
from catalog_sync.domain.product import ProductStatus, to_decimal, to_money
from catalog_sync.schemas.normalized import NormalizedProduct

RecordT = TypeVar("RecordT", bound=pydantic.BaseModel)

ELLIPSIS = "..."

_WHITESPACE = re.compile(r"\s+")


def strip_markup(text: str | None) -> str:
    """Return the visible text of an HTML fragment with whitespace collapsed."""
    if not text:
        return ""
    if "<" in text:
        text = BeautifulSoup(text, "html.parser").get_text(" ")
    return _WHITESPACE.sub(" ", text).strip()


def extract_short_description(text: str | None, limit: int) -> str:
    """Strip markup and cut to ``limit`` characters, marking truncation."""
    plain = strip_markup(text)
    if len(plain) <= limit:
        return plain
    return plain[:limit].rstrip() + ELLIPSIS


def estimate_cost(price: Decimal | float | str | None, ratio: Decimal) -> Decimal:
    """Placeholder cost for sources that do not expose one: ``price * ratio``."""
    return to_money(to_decimal(price) * ratio)


class SourceMapper(ABC, Generic[RecordT]):
    """Abstract base class for per-source mappers.

    Attributes:
        source: Source name, also the ``source_metadata`` key prefix
        record_type: Pydantic model of the native record
        status_table: Closed native-status -> canonical-status table
        default_status: Status for any value missing from ``status_table``
        short_description_limit: Max characters of the extracted short description
    """

    source: ClassVar[str]
    record_type: ClassVar[type[pydantic.BaseModel]]
    status_table: ClassVar[Mapping[str, ProductStatus]] = {}
    default_status: ClassVar[ProductStatus] = ProductStatus.DRAFT
    short_description_limit: ClassVar[int] = 150

    def __init__(self, cost_estimate_ratio: Decimal | float | str = Decimal("0.70")) -> None:
        ratio = to_decimal(cost_estimate_ratio)
        if not Decimal("0") <= ratio <= Decimal("1"):
            raise ValueError("cost_estimate_ratio must be between 0 and 1")
        self.cost_estimate_ratio = ratio

    def map(self, raw: Mapping[str, Any] | pydantic.BaseModel) -> NormalizedProduct:
        """Parse and normalize one native record.

        Raises:
            MappingError: If the record cannot be parsed or lacks a required field
        """
        record = self.parse(raw)
        try:
            return self.to_normalized(record)
        except MappingError:
            raise
        except (pydantic.ValidationError, KeyError, TypeError, ValueError, ArithmeticError) as e:
            raise MappingError(self.source, self.identify(raw), str(e)) from e

    def parse(self, raw: Mapping[str, Any] | pydantic.BaseModel) -> RecordT:
        if isinstance(raw, self.record_type):
            return raw  # type: ignore[return-value]
        if isinstance(raw, pydantic.BaseModel):
            raw = raw.model_dump()
        try:
            return self.record_type.model_validate(raw)  # type: ignore[return-value]
        except pydantic.ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MappingError(
                self.source,
                self.identify(raw),
                f"Invalid {self.source} record ({fields})",
            ) from e

    def identify(self, raw: Any) -> str | None:
        """Best-effort identifier of a raw record, for error messages."""
        if isinstance(raw, pydantic.BaseModel):
            raw = raw.model_dump()
        if not isinstance(raw, Mapping):
            return None
        for key in self.identifier_keys():
            value = raw.get(key)
            if value not in (None, "", False):
                return str(value)
        return None

    def identifier_keys(self) -> tuple[str, ...]:
        return ("name", "title", "id")

    @abstractmethod
    def to_normalized(self, record: RecordT) -> NormalizedProduct:
        """Map a parsed native record to the Normalized Product DTO."""
        raise NotImplementedError(f"{self.__class__.__name__} must implement to_normalized()")

    # ------------------------------------------------------------------
    # Helpers shared by concrete mappers
    # ------------------------------------------------------------------

    def map_status(self, native: str | None) -> ProductStatus:
        if native is None:
            return self.default_status
        # Tables are keyed in lower case
        return self.status_table.get(native.strip().lower(), self.default_status)

    def short_description(self, text: str | None) -> str:
        return extract_short_description(text, self.short_description_limit)

    def estimate_cost(self, price: Decimal | float | str | None) -> Decimal:
        return estimate_cost(price, self.cost_estimate_ratio)

    def require_sku(self, sku: str | None, identifier: str | None) -> str:
        if sku is None or not sku.strip():
            raise MappingError(self.source, identifier, f"{self.source} record has no SKU")
        return sku.strip()

    def metadata(self, **fields: Any) -> dict[str, Any]:
        """Namespace provenance fields with the source prefix, dropping None values."""
        return {
            f"{self.source}_{key}": _plain(value)
            for key, value in fields.items()
            if value is not None
        }


def _plain(value: Any) -> Any:
    """Make metadata values JSON friendly."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, tuple):
        return list(value)
    return value
