"""Reconciliation Engine - create-or-update of one Normalized Product.

``(tenant_id, sku)`` is the single join point across sources: whichever
source produces a SKU first creates the canonical product, every later
record with that SKU updates it.

On update only the fields a DTO supplies are overwritten:

    always:        name, description, short_description, status,
                   product_type, price, cost, categories, tags,
                   metadata (this source's namespaced keys)
    when supplied: weight, images, variants
    never:         id, tenant_id, created_at, dimensions, seo_*

An update whose DTO changes nothing keeps the stored ``updated_at``, so
replaying identical source data is a no-op apart from the store write.
"""

import asyncio
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from catalog_sync.core.item_result import ItemEffect, ItemOk
from catalog_sync.domain.audit import AuditAction, AuditTrail
from catalog_sync.domain.errors import SyncCancelled
from catalog_sync.domain.product import (
    CanonicalProduct,
    Image,
    Variant,
    new_id,
    utcnow,
)
from catalog_sync.infra.logging import get_logger
from catalog_sync.schemas.normalized import NormalizedImage, NormalizedProduct, NormalizedVariant
from catalog_sync.store.base import CatalogStore

logger = get_logger(__name__)


def merge_images(
    current: Iterable[Image], incoming: Iterable[NormalizedImage]
) -> tuple[Image, ...]:
    """Replace the image list, reusing identity for URLs already present.

    ``sort_order`` follows the incoming order. The current primary image
    stays primary if its URL survives, otherwise the first image becomes
    primary.
    """
    by_url = {image.url: image for image in current}
    primary_url = next((url for url, image in by_url.items() if image.is_primary), None)

    unique: list[NormalizedImage] = []
    seen: set[str] = set()
    for item in incoming:
        if item.url and item.url not in seen:
            seen.add(item.url)
            unique.append(item)

    if primary_url not in seen:
        primary_url = unique[0].url if unique else None

    images = []
    for order, item in enumerate(unique):
        previous = by_url.get(item.url)
        images.append(
            Image(
                id=previous.id if previous else new_id(),
                url=item.url,
                alt_text=item.alt,
                sort_order=order,
                is_primary=item.url == primary_url,
                created_at=previous.created_at if previous else utcnow(),
            )
        )
    return tuple(images)


def merge_variants(
    current: Iterable[Variant], incoming: Iterable[NormalizedVariant]
) -> tuple[Variant, ...]:
    """Replace the variant list, matching existing variants by SKU.

    Matched variants keep their id, ``created_at`` and ``dimensions``; a
    variant whose content is unchanged is kept as-is.
    """
    by_sku = {variant.sku: variant for variant in current}

    variants = []
    for item in incoming:
        fields: dict[str, Any] = {
            "name": item.name,
            "price": item.price,
            "cost": item.cost,
            "stock_quantity": item.stock_quantity,
            "attributes": dict(item.attributes),
            "is_active": item.is_active,
        }
        if item.weight is not None:
            fields["weight"] = item.weight

        sku = item.sku.strip()
        previous = by_sku.get(sku)
        if previous is None:
            variants.append(Variant.new(sku, **fields))
            continue

        candidate = replace(previous, **fields)
        if candidate.content() == previous.content():
            variants.append(previous)
        else:
            variants.append(replace(candidate, updated_at=utcnow()))
    return tuple(variants)


def merge_metadata(
    current: dict[str, Any], source: str, incoming: dict[str, Any]
) -> dict[str, Any]:
    """Replace this source's namespaced keys; keep every other key."""
    prefix = f"{source}_"
    merged = {key: value for key, value in current.items() if not key.startswith(prefix)}
    merged.update(incoming)
    return merged


class ReconciliationEngine:
    """Decides create vs. update for one DTO and applies it to the store."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    async def reconcile(
        self,
        dto: NormalizedProduct,
        tenant_id: str,
        audit: AuditTrail | None = None,
        cancel: asyncio.Event | None = None,
    ) -> ItemOk:
        """Create or update the canonical product for ``dto``.

        Raises:
            ValidationError: If the resulting product breaks an invariant
            PersistenceError: If the store rejects the write
            SyncCancelled: If ``cancel`` was set before the write
        """
        existing = await self._store.find_by_sku(tenant_id, dto.sku.strip())

        if existing is None:
            product = self.build_new(dto, tenant_id)
            self._checkpoint(cancel)
            await self._store.create(product)
            if audit:
                audit.record(
                    product.id,
                    AuditAction.CREATED,
                    None,
                    {"sku": product.sku, "source": dto.source},
                )
            logger.debug(
                "Product created from source",
                tenant_id=tenant_id,
                source=dto.source,
                sku=product.sku,
            )
            return ItemOk(ItemEffect.CREATED, product.sku, product.id)

        product = self.merge(existing, dto)
        changes = product.changes_since(existing)
        self._checkpoint(cancel)
        await self._store.update(product)
        if audit and changes:
            audit.record(
                product.id,
                AuditAction.UPDATED,
                {name: _audit_value(old) for name, (old, _) in changes.items()},
                {name: _audit_value(new) for name, (_, new) in changes.items()},
            )
        logger.debug(
            "Product updated from source",
            tenant_id=tenant_id,
            source=dto.source,
            sku=product.sku,
            changed_fields=sorted(changes),
        )
        return ItemOk(ItemEffect.UPDATED, product.sku, product.id, tuple(sorted(changes)))

    def build_new(self, dto: NormalizedProduct, tenant_id: str) -> CanonicalProduct:
        """Construct a brand-new product from a DTO (fresh identity)."""
        return CanonicalProduct.create(
            tenant_id,
            dto.sku,
            dto.name,
            description=dto.description,
            short_description=dto.short_description,
            status=dto.status,
            product_type=dto.product_type,
            price=dto.price,
            cost=dto.cost,
            weight=dto.weight,
            categories=frozenset(dto.categories),
            tags=frozenset(dto.tags),
            images=merge_images((), dto.images or ()),
            variants=merge_variants((), dto.variants or ()),
            metadata=dict(dto.source_metadata),
        )

    def merge(self, existing: CanonicalProduct, dto: NormalizedProduct) -> CanonicalProduct:
        """Overlay the DTO's supplied fields onto ``existing``."""
        changes: dict[str, Any] = {
            "name": dto.name,
            "description": dto.description,
            "short_description": dto.short_description,
            "status": dto.status,
            "product_type": dto.product_type,
            "price": dto.price,
            "cost": dto.cost,
            "categories": frozenset(dto.categories),
            "tags": frozenset(dto.tags),
            "metadata": merge_metadata(existing.metadata, dto.source, dto.source_metadata),
        }
        if dto.weight is not None:
            changes["weight"] = dto.weight
        if dto.images is not None:
            changes["images"] = merge_images(existing.images, dto.images)
        if dto.variants is not None:
            changes["variants"] = merge_variants(existing.variants, dto.variants)

        candidate = replace(existing, **changes)
        if not candidate.changes_since(existing):
            return existing
        return replace(candidate, updated_at=utcnow())

    @staticmethod
    def _checkpoint(cancel: asyncio.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            raise SyncCancelled("Sync cancelled")


def _audit_value(value: Any) -> Any:
    if isinstance(value, frozenset):
        return sorted(value)
    if isinstance(value, tuple):
        return [item.to_dict() if hasattr(item, "to_dict") else item for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "value"):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str, dict, list)):
        return value
    return str(value)
