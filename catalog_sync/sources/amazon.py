"""Amazon adapter over the Selling Partner API listings endpoints."""

from typing import Any

from catalog_sync.config import settings
from catalog_sync.schemas.credentials import AmazonCredentials
from catalog_sync.sources.base import FetchedPage, HttpSourceAdapter

LISTINGS_PATH = "/listings/2021-08-01/items/{seller_id}"
PARTICIPATIONS_PATH = "/sellers/v1/marketplaceParticipations"
INCLUDED_DATA = "summaries,attributes,offers,fulfillmentAvailability"

# searchListingsItems caps pageSize at 20
MAX_PAGE_SIZE = 20


def _first(items: Any) -> dict[str, Any]:
    if isinstance(items, list) and items:
        return items[0] or {}
    return {}


def _attribute(attributes: dict[str, Any], name: str) -> Any:
    return _first(attributes.get(name)).get("value")


def listing_status(summary: dict[str, Any]) -> str:
    statuses = summary.get("status") or []
    if "BUYABLE" in statuses:
        return "Active"
    if statuses:
        return "Inactive"
    return "Incomplete"


def flatten_listing(item: dict[str, Any]) -> dict[str, Any]:
    """Flatten an SP-API listings item into the ``AmazonListing`` shape."""
    summary = _first(item.get("summaries"))
    offer = _first(item.get("offers"))
    availability = _first(item.get("fulfillmentAvailability"))
    attributes = item.get("attributes") or {}
    price = offer.get("price") or {}

    return {
        "sku": item.get("sku"),
        "asin": summary.get("asin"),
        "title": summary.get("itemName"),
        "description": _attribute(attributes, "product_description"),
        "price": price.get("amount"),
        "currency": price.get("currencyCode"),
        "quantity": availability.get("quantity") or 0,
        "status": listing_status(summary),
        "condition": summary.get("conditionType"),
        "fulfillmentChannel": availability.get("fulfillmentChannelCode"),
        "imageUrl": (summary.get("mainImage") or {}).get("link"),
        "brand": _attribute(attributes, "brand"),
        "category": summary.get("productType"),
    }


class AmazonAdapter(HttpSourceAdapter[AmazonCredentials]):
    """Reads seller listings; the cursor is SP-API's ``pageToken``."""

    source = "amazon"

    def __init__(self, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = (base_url or settings.amazon_base_url).rstrip("/")

    def _headers(self, credentials: AmazonCredentials) -> dict[str, str]:
        return {"x-amz-access-token": credentials.access_token.get_secret_value()}

    async def _handshake(self, credentials: AmazonCredentials) -> None:
        await self._request(
            "GET",
            f"{self.base_url}{PARTICIPATIONS_PATH}",
            headers=self._headers(credentials),
        )

    async def _fetch(
        self, credentials: AmazonCredentials, filters: Any, cursor: str | None
    ) -> FetchedPage:
        params: dict[str, Any] = {
            "marketplaceIds": credentials.marketplace_id or settings.amazon_marketplace_id,
            "includedData": INCLUDED_DATA,
            "pageSize": min(self.page_size, MAX_PAGE_SIZE),
        }
        if isinstance(filters, dict):
            params.update(filters)
        if cursor:
            params["pageToken"] = cursor

        response = await self._request(
            "GET",
            f"{self.base_url}{LISTINGS_PATH.format(seller_id=credentials.seller_id)}",
            params=params,
            headers=self._headers(credentials),
        )
        body = response.json()
        items = [flatten_listing(item) for item in body.get("items") or []]
        next_token = (body.get("pagination") or {}).get("nextToken")
        return FetchedPage(items=items, total=body.get("numberOfResults"), next_cursor=next_token)
