"""Shopify adapter over the Admin REST API."""

from typing import Any

import httpx

from catalog_sync.config import settings
from catalog_sync.schemas.credentials import ShopifyCredentials
from catalog_sync.sources.base import FetchedPage, HttpSourceAdapter

# Shopify caps products.json at 250 per page
MAX_PAGE_SIZE = 250


def next_page_info(response: httpx.Response) -> str | None:
    """Extract the ``page_info`` cursor from the ``Link: <...>; rel="next"`` header."""
    url = response.links.get("next", {}).get("url")
    if not url:
        return None
    return httpx.URL(url).params.get("page_info")


class ShopifyAdapter(HttpSourceAdapter[ShopifyCredentials]):
    """Reads products with cursor-based pagination.

    Filters (e.g. ``{"status": "active", "vendor": "Acme"}``) are sent as
    query parameters on the first page only; Shopify rejects them alongside
    ``page_info``.
    """

    source = "shopify"

    def _base_url(self, credentials: ShopifyCredentials) -> str:
        version = credentials.api_version or settings.shopify_api_version
        return f"https://{credentials.shop}/admin/api/{version}"

    def _headers(self, credentials: ShopifyCredentials) -> dict[str, str]:
        return {"X-Shopify-Access-Token": credentials.access_token.get_secret_value()}

    async def _handshake(self, credentials: ShopifyCredentials) -> None:
        await self._request(
            "GET",
            f"{self._base_url(credentials)}/shop.json",
            headers=self._headers(credentials),
        )

    async def _fetch(
        self, credentials: ShopifyCredentials, filters: Any, cursor: str | None
    ) -> FetchedPage:
        params: dict[str, Any] = {"limit": min(self.page_size, MAX_PAGE_SIZE)}
        if cursor:
            params["page_info"] = cursor
        elif isinstance(filters, dict):
            params.update(filters)

        response = await self._request(
            "GET",
            f"{self._base_url(credentials)}/products.json",
            params=params,
            headers=self._headers(credentials),
        )
        products = response.json()["products"]
        return FetchedPage(items=list(products), next_cursor=next_page_info(response))
