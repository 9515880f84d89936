"""Trendyol adapter over the supplier product API."""

from typing import Any

import httpx

from catalog_sync.config import settings
from catalog_sync.schemas.credentials import TrendyolCredentials
from catalog_sync.sources.base import FetchedPage, HttpSourceAdapter


class TrendyolAdapter(HttpSourceAdapter[TrendyolCredentials]):
    """Reads supplier products with zero-based page numbers as the cursor.

    Filters (e.g. ``{"approved": True, "barcode": "..."}``) are passed through
    as query parameters on every page.
    """

    source = "trendyol"

    def __init__(self, base_url: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.base_url = (base_url or settings.trendyol_base_url).rstrip("/")

    def _auth(self, credentials: TrendyolCredentials) -> httpx.BasicAuth:
        return httpx.BasicAuth(credentials.api_key, credentials.api_secret.get_secret_value())

    def _headers(self, credentials: TrendyolCredentials) -> dict[str, str]:
        # Trendyol requires the seller id in the user agent
        return {"User-Agent": f"{credentials.seller_id} - SelfIntegration"}

    def _products_url(self, credentials: TrendyolCredentials) -> str:
        return f"{self.base_url}/suppliers/{credentials.seller_id}/products"

    async def _handshake(self, credentials: TrendyolCredentials) -> None:
        await self._request(
            "GET",
            self._products_url(credentials),
            params={"page": 0, "size": 1},
            auth=self._auth(credentials),
            headers=self._headers(credentials),
        )

    async def _fetch(
        self, credentials: TrendyolCredentials, filters: Any, cursor: str | None
    ) -> FetchedPage:
        page = int(cursor) if cursor else 0
        params: dict[str, Any] = {"page": page, "size": self.page_size}
        if isinstance(filters, dict):
            params.update({k: _query_value(v) for k, v in filters.items()})

        response = await self._request(
            "GET",
            self._products_url(credentials),
            params=params,
            auth=self._auth(credentials),
            headers=self._headers(credentials),
        )
        body = response.json()
        content = list(body.get("content") or [])
        total_pages = int(body.get("totalPages") or 0)

        next_cursor = str(page + 1) if page + 1 < total_pages else None
        return FetchedPage(items=content, total=body.get("totalElements"), next_cursor=next_cursor)


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    return value
