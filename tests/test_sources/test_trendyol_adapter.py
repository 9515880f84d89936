"""Tests for the Trendyol adapter."""

import base64

import httpx
import pytest

from catalog_sync.domain.errors import ConnectionFailure
from catalog_sync.sources.trendyol import TrendyolAdapter

CREDENTIALS = {"seller_id": "12345", "api_key": "key", "api_secret": "secret"}


class TestTrendyolAdapter:
    """Tests for TrendyolAdapter."""

    @pytest.mark.asyncio
    async def test_handshake_auth_and_user_agent(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": [], "totalPages": 0})

        adapter = TrendyolAdapter(base_url="https://api.test/sapigw/", transport=httpx.MockTransport(handler))
        result = await adapter.test_connection(CREDENTIALS)

        assert result.success is True
        request = seen[0]
        assert request.url.path == "/sapigw/suppliers/12345/products"
        assert request.url.params["size"] == "1"
        assert request.headers["User-Agent"] == "12345 - SelfIntegration"
        expected = base64.b64encode(b"key:secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"

    @pytest.mark.asyncio
    async def test_forbidden(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(403))
        result = await TrendyolAdapter(transport=transport).test_connection(CREDENTIALS)
        assert result.failure is ConnectionFailure.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_page_number_cursor(self):
        requests = []

        def handler(request):
            requests.append(request)
            page = int(request.url.params["page"])
            return httpx.Response(
                200,
                json={
                    "content": [{"id": page}],
                    "page": page,
                    "totalPages": 2,
                    "totalElements": 2,
                },
            )

        adapter = TrendyolAdapter(transport=httpx.MockTransport(handler))
        first = await adapter.fetch_page(CREDENTIALS, {"approved": True})
        second = await adapter.fetch_page(CREDENTIALS, {"approved": True}, first.next_cursor)

        assert first.total == 2
        assert first.next_cursor == "1"
        assert second.items == [{"id": 1}]
        assert second.next_cursor is None
        assert requests[0].url.params["approved"] == "true"
        assert requests[1].url.params["page"] == "1"

    @pytest.mark.asyncio
    async def test_empty_catalog(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"content": [], "totalPages": 0, "totalElements": 0})
        )
        page = await TrendyolAdapter(transport=transport).fetch_page(CREDENTIALS)
        assert page.items == []
        assert page.has_more is False
