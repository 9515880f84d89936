"""Tests for shared adapter plumbing and the adapter registry."""

import httpx
import pytest

from catalog_sync.domain.errors import ConnectionFailure, UnknownSourceError
from catalog_sync.sources.base import (
    ConnectionTestResult,
    FetchedPage,
    SourceAdapter,
    classify_http_error,
    describe_http_error,
)
from catalog_sync.sources.odoo import OdooAdapter
from catalog_sync.sources.registry import SourceAdapterRegistry, create_default_registry


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test")
    response = httpx.Response(code, request=request, text="nope")
    return httpx.HTTPStatusError("error", request=request, response=response)


class TestClassifyHttpError:
    """Tests for classify_http_error."""

    def test_timeout(self):
        assert classify_http_error(httpx.ReadTimeout("slow")) is ConnectionFailure.TIMEOUT

    def test_connect_error(self):
        assert classify_http_error(httpx.ConnectError("refused")) is ConnectionFailure.UNREACHABLE

    def test_bad_url(self):
        assert (
            classify_http_error(httpx.UnsupportedProtocol("ftp"))
            is ConnectionFailure.UNREACHABLE
        )

    @pytest.mark.parametrize("code", [401, 403])
    def test_auth_status(self, code):
        assert classify_http_error(status_error(code)) is ConnectionFailure.INVALID_CREDENTIALS

    def test_other_status(self):
        assert classify_http_error(status_error(500)) is ConnectionFailure.UNKNOWN

    def test_describe_status_error(self):
        assert describe_http_error(status_error(502)) == "HTTP 502: nope"


class TestValueTypes:
    """Tests for FetchedPage and ConnectionTestResult."""

    def test_has_more(self):
        assert FetchedPage(items=[], next_cursor="2").has_more is True
        assert FetchedPage(items=[]).has_more is False

    def test_failed_result_message(self):
        result = ConnectionTestResult.failed(ConnectionFailure.TIMEOUT, "odoo")
        assert result.success is False
        assert result.error == "Connection to odoo timed out"

    def test_http_adapter_satisfies_protocol(self):
        assert isinstance(OdooAdapter(), SourceAdapter)


class TestSourceAdapterRegistry:
    """Tests for SourceAdapterRegistry."""

    def test_create_returns_fresh_instances(self):
        registry = create_default_registry()
        first = registry.create("odoo")
        second = registry.create("odoo")
        assert isinstance(first, OdooAdapter)
        assert first is not second

    def test_create_passes_kwargs(self):
        adapter = create_default_registry().create("odoo", page_size=7)
        assert adapter.page_size == 7

    def test_unknown_source(self):
        with pytest.raises(UnknownSourceError):
            SourceAdapterRegistry().create("ebay")

    def test_available_sources(self):
        registry = create_default_registry()
        assert sorted(registry.get_available()) == ["amazon", "odoo", "shopify", "trendyol"]
        assert registry.is_registered("trendyol")
