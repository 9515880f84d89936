"""Tests for the connection session controller."""

import asyncio

import pytest

from catalog_sync.core.session_controller import ConnectionSessionController, SessionState
from catalog_sync.domain.errors import (
    ConnectionFailure,
    SessionBusyError,
    SourceConnectionError,
    SourceFetchError,
    UnknownSourceError,
)
from catalog_sync.sources.base import ConnectionTestResult
from catalog_sync.sources.registry import SourceAdapterRegistry


class TestConnectionSessionController:
    """Tests for ConnectionSessionController."""

    @pytest.mark.asyncio
    async def test_connects_and_releases(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter(pages=[[{"id": 1}]])
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        async with controller.session(tenant_id, "odoo", {"token": "x"}) as session:
            assert session.is_connected
            assert controller.is_active(tenant_id, "odoo")
            page = await session.fetch_page()

        assert page.items == [{"id": 1}]
        assert session.history == [
            SessionState.DISCONNECTED,
            SessionState.CONNECTING,
            SessionState.CONNECTED,
            SessionState.DISCONNECTED,
        ]
        assert adapter.closed is True
        assert not controller.is_active(tenant_id, "odoo")

    @pytest.mark.asyncio
    async def test_failed_handshake(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter(
            connect_result=ConnectionTestResult.failed(ConnectionFailure.INVALID_CREDENTIALS, "odoo")
        )
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        with pytest.raises(SourceConnectionError) as exc_info:
            async with controller.session(tenant_id, "odoo", {}):
                pytest.fail("session body must not run")

        assert exc_info.value.failure is ConnectionFailure.INVALID_CREDENTIALS
        assert "check the credentials" in exc_info.value.user_message
        assert adapter.closed is True
        assert adapter.fetch_calls == []
        assert not controller.is_active(tenant_id, "odoo")

    @pytest.mark.asyncio
    async def test_handshake_exception_is_unknown_failure(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter()

        async def explode(credentials):
            raise RuntimeError("socket closed")

        adapter.test_connection = explode
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        with pytest.raises(SourceConnectionError) as exc_info:
            async with controller.session(tenant_id, "odoo", {}):
                pass
        assert exc_info.value.failure is ConnectionFailure.UNKNOWN

    @pytest.mark.asyncio
    async def test_concurrent_session_rejected(self, fake_adapter, adapter_registry_for, tenant_id):
        controller = ConnectionSessionController(adapter_registry_for(fake_adapter()))

        async with controller.session(tenant_id, "odoo", {}):
            with pytest.raises(SessionBusyError):
                async with controller.session(tenant_id, "odoo", {}):
                    pass
            async with controller.session("tenant-b", "odoo", {}) as other:
                assert other.is_connected

    @pytest.mark.asyncio
    async def test_released_on_error_in_body(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter()
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        with pytest.raises(ValueError):
            async with controller.session(tenant_id, "odoo", {}):
                raise ValueError("boom")

        assert adapter.closed is True
        async with controller.session(tenant_id, "odoo", {}) as session:
            assert session.is_connected

    @pytest.mark.asyncio
    async def test_released_when_adapter_close_fails(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter()

        async def broken_close():
            raise RuntimeError("socket already closed")

        adapter.close = broken_close
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        async with controller.session(tenant_id, "odoo", {}) as session:
            assert session.is_connected

        assert session.state is SessionState.DISCONNECTED
        assert not controller.is_active(tenant_id, "odoo")
        async with controller.session(tenant_id, "odoo", {}) as again:
            assert again.is_connected

    @pytest.mark.asyncio
    async def test_released_on_task_cancellation(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter()
        controller = ConnectionSessionController(adapter_registry_for(adapter))
        entered = asyncio.Event()

        async def run():
            async with controller.session(tenant_id, "odoo", {}):
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(run())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert adapter.closed is True
        assert not controller.is_active(tenant_id, "odoo")

    @pytest.mark.asyncio
    async def test_unknown_source(self, tenant_id):
        controller = ConnectionSessionController(SourceAdapterRegistry())

        with pytest.raises(UnknownSourceError):
            async with controller.session(tenant_id, "ebay", {}):
                pass
        assert not controller.is_active(tenant_id, "ebay")

    @pytest.mark.asyncio
    async def test_fetch_errors_wrapped(self, fake_adapter, adapter_registry_for, tenant_id):
        adapter = fake_adapter()

        async def broken(credentials, filters=None, cursor=None):
            raise KeyError("content")

        adapter.fetch_page = broken
        controller = ConnectionSessionController(adapter_registry_for(adapter))

        async with controller.session(tenant_id, "odoo", {}) as session:
            with pytest.raises(SourceFetchError):
                await session.fetch_page()

    @pytest.mark.asyncio
    async def test_fetch_after_release_rejected(self, fake_adapter, adapter_registry_for, tenant_id):
        controller = ConnectionSessionController(adapter_registry_for(fake_adapter()))

        async with controller.session(tenant_id, "odoo", {}) as session:
            pass

        with pytest.raises(SourceFetchError, match="not connected"):
            await session.fetch_page()
