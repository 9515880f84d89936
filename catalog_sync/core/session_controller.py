"""Connection Session Controller.

A batch run talks to its source through a ``SourceSession`` acquired with
``ConnectionSessionController.session(...)``. Acquisition runs the adapter
handshake (``Disconnected -> Connecting -> Connected``); leaving the block
always returns the session to ``Disconnected`` and closes the adapter,
whether the run succeeded, failed, or was cancelled.

Only one session per ``(tenant_id, source)`` may be open at a time; a second
acquisition is rejected with ``SessionBusyError``.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from catalog_sync.domain.errors import (
    ConnectionFailure,
    SessionBusyError,
    SourceConnectionError,
    SourceFetchError,
)
from catalog_sync.domain.product import utcnow
from catalog_sync.infra.logging import get_logger
from catalog_sync.sources.base import ConnectionTestResult, FetchedPage, SourceAdapter
from catalog_sync.sources.registry import SourceAdapterRegistry, get_adapter_registry

logger = get_logger(__name__)


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class SourceSession:
    """An open connection to one source for one tenant.

    Attributes:
        tenant_id: Tenant the run belongs to
        source: Source name
        adapter: Adapter owned by this session
        credentials: Opaque source credentials, passed through to the adapter
        state: Current lifecycle state
        history: Every state entered, oldest first
        failure: Classified handshake failure, if any
        error: User-facing handshake error, if any
    """

    tenant_id: str
    source: str
    adapter: SourceAdapter
    credentials: Any
    state: SessionState = SessionState.DISCONNECTED
    history: list[SessionState] = field(default_factory=lambda: [SessionState.DISCONNECTED])
    connected_at: datetime | None = None
    failure: ConnectionFailure | None = None
    error: str | None = None

    def transition(self, state: SessionState) -> None:
        if state is self.state:
            return
        logger.debug(
            "Session state changed",
            tenant_id=self.tenant_id,
            source=self.source,
            from_state=self.state.value,
            to_state=state.value,
        )
        self.state = state
        self.history.append(state)

    @property
    def is_connected(self) -> bool:
        return self.state is SessionState.CONNECTED

    async def fetch_page(self, filters: Any = None, cursor: str | None = None) -> FetchedPage:
        """Fetch one page through the session's adapter.

        Raises:
            SourceFetchError: If the session is not connected or the fetch fails
        """
        if not self.is_connected:
            raise SourceFetchError(self.source, f"{self.source} session is not connected")
        try:
            return await self.adapter.fetch_page(self.credentials, filters, cursor)
        except SourceFetchError:
            raise
        except Exception as e:
            raise SourceFetchError(
                self.source, f"Failed to fetch {self.source} products: {e}"
            ) from e


class ConnectionSessionController:
    """Hands out sessions and enforces one open session per tenant and source."""

    def __init__(self, adapter_registry: SourceAdapterRegistry | None = None) -> None:
        self._registry = adapter_registry or get_adapter_registry()
        self._active: set[tuple[str, str]] = set()
        self._lock = asyncio.Lock()

    def is_active(self, tenant_id: str, source: str) -> bool:
        return (tenant_id, source) in self._active

    @asynccontextmanager
    async def session(
        self,
        tenant_id: str,
        source: str,
        credentials: Any,
        adapter: SourceAdapter | None = None,
    ) -> AsyncIterator[SourceSession]:
        """Acquire a connected session.

        Raises:
            SessionBusyError: If a session for the pair is already open
            UnknownSourceError: If no adapter is registered for the source
            SourceConnectionError: If the handshake fails
        """
        key = (tenant_id, source)
        async with self._lock:
            if key in self._active:
                logger.warning("Rejected concurrent sync", tenant_id=tenant_id, source=source)
                raise SessionBusyError(tenant_id, source)
            self._active.add(key)

        session: SourceSession | None = None
        try:
            adapter = adapter or self._registry.create(source)
            session = SourceSession(
                tenant_id=tenant_id,
                source=source,
                adapter=adapter,
                credentials=credentials,
            )
            await self._connect(session)
            yield session
        finally:
            try:
                if session is not None:
                    session.transition(SessionState.DISCONNECTED)
                    await self._close_adapter(session)
            finally:
                async with self._lock:
                    self._active.discard(key)
                logger.debug("Session released", tenant_id=tenant_id, source=source)

    async def _close_adapter(self, session: SourceSession) -> None:
        try:
            await session.adapter.close()
        except Exception as e:
            logger.warning(
                "Source adapter close failed",
                tenant_id=session.tenant_id,
                source=session.source,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _connect(self, session: SourceSession) -> None:
        session.transition(SessionState.CONNECTING)
        try:
            result = await session.adapter.test_connection(session.credentials)
        except Exception as e:
            logger.exception("Source handshake raised", source=session.source)
            result = ConnectionTestResult.failed(ConnectionFailure.UNKNOWN, session.source, str(e))

        if not result.success:
            failure = result.failure or ConnectionFailure.UNKNOWN
            session.failure = failure
            session.error = result.error
            session.transition(SessionState.DISCONNECTED)
            logger.error(
                "Source connection failed",
                tenant_id=session.tenant_id,
                source=session.source,
                failure=failure.value,
                error=result.error,
            )
            raise SourceConnectionError(failure, session.source, message=result.error)

        session.connected_at = utcnow()
        session.transition(SessionState.CONNECTED)
        logger.info("Source session connected", tenant_id=session.tenant_id, source=session.source)
