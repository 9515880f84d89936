"""Source Adapter - connectivity and paginated fetch for one external source.

Adapters are the only place that talks to a source. They hand back raw
native records (plain dicts in the shape the source's record model expects)
and leave parsing to the mappers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, Protocol, TypeVar, runtime_checkable

import httpx
import pydantic

from catalog_sync.config import settings
from catalog_sync.domain.errors import (
    ConnectionFailure,
    SourceConnectionError,
    SourceFetchError,
    failure_message,
)
from catalog_sync.infra.logging import get_logger
from catalog_sync.schemas.credentials import parse_credentials

logger = get_logger(__name__)

CredentialsT = TypeVar("CredentialsT", bound=pydantic.BaseModel)


@dataclass
class FetchedPage:
    """One page of native records.

    Attributes:
        items: Raw native records
        total: Total number of records at the source, when the source reports it
        next_cursor: Opaque cursor for the next page, None on the last page
    """

    items: list[dict[str, Any]] = field(default_factory=list)
    total: int | None = None
    next_cursor: str | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


@dataclass
class ConnectionTestResult:
    success: bool
    failure: ConnectionFailure | None = None
    error: str | None = None

    @classmethod
    def ok(cls) -> "ConnectionTestResult":
        return cls(success=True)

    @classmethod
    def failed(
        cls, failure: ConnectionFailure, source: str, detail: str | None = None
    ) -> "ConnectionTestResult":
        return cls(success=False, failure=failure, error=failure_message(failure, source, detail))


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol consumed by the sync core."""

    source: str

    async def test_connection(self, credentials: Any) -> ConnectionTestResult:
        ...

    async def fetch_page(
        self, credentials: Any, filters: Any = None, cursor: str | None = None
    ) -> FetchedPage:
        ...

    async def close(self) -> None:
        ...


def classify_http_error(exc: BaseException) -> ConnectionFailure:
    """Map a transport or HTTP status error to a connection failure class."""
    if isinstance(exc, httpx.TimeoutException):
        return ConnectionFailure.TIMEOUT
    if isinstance(exc, (httpx.ConnectError, httpx.UnsupportedProtocol)):
        return ConnectionFailure.UNREACHABLE
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code in (401, 403):
            return ConnectionFailure.INVALID_CREDENTIALS
    return ConnectionFailure.UNKNOWN


def describe_http_error(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}: {exc.response.text[:200]}"
    return str(exc) or exc.__class__.__name__


class HttpSourceAdapter(ABC, Generic[CredentialsT]):
    """Base class for httpx-backed adapters.

    One adapter instance serves one session: it owns an ``httpx.AsyncClient``
    (and therefore any cookies a source sets) until ``close()`` is called.
    """

    source: ClassVar[str]

    def __init__(
        self,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize adapter.

        Args:
            timeout: Request timeout in seconds (defaults to settings)
            page_size: Records requested per page (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self.timeout = timeout if timeout is not None else settings.source_timeout
        self.page_size = page_size or settings.sync_page_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def parse_credentials(self, credentials: Any) -> CredentialsT:
        return parse_credentials(self.source, credentials)  # type: ignore[return-value]

    async def test_connection(self, credentials: Any) -> ConnectionTestResult:
        """Run the source handshake and classify any failure."""
        try:
            creds = self.parse_credentials(credentials)
        except pydantic.ValidationError as e:
            return ConnectionTestResult.failed(
                ConnectionFailure.INVALID_CREDENTIALS, self.source, str(e)
            )

        try:
            await self._handshake(creds)
        except SourceConnectionError as e:
            logger.warning(
                "Source handshake rejected",
                source=self.source,
                failure=e.failure.value,
                detail=e.detail,
            )
            return ConnectionTestResult(success=False, failure=e.failure, error=e.user_message)
        except httpx.HTTPError as e:
            failure = classify_http_error(e)
            logger.warning(
                "Source handshake failed",
                source=self.source,
                failure=failure.value,
                error=describe_http_error(e),
            )
            return ConnectionTestResult.failed(failure, self.source, describe_http_error(e))

        logger.info("Source connection verified", source=self.source)
        return ConnectionTestResult.ok()

    async def fetch_page(
        self, credentials: Any, filters: Any = None, cursor: str | None = None
    ) -> FetchedPage:
        """Fetch one page of native records.

        Raises:
            SourceFetchError: If the request fails or the response is malformed
        """
        creds = self.parse_credentials(credentials)
        try:
            page = await self._fetch(creds, filters, cursor)
        except SourceConnectionError as e:
            raise SourceFetchError(self.source, e.user_message) from e
        except httpx.HTTPError as e:
            raise SourceFetchError(
                self.source,
                f"Failed to fetch {self.source} products: {describe_http_error(e)}",
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            raise SourceFetchError(
                self.source, f"Unexpected {self.source} response: {e}"
            ) from e

        logger.debug(
            "Source page fetched",
            source=self.source,
            items=len(page.items),
            total=page.total,
            has_more=page.has_more,
        )
        return page

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        response = await client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    @abstractmethod
    async def _handshake(self, credentials: CredentialsT) -> None:
        """Verify the credentials; raise on failure."""

    @abstractmethod
    async def _fetch(
        self, credentials: CredentialsT, filters: Any, cursor: str | None
    ) -> FetchedPage:
        """Fetch one page; ``cursor`` is None for the first page."""
