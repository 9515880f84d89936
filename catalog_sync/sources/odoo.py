"""Odoo adapter over the JSON-RPC web endpoints."""

import itertools
from typing import Any

from catalog_sync.domain.errors import ConnectionFailure, SourceConnectionError
from catalog_sync.infra.logging import get_logger
from catalog_sync.schemas.credentials import OdooCredentials
from catalog_sync.sources.base import FetchedPage, HttpSourceAdapter

logger = get_logger(__name__)

PRODUCT_MODEL = "product.template"

PRODUCT_FIELDS = [
    "id",
    "name",
    "default_code",
    "description",
    "description_sale",
    "list_price",
    "standard_price",
    "type",
    "categ_id",
    "active",
    "sale_ok",
    "purchase_ok",
    "weight",
    "volume",
    "barcode",
    "create_date",
    "write_date",
]


class OdooRpcError(Exception):
    """Error object returned in a JSON-RPC response body."""

    def __init__(self, error: dict[str, Any]) -> None:
        data = error.get("data") or {}
        self.name = data.get("name", "")
        self.message = data.get("message") or error.get("message") or "Odoo RPC error"
        super().__init__(self.message)

    @property
    def failure(self) -> ConnectionFailure:
        text = f"{self.name} {self.message}".lower()
        if "database" in text and ("does not exist" in text or "not found" in text):
            return ConnectionFailure.DATABASE_NOT_FOUND
        if "accessdenied" in text.replace(" ", "") or "access denied" in text:
            return ConnectionFailure.INVALID_CREDENTIALS
        return ConnectionFailure.UNKNOWN


def parse_domain(filters: Any) -> list[Any]:
    """Accept either a bare Odoo domain or ``{"domain": [...]}``."""
    if filters is None:
        return []
    if isinstance(filters, dict):
        return list(filters.get("domain", []))
    return list(filters)


class OdooAdapter(HttpSourceAdapter[OdooCredentials]):
    """Reads ``product.template`` records with ``search_read``.

    The session cookie set by ``/web/session/authenticate`` is kept by the
    adapter's HTTP client, so a fetch after a handshake reuses the session.
    The cursor is the record offset.
    """

    source = "odoo"

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._uid: int | None = None
        self._ids = itertools.count(1)

    async def close(self) -> None:
        self._uid = None
        await super().close()

    async def _rpc(self, url: str, params: dict[str, Any]) -> Any:
        payload = {"jsonrpc": "2.0", "method": "call", "params": params, "id": next(self._ids)}
        response = await self._request("POST", url, json=payload)
        body = response.json()
        if body.get("error"):
            raise OdooRpcError(body["error"])
        return body.get("result")

    async def _handshake(self, credentials: OdooCredentials) -> None:
        try:
            result = await self._rpc(
                f"{credentials.url}/web/session/authenticate",
                {
                    "db": credentials.database,
                    "login": credentials.username,
                    "password": credentials.password.get_secret_value(),
                },
            )
        except OdooRpcError as e:
            raise SourceConnectionError(e.failure, self.source, e.message) from e

        uid = (result or {}).get("uid")
        if not uid:
            raise SourceConnectionError(ConnectionFailure.INVALID_CREDENTIALS, self.source)
        self._uid = uid
        logger.debug("Odoo session authenticated", uid=uid, database=credentials.database)

    async def _call_kw(
        self,
        credentials: OdooCredentials,
        method: str,
        args: list[Any],
        kwargs: dict[str, Any] | None = None,
    ) -> Any:
        try:
            return await self._rpc(
                f"{credentials.url}/web/dataset/call_kw/{PRODUCT_MODEL}/{method}",
                {"model": PRODUCT_MODEL, "method": method, "args": args, "kwargs": kwargs or {}},
            )
        except OdooRpcError as e:
            raise SourceConnectionError(e.failure, self.source, e.message) from e

    async def _fetch(
        self, credentials: OdooCredentials, filters: Any, cursor: str | None
    ) -> FetchedPage:
        if self._uid is None:
            await self._handshake(credentials)

        domain = parse_domain(filters)
        offset = int(cursor) if cursor else 0

        total = None
        if offset == 0:
            total = await self._call_kw(credentials, "search_count", [domain])

        records = await self._call_kw(
            credentials,
            "search_read",
            [domain],
            {"fields": PRODUCT_FIELDS, "offset": offset, "limit": self.page_size, "order": "id asc"},
        )
        records = list(records or [])

        next_cursor = str(offset + len(records)) if len(records) == self.page_size else None
        return FetchedPage(items=records, total=total, next_cursor=next_cursor)
