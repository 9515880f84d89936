"""Error taxonomy for catalog synchronization.

Batch-fatal errors (``SourceConnectionError``, ``SourceFetchError`` on the
first page, ``SessionBusyError``) stop a run. Item-fatal errors
(``MappingError``, ``ValidationError``, ``PersistenceError``) are recorded
against the offending record and the run continues.
"""

from enum import Enum


class CatalogSyncError(Exception):
    """Base class for all catalog synchronization errors."""


class ValidationError(CatalogSyncError):
    """A Canonical Product value breaks one of its rules.

    Attributes:
        rule: Short identifier of the violated rule (e.g. ``name_required``)
    """

    def __init__(self, rule: str, message: str) -> None:
        super().__init__(message)
        self.rule = rule
        self.message = message


class InvariantViolation(ValidationError):
    """An aggregate invariant was violated at construction or mutation."""


class MappingError(CatalogSyncError):
    """A native source record cannot be normalized."""

    def __init__(self, source: str, identifier: str | None, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.identifier = identifier
        self.message = message


class PersistenceError(CatalogSyncError):
    """The catalog store rejected a create or update."""


class ConnectionFailure(str, Enum):
    """Classified cause of a failed source handshake."""

    INVALID_CREDENTIALS = "InvalidCredentials"
    DATABASE_NOT_FOUND = "DatabaseNotFound"
    TIMEOUT = "Timeout"
    UNREACHABLE = "Unreachable"
    UNKNOWN = "Unknown"


_FAILURE_MESSAGES: dict[ConnectionFailure, str] = {
    ConnectionFailure.INVALID_CREDENTIALS: "Authentication with {source} failed, check the credentials",
    ConnectionFailure.DATABASE_NOT_FOUND: "Database not found on {source}, check the database name",
    ConnectionFailure.TIMEOUT: "Connection to {source} timed out",
    ConnectionFailure.UNREACHABLE: "{source} is unreachable, check the URL and network",
    ConnectionFailure.UNKNOWN: "Could not connect to {source}",
}


def failure_message(failure: ConnectionFailure, source: str, detail: str | None = None) -> str:
    """Build the user-facing message for a connection failure class."""
    message = _FAILURE_MESSAGES[failure].format(source=source)
    if detail and failure is ConnectionFailure.UNKNOWN:
        message = f"{message}: {detail}"
    return message


class SourceConnectionError(CatalogSyncError):
    """The source adapter could not complete its handshake."""

    def __init__(
        self,
        failure: ConnectionFailure,
        source: str,
        detail: str | None = None,
        message: str | None = None,
    ) -> None:
        self.failure = failure
        self.source = source
        self.detail = detail
        self.user_message = message or failure_message(failure, source, detail)
        super().__init__(self.user_message)


class SourceFetchError(CatalogSyncError):
    """A page fetch failed after the handshake succeeded."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message


class SessionBusyError(CatalogSyncError):
    """A run for the same (tenant, source) pair is already connected."""

    def __init__(self, tenant_id: str, source: str) -> None:
        super().__init__(f"A {source} sync is already running for tenant {tenant_id}")
        self.tenant_id = tenant_id
        self.source = source


class SyncCancelled(CatalogSyncError):
    """The caller asked the run to stop; raised before the next write."""


class UnknownSourceError(CatalogSyncError, KeyError):
    """No adapter or mapper is registered under the given source name."""

    def __init__(self, source: str) -> None:
        super().__init__(f"Source not registered: {source}")
        self.source = source

    def __str__(self) -> str:
        return f"Source not registered: {self.source}"


class EntityNotFound(CatalogSyncError, LookupError):
    """A referenced product, variant or image does not exist."""
