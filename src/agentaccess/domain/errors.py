"""Platform error taxonomy shared by the engines and the store adapters."""

from __future__ import annotations


class PlatformError(RuntimeError):
    """A platform operation failed.

    ``status`` carries the HTTP status code when the failure came from an API
    response; it is ``None`` for transport-level failures.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ObjectNotFoundError(PlatformError):
    """The addressed object does not exist."""


class ConflictError(PlatformError):
    """The write carried a stale resource version or the object already exists."""


class SchemaUnavailableError(PlatformError):
    """The addressed kind is not registered in this cluster."""
