"""
Error taxonomy for the training library.

Fetch-layer failures are converted into one of the typed errors below at each
loader boundary. CatalogUnavailable is fatal for a session; manifest and
content failures are recoverable by re-triggering navigation; storage
failures are logged and swallowed by the stores.
"""

from __future__ import annotations


class TrainlibError(Exception):
    """Base class for all library errors."""

    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class FetchError(TrainlibError):
    """Transport-level failure: HTTP status, connection error, or bad JSON."""

    kind = "fetch_error"

    def __init__(self, path: str, reason: str, status_code: int | None = None):
        super().__init__(f"Failed to fetch {path}: {reason}")
        self.path = path
        self.reason = reason
        self.status_code = status_code


class CatalogUnavailable(TrainlibError):
    """The program catalog could not be fetched or is malformed."""

    kind = "catalog_unavailable"
    fatal = True


class ManifestUnavailable(TrainlibError):
    """A program manifest could not be fetched or is malformed."""

    kind = "manifest_unavailable"
    fatal = False


class ContentUnavailable(TrainlibError):
    """A page payload could not be fetched or is malformed."""

    kind = "content_unavailable"
    fatal = False


class StorageUnavailable(TrainlibError):
    """Durable storage rejected a read or write."""

    kind = "storage_unavailable"
    fatal = False
