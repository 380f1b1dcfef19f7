"""Exception hierarchy shared by the scrapers and the sync pipeline."""
from __future__ import annotations


class ResolverError(RuntimeError):
    """Base class for failures raised while talking to external sources."""


class ConfigurationError(ResolverError):
    """Raised when a required dependency (e.g. the catalog database) is unusable."""


class AuthenticationError(ResolverError):
    """Raised when the source-site login handshake cannot produce a session."""


class TransientFetchError(ResolverError):
    """Raised for timeouts, transport errors and 5xx responses worth retrying."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ContentAbsentError(ResolverError):
    """Raised when a detail page lacks the stream marker, usually a lost session."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ListingError(ResolverError):
    """Raised when a listing page cannot be fetched after retries."""

    def __init__(self, message: str, *, page: int, status: int | None = None) -> None:
        super().__init__(message)
        self.page = page
        self.status = status
