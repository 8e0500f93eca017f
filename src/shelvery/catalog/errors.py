# ABOUTME: Error taxonomy for upstream catalog provider calls.
# ABOUTME: The HTTP client classifies failures so the retry policy and adapters can react.


class CatalogFetchError(Exception):
    """Raised when a request to a catalog provider fails.

    Plain instances are "unexpected" failures: they are never retried and
    propagate out of the adapter. Subclasses mark the recoverable cases.
    """

    def __init__(self, message: str, *, status: int | None = None, url: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class NotFoundError(CatalogFetchError):
    """The upstream affirmatively has no record (HTTP 404)."""


class UnauthorizedError(CatalogFetchError):
    """Credentials were rejected (HTTP 401)."""


class RateLimitedError(CatalogFetchError):
    """The upstream is throttling us (HTTP 429 or a rate-limit message)."""


class TransientError(CatalogFetchError):
    """Timeout, aborted connection, or a retryable server status."""


class ProviderNotConfiguredError(CatalogFetchError):
    """The provider is missing the credentials it needs to make a call."""
