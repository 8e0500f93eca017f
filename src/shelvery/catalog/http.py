# ABOUTME: Async HTTP client abstraction for catalog provider API calls.
# ABOUTME: Classifies upstream failures into the catalog error taxonomy; injectable transport for tests.

import asyncio
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from shelvery import __version__
from shelvery.catalog.errors import (
    CatalogFetchError,
    NotFoundError,
    RateLimitedError,
    TransientError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"shelvery/{__version__}"
DEFAULT_TIMEOUT = 8.0

_TRANSIENT_STATUS_CODES = {500, 502, 503, 504}
_BODY_PREVIEW = 200


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for the HTTP operations catalog providers need."""

    async def get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any: ...

    async def post_json(
        self,
        url: str,
        *,
        content: str | None = None,
        data: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any: ...

    async def get_text(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str: ...


def classify_response(response: httpx.Response, url: str) -> None:
    """Raise the matching CatalogFetchError for a non-2xx response.

    Raises:
        NotFoundError: 404.
        UnauthorizedError: 401.
        RateLimitedError: 429, or any error body mentioning a rate limit.
        TransientError: retryable server statuses.
        CatalogFetchError: every other non-2xx status.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    url = url.split("?", 1)[0]
    body = response.text[:_BODY_PREVIEW]
    message = f"HTTP {status} from {url}: {body}"

    if status == 404:
        raise NotFoundError(message, status=status, url=url)
    if status == 401:
        raise UnauthorizedError(message, status=status, url=url)
    if status == 429 or "rate limit" in body.lower():
        raise RateLimitedError(message, status=status, url=url)
    if status in _TRANSIENT_STATUS_CODES:
        raise TransientError(message, status=status, url=url)
    raise CatalogFetchError(message, status=status, url=url)


class ShelveryHttpClient:
    """Async HTTP client shared by all catalog providers.

    Wraps httpx.AsyncClient. Each call may carry its own timeout, so one
    client serves upstreams with different deadlines. Retrying and rate
    limiting are the caller's job (see RetryPolicy and TokenBucket).
    """

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        client_kwargs: dict[str, Any] = {
            "headers": {"User-Agent": user_agent},
            "timeout": timeout,
            "follow_redirects": True,
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)
        self._timeout = timeout

    async def __aenter__(self) -> "ShelveryHttpClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        timeout = kwargs.pop("timeout", None)
        if timeout is not None:
            kwargs["timeout"] = timeout
        # httpx timeouts are per phase; the deadline bounds the whole exchange.
        deadline = timeout if timeout is not None else self._timeout
        try:
            response = await asyncio.wait_for(self._client.request(method, url, **kwargs), timeout=deadline)
        except TimeoutError as exc:
            raise TransientError(f"Request exceeded {deadline:.1f}s deadline: {url}", url=url) from exc
        except httpx.TimeoutException as exc:
            raise TransientError(f"Request timed out: {url}", url=url) from exc
        except httpx.TransportError as exc:
            raise TransientError(f"Request aborted: {url}: {exc}", url=url) from exc
        except httpx.HTTPError as exc:
            raise CatalogFetchError(f"Request failed: {url}: {exc}", url=url) from exc
        classify_response(response, url)
        return response

    @staticmethod
    def _decode(response: httpx.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogFetchError(
                f"Malformed JSON from {url}",
                status=response.status_code,
            ) from exc

    async def get_json(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a GET request and return the parsed JSON body."""
        response = await self._send("GET", url, params=params, headers=headers, timeout=timeout)
        return self._decode(response, url)

    async def post_json(
        self,
        url: str,
        *,
        content: str | None = None,
        data: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send a POST request (raw body, form, or JSON) and return the parsed JSON body."""
        kwargs: dict[str, Any] = {"headers": headers, "timeout": timeout}
        if content is not None:
            kwargs["content"] = content
        if data is not None:
            kwargs["data"] = data
        if json is not None:
            kwargs["json"] = json
        response = await self._send("POST", url, **kwargs)
        return self._decode(response, url)

    async def get_text(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send a GET request and return the body as text (for scraped pages)."""
        response = await self._send("GET", url, params=params, headers=headers, timeout=timeout)
        return response.text
