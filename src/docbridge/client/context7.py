"""Asynchronous HTTP client for the Context7 API.

:class:`Context7Client` wraps :class:`httpx.AsyncClient` and adds the
Context7 identification and auth headers, the two endpoints the tools
need, and mapping of failures onto :class:`~docbridge.exceptions.UpstreamError`.

There is no retry: a failed call fails the tool invocation.
The configured request timeout is the deadline of each individual fetch.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

import httpx

from docbridge import __version__
from docbridge.exceptions import UpstreamConnectionError, UpstreamError
from docbridge.output import debug

SOURCE_HEADER = "docbridge"


class ContextFormat(str, enum.Enum):
    """Representation requested from ``/v2/context``."""

    TEXT = "txt"
    JSON = "json"


class Context7Client:
    """Async client for the Context7 search and context endpoints.

    Must be used as an async context manager so that the underlying
    connection pool is opened and closed.

    Args:
        base_url: API root, e.g. ``https://context7.com/api``.
        api_key: Bearer token; ``None`` for anonymous access.
        timeout: Per-request timeout in seconds.
        transport: Optional ``httpx`` transport, used by tests to stub the
            network with :class:`httpx.MockTransport`.

    Example::

        async with Context7Client("https://context7.com/api") as client:
            body = await client.search_libraries("react", "hooks")
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> Context7Client:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=self._default_headers(),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search_libraries(self, library_name: str, query: str) -> str:
        """Search libraries by name, ranked by relevance to *query*.

        Returns:
            The raw JSON response body.
        """
        return await self._get(
            "/v2/libs/search",
            {"libraryName": library_name, "query": query},
            channel="Search",
        )

    async def fetch_context(self, library_id: str, query: str, fmt: ContextFormat) -> str:
        """Fetch documentation for *library_id* in the requested representation.

        Returns:
            The raw response body (markdown-ish text for ``TEXT``, a JSON
            document for ``JSON``).
        """
        return await self._get(
            "/v2/context",
            {"libraryId": library_id, "query": query, "type": fmt.value},
            channel="Text" if fmt is ContextFormat.TEXT else "JSON",
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _default_headers(self) -> dict[str, str]:
        headers = {
            "X-Context7-Source": SOURCE_HEADER,
            "X-Context7-Server-Version": __version__,
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _get(self, path: str, params: dict[str, Any], channel: str) -> str:
        """Send one GET and return the body of a 2xx response.

        Raises:
            UpstreamConnectionError: On network or timeout errors.
            UpstreamError: On a non-2xx status or an unreadable body
                (bad content encoding, redirect loop).
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        debug(f"GET {self._base_url}{path} ({channel.lower()})")
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamConnectionError(f"{channel} request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise UpstreamConnectionError(f"{channel} request failed: {exc}") from exc
        except httpx.RequestError as exc:
            raise UpstreamError(f"{channel} response could not be read: {exc}") from exc

        body = response.text
        if not response.is_success:
            raise UpstreamError(
                f"{channel} API request failed with status {response.status_code}: {body}",
                status_code=response.status_code,
            )
        return body
