"""Cache-first execution of the docbridge tools.

Every tool invocation walks the same state machine::

    Start -> CacheLookup -> Hit                 -> Return
                         -> Miss | Stale -> Fetch -> all succeeded -> Store -> Return
                                                  -> any failed    -> raise

There is no retry transition. Errors from the fetch step propagate
unchanged and nothing is stored, so a later call fetches again.

``query_docs`` fetches the text and the JSON representation of the same
query concurrently and waits for both. Only when both succeed are they
merged into one :class:`~docbridge.models.ToolResult` (text part first,
structured part second) and cached under a single key.

:meth:`Orchestrator.call_tool` is the host-facing entry point: it validates
the argument mapping, dispatches by tool name, and is the one place where
exceptions become error-flagged results.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional

import httpx
from pydantic import BaseModel, ValidationError

from docbridge import cache
from docbridge.client import Context7Client, ContextFormat
from docbridge.config import resolve_api_key, resolve_cache_dir
from docbridge.exceptions import DocbridgeError, PartialFetchFailure, UpstreamError
from docbridge.models import (
    ClearCacheArguments,
    GlobalConfig,
    JsonContent,
    QueryDocsArguments,
    QueryDocsResponse,
    ResolveLibraryIdArguments,
    ResolveLibraryIdResponse,
    TextContent,
    ToolResult,
)
from docbridge.output import debug
from docbridge.tools import CLEAR_CACHE, QUERY_DOCS, RESOLVE_LIBRARY_ID


class Orchestrator:
    """Runs tool invocations against the cache and the Context7 API.

    Args:
        client: An entered :class:`~docbridge.client.Context7Client`.
        cache_dir: Cache directory, or ``None`` when caching is disabled.
        ttl: Maximum age of a usable cache entry.
    """

    def __init__(
        self,
        client: Context7Client,
        cache_dir: Optional[Path],
        ttl: timedelta,
    ) -> None:
        self._client = client
        self._cache_dir = cache_dir
        self._ttl = ttl

    # ------------------------------------------------------------------ #
    # Host surface
    # ------------------------------------------------------------------ #

    async def call_tool(
        self, name: str, arguments: Optional[Mapping[str, Any]] = None
    ) -> ToolResult:
        """Invoke the tool *name* with a host-supplied argument mapping.

        Never raises for expected failures: unknown tools, invalid
        arguments, upstream failures and cache write failures all come back
        as an error-flagged :class:`ToolResult` carrying the message.
        """
        arguments = dict(arguments or {})
        try:
            if name == RESOLVE_LIBRARY_ID:
                return await self.resolve_library_id(
                    ResolveLibraryIdArguments.model_validate(arguments)
                )
            if name == QUERY_DOCS:
                return await self.query_docs(QueryDocsArguments.model_validate(arguments))
            if name == CLEAR_CACHE:
                ClearCacheArguments.model_validate(arguments)
                return self.clear_cache()
        except ValidationError as exc:
            return ToolResult.error(f"Invalid arguments: {exc}")
        except DocbridgeError as exc:
            debug(f"{name} failed: {exc}")
            return ToolResult.error(str(exc))
        return ToolResult.error(f"Unknown tool: {name}")

    # ------------------------------------------------------------------ #
    # Tools
    # ------------------------------------------------------------------ #

    async def resolve_library_id(self, args: ResolveLibraryIdArguments) -> ToolResult:
        """Search libraries matching ``args.library_name``.

        One upstream call. The result holds the raw response body as text and
        the validated response as structured content.

        Raises:
            UpstreamError: If the search fails; nothing is cached.
            CacheError: If the successful result cannot be stored.
        """

        async def fetch() -> ToolResult:
            body = await self._client.search_libraries(args.library_name, args.query)
            structured = _parse_structured(body, ResolveLibraryIdResponse, "search")
            return ToolResult(content=[TextContent(text=body), JsonContent(data=structured)])

        return await self._cached(RESOLVE_LIBRARY_ID, _key_arguments(args), fetch)

    async def query_docs(self, args: QueryDocsArguments) -> ToolResult:
        """Fetch documentation for ``args.library_id`` as text and as JSON.

        Both representations are requested concurrently and must both
        succeed.

        Raises:
            PartialFetchFailure: If exactly one of the two fetches failed.
            UpstreamError: If both failed (the text channel's error).
            CacheError: If the merged result cannot be stored.
        """

        async def fetch() -> ToolResult:
            text, structured = await self._fetch_both(args)
            return ToolResult(content=[TextContent(text=text), JsonContent(data=structured)])

        return await self._cached(QUERY_DOCS, _key_arguments(args), fetch)

    def clear_cache(self) -> ToolResult:
        """Remove every cached entry.

        Raises:
            CacheError: If the cache directory cannot be cleared.
        """
        outcome = cache.clear(self._cache_dir)
        if not outcome.enabled:
            return ToolResult.from_text("Cache is not enabled (directory not mounted)")
        return ToolResult.from_text(
            f"Cache cleared successfully ({outcome.removed} entries removed)"
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _cached(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        fetch: Callable[[], Awaitable[ToolResult]],
    ) -> ToolResult:
        key = cache.derive_key(tool_name, arguments)
        lookup = cache.get(self._cache_dir, tool_name, key, self._ttl)
        debug(f"Cache {lookup.status.value} for {tool_name} ({key[:12]})")
        if lookup.hit:
            assert lookup.payload is not None
            return lookup.payload

        result = await fetch()
        if cache.is_enabled(self._cache_dir):
            cache.put(self._cache_dir, tool_name, key, result)
        return result

    async def _fetch_both(self, args: QueryDocsArguments) -> tuple[str, dict[str, Any]]:
        """Run the text and JSON fetches concurrently; both must succeed."""

        async def fetch_structured() -> dict[str, Any]:
            body = await self._client.fetch_context(
                args.library_id, args.query, ContextFormat.JSON
            )
            return _parse_structured(body, QueryDocsResponse, "JSON")

        text, structured = await asyncio.gather(
            self._client.fetch_context(args.library_id, args.query, ContextFormat.TEXT),
            fetch_structured(),
            return_exceptions=True,
        )

        for outcome in (text, structured):
            if isinstance(outcome, BaseException) and not isinstance(outcome, UpstreamError):
                raise outcome
        if isinstance(text, UpstreamError):
            if isinstance(structured, UpstreamError):
                raise text
            raise PartialFetchFailure("text", text)
        if isinstance(structured, UpstreamError):
            raise PartialFetchFailure("json", structured)
        return text, structured


def _key_arguments(args: BaseModel) -> dict[str, Any]:
    """Argument mapping hashed into the cache key, using wire names."""
    return args.model_dump(mode="json", by_alias=True)


def _parse_structured(body: str, model: type[BaseModel], channel: str) -> dict[str, Any]:
    """Validate an upstream JSON body and return it as a plain dict.

    Only fields present in the body are kept; model defaults are not added.

    Raises:
        UpstreamError: If the body is not JSON of the expected shape.
    """
    try:
        parsed = model.model_validate_json(body)
    except ValidationError as exc:
        raise UpstreamError(f"Failed to deserialize {channel} response: {exc}") from exc
    return parsed.model_dump(mode="json", by_alias=True, exclude_unset=True)


@asynccontextmanager
async def open_orchestrator(
    config: GlobalConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[Orchestrator]:
    """Build an :class:`Orchestrator` from the effective configuration.

    Resolves the cache directory and API key, reads the TTL once, and keeps
    the HTTP client open for the duration of the ``async with`` block.
    """
    cache_dir = resolve_cache_dir(config)
    api_key = resolve_api_key(config)
    async with Context7Client(
        config.api.base_url,
        api_key=api_key,
        timeout=config.request.timeout,
        transport=transport,
    ) as client:
        yield Orchestrator(client, cache_dir, timedelta(days=config.cache.ttl_days))
