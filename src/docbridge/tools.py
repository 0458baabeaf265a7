"""Declarations of the tools docbridge exposes to an agent host.

Each :class:`ToolSpec` carries the name, title and description an agent
sees, plus the JSON schemas of its arguments and of its structured output,
generated from the pydantic models. ``clear_cache`` has no structured
output. The descriptions are the only place the library
"selection process" lives; it is guidance for the agent, not code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from docbridge.models import (
    ClearCacheArguments,
    QueryDocsArguments,
    QueryDocsResponse,
    ResolveLibraryIdArguments,
    ResolveLibraryIdResponse,
)

RESOLVE_LIBRARY_ID = "resolve_library_id"
QUERY_DOCS = "query_docs"
CLEAR_CACHE = "clear_cache"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    title: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)
    output_schema: Optional[dict[str, Any]] = None
    read_only: bool = True
    destructive: bool = False


_RESOLVE_DESCRIPTION = """\
Resolves a package/product name to a Context7-compatible library ID and returns matching libraries.

You MUST call this function before 'query_docs' to obtain a valid Context7-compatible library ID \
UNLESS the user explicitly provides a library ID in the format '/org/project' or \
'/org/project/version' in their query.

Selection Process:
1. Analyze the query to understand what library/package the user is looking for
2. Return the most relevant match based on:
- Name similarity to the query (exact matches prioritized)
- Description relevance to the query's intent
- Documentation coverage (prioritize libraries with higher Code Snippet counts)
- Source reputation (consider libraries with High or Medium reputation more authoritative)
- Benchmark Score: Quality indicator (100 is the highest score)

Response Format:
- Return the selected library ID in a clearly marked section
- Provide a brief explanation for why this library was chosen
- If multiple good matches exist, acknowledge this but proceed with the most relevant one
- If no good matches exist, clearly state this and suggest query refinements

For ambiguous queries, request clarification before proceeding with a best-guess match.

IMPORTANT: Do not call this tool more than 3 times per question. If you cannot find what you \
need after 3 calls, use the best result you have."""

_QUERY_DESCRIPTION = """\
Retrieves and queries up-to-date documentation and code examples from Context7 for any \
programming library or framework.

You must call 'resolve_library_id' first to obtain the exact Context7-compatible library ID \
required to use this tool, UNLESS the user explicitly provides a library ID in the format \
'/org/project' or '/org/project/version' in their query.

IMPORTANT: Do not call this tool more than 3 times per question. If you cannot find what you \
need after 3 calls, use the best information you have."""

_CLEAR_DESCRIPTION = (
    "Clears the local documentation cache. Use this when cached results appear stale or outdated."
)


def list_tools() -> list[ToolSpec]:
    """Return the specs of every tool, in presentation order."""
    return [
        ToolSpec(
            name=QUERY_DOCS,
            title="Query Documentation",
            description=_QUERY_DESCRIPTION,
            input_schema=QueryDocsArguments.model_json_schema(by_alias=True),
            output_schema=QueryDocsResponse.model_json_schema(by_alias=True),
        ),
        ToolSpec(
            name=RESOLVE_LIBRARY_ID,
            title="Resolve Context7 Library ID",
            description=_RESOLVE_DESCRIPTION,
            input_schema=ResolveLibraryIdArguments.model_json_schema(by_alias=True),
            output_schema=ResolveLibraryIdResponse.model_json_schema(by_alias=True),
        ),
        ToolSpec(
            name=CLEAR_CACHE,
            title="Clear Cache",
            description=_CLEAR_DESCRIPTION,
            input_schema=ClearCacheArguments.model_json_schema(by_alias=True),
            read_only=False,
            destructive=True,
        ),
    ]
