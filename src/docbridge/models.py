"""Canonical Pydantic models shared across all docbridge modules.

The models fall into four groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ApiConfig`, :class:`RequestConfig`, :class:`CacheConfig`,
    :class:`OutputConfig` and :class:`GlobalConfig`.

**Tool arguments** -- validated from the argument mapping a host passes to a
tool: :class:`ResolveLibraryIdArguments`, :class:`QueryDocsArguments` and
:class:`ClearCacheArguments`.

**Tool results** -- :class:`ToolResult` and its content parts
:class:`TextContent` and :class:`JsonContent`. A ``ToolResult`` is the unit
the cache stores and the orchestrator returns.

**Upstream shapes** -- what the Context7 API answers with:
:class:`Library`, :class:`ResolveLibraryIdResponse`,
:class:`QueryDocsResponse` and friends. They keep the camelCase wire names
as aliases and preserve unknown fields (``extra="allow"``) so a newer API
never breaks validation or loses data on the way to the agent.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


# --- Configuration ---


class ApiConfig(BaseModel):
    """Context7 API endpoint and credential settings."""

    base_url: str = Field(
        default="https://context7.com/api", description="Context7 API base URL"
    )
    api_key_source: Optional[str] = Field(
        default=None,
        description="Credential source for the API key: env:VAR or file:/path",
    )


class RequestConfig(BaseModel):
    """HTTP request settings applied to every upstream call."""

    timeout: int = Field(default=30, description="Per-request timeout in seconds")


class CacheConfig(BaseModel):
    """On-disk tool result cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable result caching")
    ttl_days: int = Field(
        default=1, ge=0, description="Entry lifetime in days; 0 treats every entry as stale"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Mounted cache directory; caching is disabled when it does not exist",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Default output format when no --json or --plain flag is given"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/docbridge/config.json``.

    Loaded and saved by :func:`~docbridge.config.load_global_config` and
    :func:`~docbridge.config.save_global_config`. Environment variables and
    CLI flags override it; see :func:`~docbridge.config.resolve_config`.
    """

    api: ApiConfig = Field(default_factory=ApiConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Tool arguments ---


def _require_utf8(value: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValueError("must be valid UTF-8 text (no lone surrogates)") from exc
    return value


# Argument values are sent as URL query parameters, which must encode as UTF-8.
ArgumentText = Annotated[str, AfterValidator(_require_utf8)]


class ResolveLibraryIdArguments(BaseModel):
    """Arguments of the ``resolve_library_id`` tool."""

    model_config = ConfigDict(populate_by_name=True)

    library_name: ArgumentText = Field(
        alias="libraryName",
        description="Library name to search for and retrieve a Context7-compatible library ID.",
    )
    query: ArgumentText = Field(
        description="The question or task you need help with. This is used to rank library "
        "results by relevance to what the user is trying to accomplish. Do not include any "
        "sensitive or confidential information such as API keys, passwords, credentials, "
        "personal data, or proprietary code in your query.",
    )


class QueryDocsArguments(BaseModel):
    """Arguments of the ``query_docs`` tool."""

    model_config = ConfigDict(populate_by_name=True)

    library_id: ArgumentText = Field(
        alias="libraryId",
        description="Exact Context7-compatible library ID (e.g. '/mongodb/docs', "
        "'/vercel/next.js', '/vercel/next.js/v14.3.0-canary.87') retrieved from "
        "'resolve_library_id' or given by the user in the format '/org/project' or "
        "'/org/project/version'.",
    )
    query: ArgumentText = Field(
        description="The question or task you need help with. Be specific: 'How to set up "
        "authentication with JWT in Express.js' beats 'auth'. Do not include any sensitive "
        "or confidential information in your query.",
    )


class ClearCacheArguments(BaseModel):
    """The ``clear_cache`` tool takes no arguments."""


# --- Tool results ---


class TextContent(BaseModel):
    """A human-readable text part of a :class:`ToolResult`."""

    type: Literal["text"] = "text"
    text: str


class JsonContent(BaseModel):
    """A structured (JSON object) part of a :class:`ToolResult`."""

    type: Literal["json"] = "json"
    data: dict[str, Any]


ContentPart = Annotated[Union[TextContent, JsonContent], Field(discriminator="type")]


class ToolResult(BaseModel):
    """Composite response of one tool invocation.

    An ordered sequence of content parts plus an optional error flag. This
    is exactly what the cache persists, so a write followed by a read must
    reproduce an equal value.

    Example::

        result = ToolResult(content=[
            TextContent(text="# Hooks ..."),
            JsonContent(data={"codeSnippets": [], "infoSnippets": []}),
        ])
    """

    model_config = ConfigDict(extra="forbid")

    content: list[ContentPart]
    is_error: Optional[bool] = None

    @classmethod
    def from_text(cls, text: str) -> ToolResult:
        """Build a successful single-text-part result."""
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, message: str) -> ToolResult:
        """Build an error-flagged result carrying *message* as its only part."""
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def text(self) -> str:
        """All text parts joined by newlines."""
        return "\n".join(p.text for p in self.content if isinstance(p, TextContent))

    @property
    def structured(self) -> Optional[dict[str, Any]]:
        """The first structured part, or ``None`` when there is none."""
        for part in self.content:
            if isinstance(part, JsonContent):
                return part.data
        return None


# --- Upstream shapes ---


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class DocumentState(str, enum.Enum):
    """Indexing state of a Context7 library."""

    DELETE = "delete"
    ERROR = "error"
    FINALIZED = "finalized"
    INITIAL = "initial"


class Library(_WireModel):
    """One candidate library returned by the search endpoint."""

    id: str
    title: str
    description: str = ""
    branch: str = ""
    last_update_date: str = Field(default="", alias="lastUpdateDate")
    state: DocumentState = DocumentState.INITIAL
    total_tokens: float = Field(default=0, alias="totalTokens")
    total_snippets: float = Field(default=0, alias="totalSnippets")
    stars: Optional[float] = None
    trust_score: Optional[float] = Field(default=None, alias="trustScore")
    benchmark_score: Optional[float] = Field(default=None, alias="benchmarkScore")
    versions: list[str] = Field(default_factory=list)
    score: Optional[float] = None
    vip: Optional[bool] = None
    verified: Optional[bool] = None


class ResolveLibraryIdResponse(_WireModel):
    """Body of ``GET /v2/libs/search``."""

    error: Optional[str] = None
    results: list[Library] = Field(default_factory=list)


class CodeListEntry(_WireModel):
    language: str = ""
    code: str = ""


class CodeSnippet(_WireModel):
    code_title: str = Field(default="", alias="codeTitle")
    code_description: str = Field(default="", alias="codeDescription")
    code_language: str = Field(default="", alias="codeLanguage")
    code_tokens: float = Field(default=0, alias="codeTokens")
    code_id: str = Field(default="", alias="codeId")
    page_title: str = Field(default="", alias="pageTitle")
    code_list: list[CodeListEntry] = Field(default_factory=list, alias="codeList")


class InfoSnippet(_WireModel):
    page_id: Optional[str] = Field(default=None, alias="pageId")
    breadcrumb: Optional[str] = None
    content: str = ""
    content_tokens: float = Field(default=0, alias="contentTokens")


class Rules(_WireModel):
    global_: list[str] = Field(default_factory=list, alias="global")
    library_own: list[str] = Field(default_factory=list, alias="libraryOwn")
    library_team: list[str] = Field(default_factory=list, alias="libraryTeam")


class QueryDocsResponse(_WireModel):
    """Body of ``GET /v2/context?type=json``."""

    code_snippets: list[CodeSnippet] = Field(default_factory=list, alias="codeSnippets")
    info_snippets: list[InfoSnippet] = Field(default_factory=list, alias="infoSnippets")
    rules: Optional[Rules] = None
