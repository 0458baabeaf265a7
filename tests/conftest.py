"""Shared test fixtures for docbridge.

Provides isolated config environments, output state management, a stub
Context7 API built on :class:`httpx.MockTransport`, and a CLI runner.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from docbridge.output import OutputFormat, OutputManager, reset_output, set_output


SEARCH_BODY: dict[str, Any] = {
    "results": [
        {
            "id": "/facebook/react",
            "title": "React",
            "description": "The library for web and native user interfaces",
            "branch": "main",
            "lastUpdateDate": "2025-01-10T12:00:00.000Z",
            "state": "finalized",
            "totalTokens": 850000,
            "totalSnippets": 3200,
            "trustScore": 9.5,
            "benchmarkScore": 88.1,
            "versions": ["v18.3.1", "v19.0.0"],
        },
        {
            "id": "/reactjs/react.dev",
            "title": "React Docs",
            "description": "The React documentation website",
            "branch": "main",
            "lastUpdateDate": "2025-01-09T08:30:00.000Z",
            "state": "finalized",
            "totalTokens": 410000,
            "totalSnippets": 1500,
        },
    ]
}

CONTEXT_JSON_BODY: dict[str, Any] = {
    "codeSnippets": [
        {
            "codeTitle": "Basic useState",
            "codeDescription": "Declare a state variable",
            "codeLanguage": "jsx",
            "codeTokens": 42,
            "codeId": "https://react.dev/reference/react/useState#usage",
            "pageTitle": "useState",
            "codeList": [
                {"language": "jsx", "code": "const [count, setCount] = useState(0);"},
                {"language": "tsx", "code": "const [n, setN] = useState<number>(0);"},
            ],
        }
    ],
    "infoSnippets": [
        {
            "pageId": "https://react.dev/learn",
            "breadcrumb": "Learn > Hooks",
            "content": "Hooks let you use state without writing a class.",
            "contentTokens": 12,
        }
    ],
    "rules": {"global": ["Prefer function components"]},
}

CONTEXT_TEXT_BODY = "### Basic useState\n\nconst [count, setCount] = useState(0);\n"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; after
    CliRunner swaps those streams the cached references go stale.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet PLAIN output manager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at subdirectories of tmp_path and clears
    every DOCBRIDGE_* and CONTEXT7_* environment variable.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("docbridge.config._is_xdg_platform", lambda: True)

    for var in [
        "DOCBRIDGE_CACHE_TTL",
        "DOCBRIDGE_CACHE_DIR",
        "DOCBRIDGE_BASE_URL",
        "CONTEXT7_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An existing ("mounted") cache directory."""
    path = tmp_path / "mnt-cache"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Stub Context7 API
# ---------------------------------------------------------------------------


@dataclass
class StubContext7:
    """Programmable stand-in for the Context7 API.

    Counts requests per endpoint variant (``search``, ``txt``, ``json``) and
    answers with the configured bodies. Set a status in ``fail`` to make a
    variant return an error response instead.
    """

    search_body: str = json.dumps(SEARCH_BODY)
    text_body: str = CONTEXT_TEXT_BODY
    json_body: str = json.dumps(CONTEXT_JSON_BODY)
    fail: dict[str, int] = field(default_factory=dict)
    calls: dict[str, int] = field(default_factory=lambda: {"search": 0, "txt": 0, "json": 0})
    requests: list[httpx.Request] = field(default_factory=list)
    on_request: Optional[Callable[[httpx.Request], None]] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)
        if request.url.path.endswith("/v2/libs/search"):
            variant, body = "search", self.search_body
        elif request.url.path.endswith("/v2/context"):
            variant = request.url.params["type"]
            body = self.text_body if variant == "txt" else self.json_body
        else:
            return httpx.Response(404, text="no such endpoint")

        self.calls[variant] += 1
        if variant in self.fail:
            return httpx.Response(self.fail[variant], text=f"{variant} unavailable")
        return httpx.Response(200, text=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def search_payload() -> dict[str, Any]:
    """Decoded body of a successful library search."""
    return json.loads(json.dumps(SEARCH_BODY))


@pytest.fixture
def context_payload() -> dict[str, Any]:
    """Decoded body of a successful type=json context fetch."""
    return json.loads(json.dumps(CONTEXT_JSON_BODY))


@pytest.fixture
def stub_api() -> StubContext7:
    """A fresh stub Context7 API."""
    return StubContext7()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
