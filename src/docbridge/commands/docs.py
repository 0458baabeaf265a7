"""Documentation commands -- the tool surface from a terminal.

* ``docbridge resolve NAME QUERY`` -- list Context7 libraries matching NAME.
* ``docbridge query LIBRARY_ID QUERY`` -- print documentation for a library.
* ``docbridge call TOOL --args JSON`` -- invoke a tool exactly as an agent
  host would and print the raw :class:`~docbridge.models.ToolResult`.
* ``docbridge tools`` -- list the tools and their argument schemas.

``--json`` switches ``resolve`` and ``query`` to the structured part of the
result instead of the human-readable rendering.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from docbridge.commands import load_effective_config
from docbridge.exceptions import DocbridgeError
from docbridge.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from docbridge.models import QueryDocsArguments, ResolveLibraryIdArguments, ToolResult
from docbridge.orchestrator import Orchestrator, open_orchestrator
from docbridge.output import (
    OutputFormat,
    error,
    format_response,
    get_output,
    info,
    print_data,
    print_table,
    warning,
)
from docbridge.tools import list_tools

T = TypeVar("T")


def _run(ctx: typer.Context, operation: Callable[[Orchestrator], Awaitable[T]]) -> T:
    """Run *operation* against a freshly opened orchestrator.

    Raises:
        typer.Exit: With the error's exit code on any docbridge error.
    """
    config = load_effective_config(ctx)

    async def _go() -> T:
        async with open_orchestrator(config) as orchestrator:
            return await operation(orchestrator)

    try:
        return asyncio.run(_go())
    except DocbridgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def resolve_command(
    ctx: typer.Context,
    library_name: str = typer.Argument(help="Library or package name, e.g. 'react'."),
    query: str = typer.Argument(help="What you want to do with the library."),
) -> None:
    """Resolve a library name to Context7 library IDs.

    Example::

        docbridge resolve react "How do hooks work?"
        docbridge --json resolve next.js "middleware"
    """
    args = ResolveLibraryIdArguments(library_name=library_name, query=query)
    result = _run(ctx, lambda o: o.resolve_library_id(args))
    structured = result.structured or {}

    if get_output().format == OutputFormat.JSON:
        format_response(structured)
        return

    if structured.get("error"):
        warning(str(structured["error"]))
    libraries: list[dict[str, Any]] = structured.get("results", [])
    if not libraries:
        info(f"No libraries matched '{library_name}'.")
        return
    rows = [
        [
            lib.get("id", ""),
            lib.get("title", ""),
            _number(lib.get("totalSnippets")),
            _number(lib.get("trustScore")),
            _number(lib.get("benchmarkScore")),
        ]
        for lib in libraries
    ]
    print_table(
        ["ID", "Title", "Snippets", "Trust", "Benchmark"],
        rows,
        title=f"Libraries matching '{library_name}'",
    )


def query_command(
    ctx: typer.Context,
    library_id: str = typer.Argument(help="Context7 library ID, e.g. '/vercel/next.js'."),
    query: str = typer.Argument(help="The question to answer from the documentation."),
) -> None:
    """Fetch documentation for a Context7 library ID.

    Example::

        docbridge query /facebook/react "useEffect cleanup"
    """
    args = QueryDocsArguments(library_id=library_id, query=query)
    result = _run(ctx, lambda o: o.query_docs(args))

    if get_output().format == OutputFormat.JSON:
        format_response(result.structured or {})
    else:
        format_response(result.text)


def call_command(
    ctx: typer.Context,
    tool: str = typer.Argument(help="Tool name, see 'docbridge tools'."),
    arguments: Optional[str] = typer.Option(
        None, "--args", "-a", help="Tool arguments as a JSON object."
    ),
) -> None:
    """Invoke a tool the way an agent host does and print the raw result.

    Exits with code 1 when the tool returns an error result.

    Example::

        docbridge call resolve_library_id --args '{"libraryName": "react", "query": "hooks"}'
        docbridge call clear_cache
    """
    parsed: dict[str, Any] = {}
    if arguments:
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as exc:
            error(f"--args is not valid JSON: {exc}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
        if not isinstance(parsed, dict):
            error("--args must be a JSON object")
            raise typer.Exit(code=EXIT_INVALID_USAGE)

    result: ToolResult = _run(ctx, lambda o: o.call_tool(tool, parsed))
    print_data(result.model_dump_json(indent=2, exclude_none=True))
    if result.is_error:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


def tools_command() -> None:
    """List the tools exposed to agent hosts.

    Example::

        docbridge tools
        docbridge --json tools
    """
    specs = list_tools()
    if get_output().format == OutputFormat.JSON:
        format_response([asdict(spec) for spec in specs])
        return
    print_table(
        ["Name", "Title", "Read-only"],
        [[s.name, s.title, "yes" if s.read_only else "no"] for s in specs],
        title="Tools",
    )


def _number(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
