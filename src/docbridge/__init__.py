"""docbridge -- cache-first bridge between AI agents and the Context7 docs API.

The package exposes three tools to an agent host or to a human on the
command line:

* ``resolve_library_id`` -- map a library name to Context7 library ids.
* ``query_docs`` -- fetch documentation for a library id, as text and as
  structured JSON in one result.
* ``clear_cache`` -- drop every cached response.

Every upstream answer is cached on disk for a configurable number of days,
so repeated questions never hit the network twice.

Modules:
    app: Typer application and CLI entry point.
    cache: On-disk, TTL-governed tool result cache.
    client: Async HTTP client for the Context7 API.
    config: XDG-aware configuration and precedence resolution.
    models: Pydantic models shared across the package.
    orchestrator: Cache-first tool execution and dual-fetch merging.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
