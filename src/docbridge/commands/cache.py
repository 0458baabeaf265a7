"""Cache commands -- inspect and clear cached tool results.

Provides the ``docbridge cache`` sub-command group. Both commands honour
``--cache-dir`` and report a disabled cache instead of failing.
"""

from __future__ import annotations

from datetime import timedelta

import typer

from docbridge import cache
from docbridge.commands import load_effective_config
from docbridge.config import resolve_cache_dir
from docbridge.exceptions import CacheError
from docbridge.output import OutputFormat, error, format_response, get_output, info, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every cached tool result.

    Only ``*.json`` entry files are removed; other files in the cache
    directory are left alone.

    Example::

        docbridge cache clear
        docbridge --cache-dir /cache cache clear
    """
    config = load_effective_config(ctx)
    try:
        outcome = cache.clear(resolve_cache_dir(config))
    except CacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if not outcome.enabled:
        info("Cache is not enabled (directory not mounted)")
        return
    success(f"Cache cleared successfully ({outcome.removed} entries removed)")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the cache directory, entry count and TTL.

    Example::

        docbridge cache stats
        docbridge --json cache stats
    """
    config = load_effective_config(ctx)
    summary = cache.stats(
        resolve_cache_dir(config), timedelta(days=config.cache.ttl_days)
    )
    if not summary["enabled"] and get_output().format != OutputFormat.JSON:
        info("Cache is not enabled (directory not mounted)")
        return
    format_response(summary)
