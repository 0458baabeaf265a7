"""Typer application and CLI entry point for docbridge.

This module wires together the top-level Typer application and registers
the built-in commands (``resolve``, ``query``, ``call``, ``tools``,
``cache``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from docbridge import __version__
from docbridge.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="docbridge",
    help="Cache-first access to up-to-date library documentation from Context7.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"docbridge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip confirmations."
    ),
    ttl: Optional[int] = typer.Option(
        None, "--ttl", help="Cache TTL in days (0 always refetches)."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Cache directory; caching is off if it does not exist."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Context7 API base URL."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~docbridge.output.OutputManager` from the
    CLI flags and stores the configuration overrides in ``ctx.obj`` for
    sub-commands.
    """
    from docbridge.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )

    ctx.ensure_object(dict)
    ctx.obj["format"] = None if fmt == OutputFormat.AUTO else fmt
    ctx.obj["no_color"] = no_color
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose
    ctx.obj["ttl"] = ttl
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["base_url"] = base_url


# ------------------------------------------------------------------ #
# Built-in commands
# ------------------------------------------------------------------ #

from docbridge.commands.cache import cache_app  # noqa: E402
from docbridge.commands.config import config_app  # noqa: E402
from docbridge.commands.docs import (  # noqa: E402
    call_command,
    query_command,
    resolve_command,
    tools_command,
)

app.command("resolve")(resolve_command)
app.command("query")(query_command)
app.command("call")(call_command)
app.command("tools")(tools_command)
app.add_typer(cache_app, name="cache", help="Result cache management.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from docbridge.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``docbridge`` console script.

    :class:`~docbridge.exceptions.DocbridgeError` instances exit with the
    error's ``exit_code``; anything else produces a crash log and a generic
    failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from docbridge.exceptions import DocbridgeError
        from docbridge.output import error

        if isinstance(exc, DocbridgeError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
