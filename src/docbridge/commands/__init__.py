"""Built-in CLI sub-commands for docbridge.

* :mod:`~docbridge.commands.docs` -- ``resolve``, ``query``, ``call`` and
  ``tools``: the tool surface from a terminal.
* :mod:`~docbridge.commands.cache` -- inspect and clear the result cache.
* :mod:`~docbridge.commands.config` -- view and modify global settings.

Commands read the global overrides (``--ttl``, ``--cache-dir``,
``--base-url``) from ``ctx.obj`` and resolve the effective configuration
through :func:`load_effective_config`.
"""

from __future__ import annotations

from typing import Any

import typer

from docbridge.config import resolve_config
from docbridge.exceptions import DocbridgeError
from docbridge.models import GlobalConfig
from docbridge.output import OutputFormat, OutputManager, error, get_output, set_output


def load_effective_config(ctx: typer.Context) -> GlobalConfig:
    """Resolve the configuration with the root command's overrides applied.

    When neither ``--json`` nor ``--plain`` was given, the stored
    ``output.format`` replaces the auto-detected format.

    Raises:
        typer.Exit: With the error's exit code when the config is invalid.
    """
    obj: dict[str, Any] = ctx.obj or {}
    try:
        config = resolve_config(
            cli_ttl_days=obj.get("ttl"),
            cli_cache_dir=obj.get("cache_dir"),
            cli_base_url=obj.get("base_url"),
        )
    except DocbridgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if obj.get("format") is None and config.output.format != OutputFormat.AUTO.value:
        current = get_output()
        set_output(
            OutputManager(
                format=OutputFormat(config.output.format),
                no_color=obj.get("no_color", False),
                quiet=current.is_quiet,
                verbose=current.is_verbose,
            )
        )
    return config
