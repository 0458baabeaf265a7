"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.docbridge/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Global config** -- a single :class:`~docbridge.models.GlobalConfig`
  JSON file (API endpoint, request timeout, cache TTL and directory).
* **Precedence resolution** -- :func:`resolve_config` layers CLI flags and
  environment variables over the global config file.
* **Cache directory** -- :func:`resolve_cache_dir` decides where cached
  tool results live, or that caching is disabled.
* **Credential resolution** -- :func:`resolve_api_key` finds the Context7
  API key; without one the API is used anonymously.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`); the cache engine relies on it too.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from docbridge.exceptions import ConfigError
from docbridge.models import GlobalConfig
from docbridge.output import debug, info, warning

_APP_NAME = "docbridge"
_CONFIG_FILENAME = "config.json"
_RESPONSES_DIRNAME = "responses"

ENV_CACHE_TTL = "DOCBRIDGE_CACHE_TTL"
ENV_CACHE_DIR = "DOCBRIDGE_CACHE_DIR"
ENV_BASE_URL = "DOCBRIDGE_BASE_URL"
ENV_API_KEY = "CONTEXT7_API_KEY"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/docbridge/`` (default ``~/.config/docbridge/``).
    On macOS/Windows: ``~/.docbridge/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default cache directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/docbridge/`` (default ``~/.cache/docbridge/``).
    On macOS/Windows: ``~/.docbridge/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/docbridge/`` (default ``~/.local/share/docbridge/``).
    On macOS/Windows: ``~/.docbridge/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems; a concurrent reader
    sees either the previous file or the complete new one. On any failure
    the temp file is removed and the exception re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~docbridge.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_ttl_days: Optional[int] = None,
    cli_cache_dir: Optional[str] = None,
    cli_base_url: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``--ttl``, ``--cache-dir``, ``--base-url``)
        2. Environment variables (``DOCBRIDGE_CACHE_TTL`` in days,
           ``DOCBRIDGE_CACHE_DIR``, ``DOCBRIDGE_BASE_URL``)
        3. User config (``~/.config/docbridge/config.json``)
        4. Defaults

    A malformed ``DOCBRIDGE_CACHE_TTL`` is ignored with a warning.

    Raises:
        ConfigError: If the user config file is invalid, or a CLI TTL is
            negative.
    """
    config = load_global_config()

    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if env_ttl:
        try:
            ttl = int(env_ttl)
            if ttl < 0:
                raise ValueError(env_ttl)
            config.cache.ttl_days = ttl
        except ValueError:
            warning(f"Ignoring invalid {ENV_CACHE_TTL}={env_ttl!r}; expected whole days >= 0")
    env_dir = os.environ.get(ENV_CACHE_DIR)
    if env_dir:
        config.cache.directory = env_dir
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        config.api.base_url = env_base_url

    if cli_ttl_days is not None:
        if cli_ttl_days < 0:
            raise ConfigError(f"Cache TTL must be >= 0 days, got {cli_ttl_days}")
        config.cache.ttl_days = cli_ttl_days
    if cli_cache_dir is not None:
        config.cache.directory = cli_cache_dir
    if cli_base_url is not None:
        config.api.base_url = cli_base_url

    return config


def resolve_cache_dir(config: GlobalConfig) -> Optional[Path]:
    """Return the cache directory to use, or ``None`` when caching is off.

    An explicitly configured directory is treated as a mount point: it is
    never created, and when it does not exist caching is disabled (logged
    once per call at info level). Without an explicit directory the XDG
    cache location is used and created on demand.
    """
    if not config.cache.enabled:
        debug("Caching disabled by configuration")
        return None
    if config.cache.directory:
        path = Path(config.cache.directory).expanduser()
        if not path.is_dir():
            info(f"Cache directory {path} is not mounted; caching is disabled")
            return None
        return path
    path = get_cache_dir() / _RESPONSES_DIRNAME
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")


def resolve_api_key(config: GlobalConfig) -> Optional[str]:
    """Find the Context7 API key.

    ``CONTEXT7_API_KEY`` wins, even when set to an empty string (anonymous
    access); otherwise ``api.api_key_source`` is resolved
    with :func:`resolve_credential`. When neither yields a key the API is
    used anonymously.

    Raises:
        ConfigError: If ``api.api_key_source`` is set but cannot be resolved.
    """
    api_key = os.environ.get(ENV_API_KEY)
    if api_key is None and config.api.api_key_source:
        api_key = resolve_credential(config.api.api_key_source)
    api_key = api_key or None
    if api_key is None:
        info("Unable to resolve an API key for Context7, using anonymous access")
    return api_key
