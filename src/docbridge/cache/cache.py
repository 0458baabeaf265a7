"""On-disk cache of tool results with age-based expiry.

Each entry is one JSON file holding a serialised
:class:`~docbridge.models.ToolResult`, named ``{tool_name}_{key}.json``
inside the cache directory. The entry's age is taken from the file's
modification time, so no timestamp is stored in the payload.

Cache keys are SHA-256 hashes of the tool name and the canonical JSON of
its arguments (keys sorted), so identical calls always resolve to the same
entry regardless of argument order.

The engine keeps no in-memory state. Every function takes the cache
directory explicitly; a directory that does not exist means caching is
disabled, which is never an error. Reads degrade to a miss on any problem
(absent, unreadable, truncated, wrong shape); writes and clears raise
:class:`~docbridge.exceptions.CacheError`.

Writes go through :func:`~docbridge.config.atomic_write`, so a concurrent
reader sees either the previous entry or the new one, never a torn file.
Concurrent writers of one key race; the last rename wins.
"""

from __future__ import annotations

import enum
import hashlib
import json
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from docbridge.config import atomic_write
from docbridge.exceptions import CacheError
from docbridge.models import ToolResult
from docbridge.output import debug

ENTRY_SUFFIX = ".json"


class CacheStatus(str, enum.Enum):
    """Outcome of a cache lookup."""

    HIT = "hit"
    MISS = "miss"
    STALE = "stale"


@dataclass(frozen=True)
class CacheResult:
    """Result of :func:`get`.

    ``payload`` is set only when ``status`` is :attr:`CacheStatus.HIT`.
    Callers refetch on both ``MISS`` and ``STALE``; the two are kept apart
    for diagnostics.
    """

    status: CacheStatus
    payload: Optional[ToolResult] = None

    @property
    def hit(self) -> bool:
        return self.status is CacheStatus.HIT


MISS = CacheResult(CacheStatus.MISS)
STALE = CacheResult(CacheStatus.STALE)


@dataclass(frozen=True)
class ClearResult:
    """Result of :func:`clear`.

    ``enabled`` is ``False`` when there was no cache directory to clear,
    which is distinct from an enabled cache that happened to be empty.
    """

    enabled: bool
    removed: int = 0


def derive_key(tool_name: str, arguments: Mapping[str, Any]) -> str:
    """Derive the cache key for one tool invocation.

    The arguments are serialised as canonical JSON (sorted keys, compact
    separators) before hashing, so insertion order never changes the key.
    The tool name is part of the hashed material as well as the filename.

    Args:
        tool_name: Name of the tool being invoked.
        arguments: JSON-serialisable argument mapping.

    Returns:
        64 lowercase hex characters.
    """
    canonical = json.dumps(
        arguments, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    )
    raw = f"{tool_name}\x00{canonical}"
    return hashlib.sha256(raw.encode("utf-8", "surrogatepass")).hexdigest()


def entry_path(base_dir: Path, tool_name: str, key: str) -> Path:
    """Path of the entry file for *key* under *base_dir*."""
    return Path(base_dir) / f"{tool_name}_{key}{ENTRY_SUFFIX}"


def is_enabled(base_dir: Optional[Path]) -> bool:
    """Whether *base_dir* is an existing directory that can hold entries."""
    return base_dir is not None and Path(base_dir).is_dir()


def get(
    base_dir: Optional[Path],
    tool_name: str,
    key: str,
    ttl: timedelta,
) -> CacheResult:
    """Look up a cached tool result.

    Args:
        base_dir: Cache directory, or ``None`` when caching is disabled.
        tool_name: Tool name the key was derived for.
        key: Key from :func:`derive_key`.
        ttl: Maximum entry age. An entry whose age reaches *ttl* is stale,
            so a zero TTL makes every entry stale.

    Returns:
        ``HIT`` with the payload, ``STALE``, or ``MISS``. Never raises for
        an absent directory, an absent file, or a corrupted entry.
    """
    if not is_enabled(base_dir):
        return MISS

    path = entry_path(base_dir, tool_name, key)
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return MISS

    age = time.time() - mtime
    if age < 0 or age >= ttl.total_seconds():
        return STALE

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return MISS
    payload = _parse_entry(text)
    if payload is None:
        debug(f"Ignoring corrupted cache entry {path.name}")
        return MISS
    return CacheResult(CacheStatus.HIT, payload)


def put(
    base_dir: Path,
    tool_name: str,
    key: str,
    payload: ToolResult,
) -> Path:
    """Store a successful tool result.

    Creates *base_dir* if needed and replaces any previous entry atomically.

    Returns:
        Path of the written entry.

    Raises:
        ValueError: If *payload* is an error result; those are never cached.
        CacheError: If the entry cannot be written.
    """
    if payload.is_error:
        raise ValueError("Refusing to cache an error result")

    path = entry_path(base_dir, tool_name, key)
    data = payload.model_dump_json()
    try:
        atomic_write(path, data)
    except OSError as exc:
        raise CacheError(f"Failed to write cache file {path}: {exc}") from exc
    return path


def clear(base_dir: Optional[Path]) -> ClearResult:
    """Remove every entry file from the cache directory.

    Only files ending in ``.json`` directly inside *base_dir* are removed;
    anything else is left alone.

    Returns:
        ``ClearResult(enabled=False)`` when caching is disabled, otherwise
        the number of removed entries.

    Raises:
        CacheError: If the directory cannot be listed or any entry cannot be
            deleted. Deletion is attempted for every entry first.
    """
    if not is_enabled(base_dir):
        return ClearResult(enabled=False)

    try:
        candidates = [
            p for p in Path(base_dir).iterdir()
            if p.suffix == ENTRY_SUFFIX and p.is_file()
        ]
    except OSError as exc:
        raise CacheError(f"Failed to read cache directory {base_dir}: {exc}") from exc

    removed = 0
    errors: list[str] = []
    for path in candidates:
        try:
            path.unlink()
            removed += 1
        except FileNotFoundError:
            # Removed by a concurrent clear.
            continue
        except OSError as exc:
            errors.append(f"{path}: {exc}")

    if errors:
        raise CacheError(
            f"Failed to remove {len(errors)} cache entries "
            f"({removed} removed): {'; '.join(errors)}"
        )
    return ClearResult(enabled=True, removed=removed)


def stats(base_dir: Optional[Path], ttl: timedelta) -> dict[str, Any]:
    """Summarise the cache directory.

    Returns:
        ``{"enabled": False}`` when caching is disabled, otherwise
        ``enabled``, ``directory``, ``entries``, ``stale`` and
        ``ttl_days``.
    """
    if not is_enabled(base_dir):
        return {"enabled": False}

    now = time.time()
    entries = 0
    stale = 0
    for path in Path(base_dir).glob(f"*{ENTRY_SUFFIX}"):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        entries += 1
        age = now - mtime
        if age < 0 or age >= ttl.total_seconds():
            stale += 1
    return {
        "enabled": True,
        "directory": str(base_dir),
        "entries": entries,
        "stale": stale,
        "ttl_days": ttl.days,
    }


def _parse_entry(text: str) -> Optional[ToolResult]:
    """Parse entry file content, mapping every failure to ``None``."""
    if not text.strip():
        return None
    try:
        return ToolResult.model_validate_json(text)
    except ValidationError:
        return None
