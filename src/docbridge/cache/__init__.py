"""On-disk, TTL-governed caching of tool results.

See :mod:`docbridge.cache.cache` for the storage format and failure
semantics. Callers are the orchestrator and the ``cache`` CLI commands.
"""

from docbridge.cache.cache import (
    CacheResult,
    CacheStatus,
    ClearResult,
    clear,
    derive_key,
    entry_path,
    get,
    is_enabled,
    put,
    stats,
)

__all__ = [
    "CacheResult",
    "CacheStatus",
    "ClearResult",
    "clear",
    "derive_key",
    "entry_path",
    "get",
    "is_enabled",
    "put",
    "stats",
]
