"""Exception hierarchy for docbridge.

All exceptions inherit from :class:`DocbridgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`docbridge.exit_codes`.
The top-level error handler in :func:`docbridge.app.main` catches
``DocbridgeError`` and exits with the appropriate code, while
:meth:`~docbridge.orchestrator.Orchestrator.call_tool` turns it into an
error-flagged :class:`~docbridge.models.ToolResult` for agent hosts.

Cache *read* problems never show up here: a missing, stale or corrupted
entry is reported by :func:`docbridge.cache.get` as a miss.

Subclass hierarchy::

    DocbridgeError (exit 1)
    +-- InvalidUsageError           (exit 2)
    +-- ConfigError                 (exit 1)
    +-- CacheError                  (exit 3)
    +-- UpstreamError               (exit 5)
        +-- UpstreamConnectionError (exit 6)
        +-- PartialFetchFailure     (exit 5)
"""

from __future__ import annotations

from typing import Optional

from docbridge.exit_codes import (
    EXIT_CACHE_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_UPSTREAM_ERROR,
)


class DocbridgeError(Exception):
    """Base exception for all docbridge errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(DocbridgeError):
    """Raised for invalid CLI arguments or malformed tool arguments."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(DocbridgeError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheError(DocbridgeError):
    """Raised when a present cache directory cannot be written or cleared.

    Only :func:`docbridge.cache.put` and :func:`docbridge.cache.clear`
    raise this (permission denied, disk full, ...).
    """

    exit_code = EXIT_CACHE_ERROR


class UpstreamError(DocbridgeError):
    """Raised when a Context7 API call fails.

    Covers non-2xx statuses and bodies that do not parse into the expected
    shape. The message is surfaced verbatim to the caller.

    Args:
        message: Error description, usually including the upstream body.
        status_code: HTTP status of the failed response, when there was one.
    """

    exit_code = EXIT_UPSTREAM_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamConnectionError(UpstreamError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class PartialFetchFailure(UpstreamError):
    """Raised when one half of a dual fetch failed while the other succeeded.

    The succeeded half is discarded; nothing is cached.

    Args:
        channel: Name of the failed channel (``"text"`` or ``"json"``).
        cause: The channel's own :class:`UpstreamError`.
    """

    def __init__(self, channel: str, cause: UpstreamError):
        super().__init__(str(cause), status_code=cause.status_code)
        self.channel = channel
        self.exit_code = cause.exit_code
