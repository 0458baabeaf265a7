"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~docbridge.exceptions.DocbridgeError` subclass.

Example::

    $ docbridge query /vercel/next.js "middleware"
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- context7.com could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or a tool returned an error result."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_CACHE_ERROR = 3
"""The cache directory exists but could not be written or cleared."""

EXIT_UPSTREAM_ERROR = 5
"""The Context7 API answered with a non-success status or a malformed body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
