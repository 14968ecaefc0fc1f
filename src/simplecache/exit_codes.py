"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~simplecache.exceptions.SimpleCacheError` subclass.
Shell scripts wrapping ``simplecache get`` can inspect the exit code to tell
a network failure from a cold cache without parsing stderr.

Example::

    $ simplecache key reports
    $ echo $?
    4   # EXIT_MISSING_URL -- nothing cached and no URL to fetch
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments (e.g. a malformed cache key)."""

EXIT_MISSING_URL = 4
"""No valid cache entry exists and no URL is known to fetch or refresh it."""

EXIT_FETCH_ERROR = 6
"""The HTTP fetch failed (timeout, DNS failure, connection refused, non-2xx status)."""

EXIT_FILESYSTEM_ERROR = 8
"""The cache directory or one of its files could not be created, read, or written."""
