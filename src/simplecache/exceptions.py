"""Exception hierarchy for simplecache.

All exceptions inherit from :class:`SimpleCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`simplecache.exit_codes`.
The top-level error handler in :func:`simplecache.app.main` catches
``SimpleCacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SimpleCacheError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- FetchError                 (exit 6)
    +-- CacheError                 (exit 1)
        +-- DirectoryCreationError (exit 8)
        +-- FilesystemError        (exit 8)
        +-- MissingUrlError        (exit 4)
"""

from __future__ import annotations

from typing import Optional

from simplecache.exit_codes import (
    EXIT_FETCH_ERROR,
    EXIT_FILESYSTEM_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MISSING_URL,
)


class SimpleCacheError(Exception):
    """Base exception for all simplecache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`simplecache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SimpleCacheError):
    """Raised for invalid arguments such as an empty or path-like cache key."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SimpleCacheError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class FetchError(SimpleCacheError):
    """Raised when an HTTP fetch fails.

    Covers network-level failures (timeout, DNS resolution, connection
    refused) as well as non-2xx responses.  Fetches are never retried; the
    next call with the same arguments simply tries again.

    Args:
        message: Human-readable error description.
        url: The URL that was being fetched.
        status_code: The HTTP status of the response, when one was received.
    """

    exit_code = EXIT_FETCH_ERROR

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class CacheError(SimpleCacheError):
    """Base class for errors raised while accessing the cache itself."""


class DirectoryCreationError(CacheError):
    """Raised when the cache directory cannot be created or accessed."""

    exit_code = EXIT_FILESYSTEM_ERROR


class FilesystemError(CacheError):
    """Raised when reading, writing, renaming, or removing a cache file fails."""

    exit_code = EXIT_FILESYSTEM_ERROR


class MissingUrlError(CacheError):
    """Raised when a fetch or refresh is needed but no URL is known for the key.

    Args:
        message: Human-readable error description.
        key: The cache key that could not be served.
    """

    exit_code = EXIT_MISSING_URL

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
