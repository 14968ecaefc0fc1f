"""simplecache -- a disk-backed HTTP response cache.

Fetched payloads are stored as plain files in a single directory, one file
per cache key, and served back from disk until they expire.  Expiration is
derived from the file modification time; there is no index and no metadata
sidecar.

Typical usage::

    from simplecache import Cacher, CacherOptions, RetrieveOptions

    with Cacher("~/.cache/myapp", CacherOptions(store_urls=True)) as cacher:
        body = cacher.retrieve("https://example.com/data.json", "data")
        body = cacher.retrieve_by_key("data", RetrieveOptions(expiration=3600))

Modules:
    cache: The :class:`~simplecache.cache.Cacher` engine and its file store.
    client: The HTTP fetcher built on :mod:`httpx`.
    models: Pydantic models for options and configuration.
    config: XDG-aware configuration management.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from simplecache.cache import Cacher, CacheStore  # noqa: E402
from simplecache.exceptions import (  # noqa: E402
    CacheError,
    DirectoryCreationError,
    FetchError,
    FilesystemError,
    MissingUrlError,
    SimpleCacheError,
)
from simplecache.models import (  # noqa: E402
    CacherOptions,
    RetrieveOptions,
    RetrieveResult,
    RetrieveStatus,
)

__all__ = [
    "Cacher",
    "CacheStore",
    "CacherOptions",
    "RetrieveOptions",
    "RetrieveResult",
    "RetrieveStatus",
    "SimpleCacheError",
    "CacheError",
    "DirectoryCreationError",
    "FetchError",
    "FilesystemError",
    "MissingUrlError",
]
