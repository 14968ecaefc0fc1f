"""The :class:`Cacher` engine: retrieve-through caching of HTTP payloads.

A :class:`Cacher` maps a cache key (caller-supplied, or the MD5 hex digest
of the URL) to a file in a :class:`~simplecache.cache.store.CacheStore`.
On a miss the URL is fetched with :class:`~simplecache.client.Fetcher`,
streamed into ``<key>.tmp`` and renamed into place; on a hit the file is
read back verbatim.

Expiration is evaluated per call from the file's modification time.  An
expired entry is removed and fetched again exactly once, provided a URL is
known -- either passed in, or remembered from an earlier fetch when the
cacher was created with ``store_urls=True``.

When no URL is available the ``try_retrieve*`` methods return a
:class:`~simplecache.models.RetrieveResult` with status
``MISSING_URL``; the ``retrieve*`` methods unwrap that result and raise
:class:`~simplecache.exceptions.MissingUrlError`.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Optional

from simplecache.cache.store import CacheStore
from simplecache.client import Fetcher
from simplecache.models import (
    CacherOptions,
    RetrieveOptions,
    RetrieveResult,
    RetrieveStatus,
)
from simplecache.output import get_output

logger = logging.getLogger(__name__)


class Cacher:
    """Disk-backed retrieve-through cache for URL contents.

    Args:
        cache_dir: Directory holding the cache files.  ``~`` is expanded,
            the path is made absolute, and the directory (with any missing
            ancestors) is created immediately.
        options: Construction options; see
            :class:`~simplecache.models.CacherOptions`.
        fetcher: HTTP fetcher used on cache misses.  A default
            :class:`~simplecache.client.Fetcher` is created when omitted.

    Raises:
        DirectoryCreationError: If *cache_dir* cannot be created.

    Example::

        with Cacher("/tmp/pages", CacherOptions(store_urls=True)) as cacher:
            html = cacher.retrieve("https://example.com/", "home")
            html = cacher.retrieve_by_key("home", RetrieveOptions(expiration=60))
    """

    def __init__(
        self,
        cache_dir: str | Path,
        options: Optional[CacherOptions] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self._options = options or CacherOptions()
        self._store = CacheStore(cache_dir)
        self._fetcher = fetcher or Fetcher()
        self._urls: Optional[dict[str, str]] = {} if self._options.store_urls else None

    # ------------------------------------------------------------------ #
    # Properties and lifecycle
    # ------------------------------------------------------------------ #

    @property
    def cache_dir(self) -> Path:
        """Absolute path of the cache directory."""
        return self._store.directory

    @property
    def store_urls(self) -> bool:
        """Whether key -> URL mappings are remembered."""
        return self._urls is not None

    @property
    def urls(self) -> dict[str, str]:
        """A copy of the remembered key -> URL mapping (empty when disabled)."""
        return dict(self._urls or {})

    def __enter__(self) -> Cacher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self._fetcher.close()

    # ------------------------------------------------------------------ #
    # Retrieval
    # ------------------------------------------------------------------ #

    def try_retrieve(
        self,
        url: Optional[str],
        key: str,
        options: Optional[RetrieveOptions] = None,
    ) -> RetrieveResult:
        """Return the content for *key*, fetching *url* when needed.

        1. With ``store_urls`` enabled and no *url*, the URL remembered for
           *key* is used (it may still be unknown).
        2. A cached, unexpired entry is returned as a ``HIT``.
        3. An expired entry is removed and re-fetched (``REFRESHED``) when a
           URL is known; otherwise the result is ``MISSING_URL``.
        4. With no cached entry the URL is fetched (``FETCHED``), or the
           result is ``MISSING_URL`` when there is none.

        Args:
            url: URL to fetch on a miss.  ``None`` or ``""`` means unknown.
            key: Cache key, used verbatim as the file name.
            options: Progress and expiration settings.

        Returns:
            A :class:`~simplecache.models.RetrieveResult`.

        Raises:
            InvalidUsageError: If *key* is not a valid file name.
            FetchError: If the HTTP fetch fails.
            FilesystemError: If a cache file cannot be read or written.
        """
        options = options or RetrieveOptions()
        if not url and self._urls is not None:
            url = self._urls.get(key)

        status = RetrieveStatus.FETCHED
        if self._store.exists(key):
            if not self.is_expired(key, options.expiration):
                logger.debug("Cache hit: %s", key)
                return RetrieveResult(
                    key=key,
                    status=RetrieveStatus.HIT,
                    url=url or None,
                    content=self._store.read(key),
                )
            if not url:
                return RetrieveResult(
                    key=key,
                    status=RetrieveStatus.MISSING_URL,
                    message=(
                        f"Cannot refresh expired cache for key '{key}': no URL known. "
                        "Pass the URL or enable store_urls."
                    ),
                )
            logger.debug("Cache expired: %s", key)
            self._store.remove(key)
            status = RetrieveStatus.REFRESHED
        elif not url:
            return RetrieveResult(
                key=key,
                status=RetrieveStatus.MISSING_URL,
                message=f"No valid cache for key '{key}' and no URL to fetch.",
            )

        logger.debug("Cache miss: %s", key)
        self._download(url, key, options.show_progress)
        if self._urls is not None:
            self._urls[key] = url
        return RetrieveResult(
            key=key,
            status=status,
            url=url,
            content=self._store.read(key),
        )

    def try_retrieve_by_key(
        self, key: str, options: Optional[RetrieveOptions] = None
    ) -> RetrieveResult:
        """:meth:`try_retrieve` without a URL."""
        return self.try_retrieve(None, key, options)

    def try_retrieve_by_url(
        self, url: str, options: Optional[RetrieveOptions] = None
    ) -> RetrieveResult:
        """:meth:`try_retrieve` keyed by :meth:`key_for_url`."""
        return self.try_retrieve(url, self.key_for_url(url), options)

    def retrieve(
        self,
        url: Optional[str],
        key: str,
        options: Optional[RetrieveOptions] = None,
    ) -> bytes:
        """Return the content at *url*, using the cache entry *key* when valid.

        See :meth:`try_retrieve` for the lookup rules.

        Returns:
            The raw payload bytes.

        Raises:
            MissingUrlError: If a fetch or refresh is needed but no URL is known.
            FetchError: If the HTTP fetch fails.
            FilesystemError: If a cache file cannot be read or written.
        """
        return self.try_retrieve(url, key, options).unwrap()

    def retrieve_by_key(self, key: str, options: Optional[RetrieveOptions] = None) -> bytes:
        """Return the cached content for *key*.

        Only succeeds when *key* is validly cached, or when the cacher was
        created with ``store_urls=True`` and has fetched *key* before.

        Raises:
            MissingUrlError: If *key* is not cached, or is expired and its
                URL was not remembered.
        """
        return self.try_retrieve_by_key(key, options).unwrap()

    def retrieve_by_url(self, url: str, options: Optional[RetrieveOptions] = None) -> bytes:
        """Return the content at *url*, keyed by the MD5 digest of the URL."""
        return self.try_retrieve_by_url(url, options).unwrap()

    @staticmethod
    def key_for_url(url: str) -> str:
        """Derive the default cache key for *url* (128-bit MD5, hex encoded)."""
        return hashlib.md5(url.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------ #
    # Inspection and maintenance
    # ------------------------------------------------------------------ #

    def is_cached(self, key: str) -> bool:
        """Whether a committed entry exists for *key*, expired or not."""
        return self._store.exists(key)

    def is_expired(self, key: str, expiration: Optional[float]) -> bool:
        """Whether the entry for *key* is older than *expiration* seconds.

        Always ``False`` when *expiration* is ``None``.
        """
        if expiration is None:
            return False
        return self._store.age(key) > expiration

    def keys(self) -> list[str]:
        """Sorted keys of all committed entries."""
        return self._store.keys()

    def invalidate(self, key: str) -> None:
        """Remove the entry for *key*.

        The remembered URL (if any) is kept, so a later
        :meth:`retrieve_by_key` fetches the entry again.
        """
        self._store.remove(key)

    def clear(self) -> None:
        """Delete every cache file and forget all remembered URLs.

        The directory itself is removed and recreated empty.
        """
        self._store.wipe()
        if self._urls is not None:
            self._urls.clear()
        logger.debug("Cleared cache directory %s", self.cache_dir)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``directory`` (str path), ``entries`` (number
            of committed files), ``size_bytes``, ``store_urls`` and
            ``remembered_urls``.
        """
        return {
            "directory": str(self.cache_dir),
            "entries": len(self._store.keys()),
            "size_bytes": self._store.size(),
            "store_urls": self.store_urls,
            "remembered_urls": len(self._urls or {}),
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _download(self, url: str, key: str, show_progress: bool) -> None:
        """Fetch *url* into ``<key>.tmp`` and commit it onto ``<key>``."""
        progress = get_output().download_progress() if show_progress else None
        try:
            with self._store.writer(key) as fh:
                self._fetcher.fetch(
                    url,
                    fh,
                    on_progress=progress.update if progress is not None else None,
                )
        finally:
            if progress is not None:
                progress.finish()
