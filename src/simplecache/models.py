"""Canonical Pydantic models shared across all simplecache modules.

The models fall into two groups:

**Option and configuration models** -- passed by callers or serialised as
JSON in the user's config directory:
    :class:`CacherOptions`, :class:`RetrieveOptions`, :class:`RequestConfig`,
    :class:`OutputConfig`, and :class:`GlobalConfig`.

**Result models** -- produced by :class:`~simplecache.cache.Cacher`:
    :class:`RetrieveStatus` and :class:`RetrieveResult`.

All models use Pydantic v2.  Option models reject unknown fields so that a
misspelled option (``expires=`` instead of ``expiration=``) fails loudly
instead of being ignored.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from simplecache.exceptions import MissingUrlError


# --- Cacher options ---


class CacherOptions(BaseModel):
    """Construction-time options for :class:`~simplecache.cache.Cacher`.

    ``store_urls`` makes the cacher remember the URL behind every key it
    fetches, so that an expired entry can later be refreshed through
    :meth:`~simplecache.cache.Cacher.retrieve_by_key` without re-supplying
    the URL.  The mapping lives in memory only and dies with the instance.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    store_urls: bool = Field(
        default=False, description="Remember key -> URL mappings for later refresh"
    )


class RetrieveOptions(BaseModel):
    """Per-call options for the ``retrieve*`` family.

    Example::

        RetrieveOptions(show_progress=True, expiration=3600)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    show_progress: bool = Field(
        default=False, description="Draw a download progress bar on stderr"
    )
    expiration: Optional[float] = Field(
        default=None,
        gt=0,
        description="Maximum entry age in seconds; None means entries never expire",
    )


# --- Persistent configuration ---


class RequestConfig(BaseModel):
    """HTTP settings used by :class:`~simplecache.client.Fetcher`."""

    connect_timeout: float = Field(default=15, description="Connect timeout in seconds")
    timeout: float = Field(default=30, description="Read/write timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    user_agent: Optional[str] = Field(
        default=None, description="User-Agent header; defaults to simplecache/<version>"
    )


class OutputConfig(BaseModel):
    """Default output preferences stored in :class:`GlobalConfig`."""

    show_progress: bool = Field(
        default=False, description="Show download progress unless --no-progress is given"
    )
    no_color: bool = Field(default=False, description="Disable coloured diagnostics")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/simplecache/config.json``.

    Loaded and saved by :func:`~simplecache.config.load_global_config` and
    :func:`~simplecache.config.save_global_config`.  ``cache_dir`` can be
    overridden by the ``SIMPLECACHE_CACHE_DIR`` environment variable or the
    ``--cache-dir`` CLI flag; see :func:`~simplecache.config.resolve_cache_dir`.
    """

    cache_dir: Optional[str] = None
    store_urls: bool = False
    expiration: Optional[float] = Field(default=None, gt=0)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Results ---


class RetrieveStatus(str, enum.Enum):
    """Outcome of a single retrieve call."""

    HIT = "hit"
    FETCHED = "fetched"
    REFRESHED = "refreshed"
    MISSING_URL = "missing_url"


class RetrieveResult(BaseModel):
    """Tagged outcome of :meth:`~simplecache.cache.Cacher.try_retrieve`.

    Exactly one of two shapes is produced:

    * success -- ``status`` is ``HIT``, ``FETCHED`` or ``REFRESHED`` and
      ``content`` holds the payload bytes;
    * missing URL -- ``status`` is ``MISSING_URL``, ``content`` is ``None``
      and ``message`` explains whether the entry was absent or expired.

    Fetch and filesystem failures are not represented here; they raise.
    """

    key: str
    status: RetrieveStatus
    url: Optional[str] = None
    content: Optional[bytes] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Whether the result carries content."""
        return self.status is not RetrieveStatus.MISSING_URL

    @property
    def from_cache(self) -> bool:
        """Whether the content was served from disk without a fetch."""
        return self.status is RetrieveStatus.HIT

    def unwrap(self) -> bytes:
        """Return the content or raise :class:`MissingUrlError`.

        Returns:
            The payload bytes.

        Raises:
            MissingUrlError: If the result has status ``MISSING_URL``.
        """
        if not self.ok:
            raise MissingUrlError(self.message or "No URL known", key=self.key)
        return self.content or b""
