"""Streaming HTTP GET with progress reporting.

:class:`Fetcher` wraps :class:`httpx.Client` with the settings from
:class:`~simplecache.models.RequestConfig`:

- **Timeouts** -- a dedicated connect timeout (15 s by default) and an
  overall read/write timeout.
- **Streaming** -- the body is copied chunk by chunk into a caller-supplied
  binary file handle instead of being buffered in memory.
- **Progress** -- an optional ``on_progress(downloaded, total)`` callback
  is invoked after every chunk; ``total`` is ``0`` when the server did not
  send a ``Content-Length``.
- **Error mapping** -- transport errors, timeouts and non-2xx responses
  raise :class:`~simplecache.exceptions.FetchError`.

Fetches are never retried; callers re-invoke on failure.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Callable, Optional

import httpx

from simplecache import __version__
from simplecache.exceptions import FetchError, FilesystemError
from simplecache.models import RequestConfig

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
"""Signature of progress callbacks: ``(bytes_downloaded, total_bytes)``."""


class Fetcher:
    """Blocking HTTP fetcher for cache misses.

    The underlying :class:`httpx.Client` is created lazily on the first
    fetch and reused afterwards.  Use the fetcher as a context manager, or
    call :meth:`close`, to release the connection pool.

    Args:
        config: Timeout, TLS and User-Agent settings.  Defaults to
            :class:`~simplecache.models.RequestConfig` defaults.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with Fetcher(RequestConfig(connect_timeout=5)) as fetcher:
            with open("/tmp/out", "wb") as fh:
                size = fetcher.fetch("https://example.com/", fh)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def config(self) -> RequestConfig:
        """The request settings in effect."""
        return self._config

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client, if one was opened."""
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def fetch(
        self,
        url: str,
        sink: BinaryIO,
        on_progress: Optional[ProgressCallback] = None,
    ) -> int:
        """GET *url* and stream the response body into *sink*.

        Args:
            url: Absolute URL to fetch.
            sink: Binary file handle receiving the body.
            on_progress: Called as ``on_progress(downloaded, total)`` once
                before the first chunk and after every chunk.

        Returns:
            Number of body bytes written to *sink*.

        Raises:
            FetchError: On timeout, network failure, an invalid URL, or a
                non-2xx status code.
            FilesystemError: If writing to *sink* fails.
        """
        client = self._get_client()
        written = 0
        logger.debug("Fetching %s", url)
        try:
            with client.stream("GET", url) as response:
                if not response.is_success:
                    raise FetchError(
                        f"HTTP {response.status_code} fetching {url}",
                        url=url,
                        status_code=response.status_code,
                    )
                total = _content_length(response)
                if on_progress is not None:
                    on_progress(0, total)
                for chunk in response.iter_bytes():
                    _write_chunk(sink, chunk)
                    written += len(chunk)
                    if on_progress is not None:
                        on_progress(response.num_bytes_downloaded, total)
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching {url}: {exc}", url=url) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

        logger.debug("Fetched %d bytes from %s", written, url)
        return written

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            config = self._config
            self._client = httpx.Client(
                timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout),
                verify=config.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": config.user_agent or f"simplecache/{__version__}"},
                transport=self._transport,
            )
        return self._client


def _content_length(response: httpx.Response) -> int:
    """Return the declared body size, or ``0`` when absent or malformed."""
    raw = response.headers.get("content-length")
    if raw is None:
        return 0
    try:
        return max(int(raw), 0)
    except ValueError:
        return 0


def _write_chunk(sink: BinaryIO, chunk: bytes) -> None:
    try:
        sink.write(chunk)
    except OSError as exc:
        raise FilesystemError(f"Cannot write downloaded data: {exc}") from exc
