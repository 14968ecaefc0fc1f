"""HTTP client module for simplecache.

Provides :class:`Fetcher`, a thin blocking wrapper around
:class:`httpx.Client` that streams a response body into a file handle and
reports download progress.  Failures of any kind surface as
:class:`~simplecache.exceptions.FetchError`; nothing is retried.

Example::

    from simplecache.client import Fetcher

    with Fetcher() as fetcher, open("page.html", "wb") as fh:
        fetcher.fetch("https://example.com/", fh)
"""

from simplecache.client.fetcher import Fetcher, ProgressCallback

__all__ = ["Fetcher", "ProgressCallback"]
