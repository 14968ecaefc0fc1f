"""Tests for the streaming HTTP fetcher."""

from __future__ import annotations

import io

import httpx
import pytest

from simplecache import __version__
from simplecache.client import Fetcher
from simplecache.exceptions import FetchError, FilesystemError
from simplecache.models import RequestConfig


URL = "https://api.example.com/data"


def _fetcher(handler, config: RequestConfig | None = None) -> Fetcher:
    return Fetcher(config, transport=httpx.MockTransport(handler))


class TestFetch:
    def test_streams_body_into_sink(self) -> None:
        sink = io.BytesIO()
        with _fetcher(lambda request: httpx.Response(200, content=b"hello")) as fetcher:
            written = fetcher.fetch(URL, sink)
        assert written == 5
        assert sink.getvalue() == b"hello"

    def test_sends_get_with_user_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"")

        with _fetcher(handler) as fetcher:
            fetcher.fetch(URL, io.BytesIO())
        assert seen[0].method == "GET"
        assert seen[0].headers["user-agent"] == f"simplecache/{__version__}"

    def test_custom_user_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"")

        with _fetcher(handler, RequestConfig(user_agent="bot/1.0")) as fetcher:
            fetcher.fetch(URL, io.BytesIO())
        assert seen[0].headers["user-agent"] == "bot/1.0"

    def test_follows_redirects(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"location": "https://api.example.com/new"})
            return httpx.Response(200, content=b"moved")

        sink = io.BytesIO()
        with _fetcher(handler) as fetcher:
            fetcher.fetch("https://api.example.com/old", sink)
        assert sink.getvalue() == b"moved"

    def test_timeouts_configured(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200))
        client = fetcher._get_client()
        assert client.timeout.connect == 15
        assert client.timeout.read == 30
        fetcher.close()


class TestProgress:
    def test_reports_downloaded_and_total(self) -> None:
        calls: list[tuple[int, int]] = []
        with _fetcher(lambda request: httpx.Response(200, content=b"x" * 10)) as fetcher:
            fetcher.fetch(URL, io.BytesIO(), on_progress=lambda d, t: calls.append((d, t)))
        assert calls[0] == (0, 10)
        assert calls[-1] == (10, 10)

    def test_unknown_total_reported_as_zero(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=iter([b"ab", b"cd"]))

        calls: list[tuple[int, int]] = []
        with _fetcher(handler) as fetcher:
            fetcher.fetch(URL, io.BytesIO(), on_progress=lambda d, t: calls.append((d, t)))
        assert all(total == 0 for _, total in calls)


class TestErrors:
    @pytest.mark.parametrize("status", [301, 400, 404, 500, 503])
    def test_non_success_status(self, status: int) -> None:
        sink = io.BytesIO()
        with _fetcher(lambda request: httpx.Response(status, content=b"nope")) as fetcher:
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch(URL, sink)
        assert exc_info.value.status_code == status
        assert exc_info.value.url == URL
        assert sink.getvalue() == b""

    def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _fetcher(handler) as fetcher:
            with pytest.raises(FetchError, match="connection refused"):
                fetcher.fetch(URL, io.BytesIO())

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with _fetcher(handler) as fetcher:
            with pytest.raises(FetchError, match="Timed out"):
                fetcher.fetch(URL, io.BytesIO())

    def test_sink_write_failure(self) -> None:
        class BrokenSink(io.BytesIO):
            def write(self, data):  # type: ignore[override]
                raise OSError("disk full")

        with _fetcher(lambda request: httpx.Response(200, content=b"data")) as fetcher:
            with pytest.raises(FilesystemError, match="disk full"):
                fetcher.fetch(URL, BrokenSink())


class TestLifecycle:
    def test_client_created_lazily(self) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(200))
        assert fetcher._client is None
        fetcher.fetch(URL, io.BytesIO())
        assert fetcher._client is not None
        fetcher.close()
        assert fetcher._client is None

    def test_close_without_fetch(self) -> None:
        Fetcher().close()
