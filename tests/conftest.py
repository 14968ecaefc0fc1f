"""Shared test fixtures for simplecache.

Provides a fake HTTP origin built on :class:`httpx.MockTransport`, cachers
wired to it, isolated config environments, and helpers for ageing cache
files.  These fixtures are automatically discovered by pytest and available
to all test modules without explicit imports.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Optional

import httpx
import pytest

from simplecache.cache import Cacher
from simplecache.client import Fetcher
from simplecache.models import CacherOptions
from simplecache.output import OutputFormat, OutputManager, reset_output, set_output


URL = "http://nothing.com/"
KEY = "nothing"
CONTENT = b"content"
CONTENT_NEW = b"content_new"


# ---------------------------------------------------------------------------
# Fake origin server
# ---------------------------------------------------------------------------


class FakeOrigin:
    """Request handler for :class:`httpx.MockTransport`.

    Answers the n-th request with ``bodies[n]`` (the last body repeats once
    the list is exhausted) and records every request it sees.

    Args:
        bodies: Response bodies in the order they are served.
        status_code: Status code for every response.
    """

    def __init__(self, bodies: Optional[list[bytes]] = None, status_code: int = 200) -> None:
        self.bodies = bodies if bodies is not None else [CONTENT, CONTENT_NEW]
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.bodies)) - 1
        return httpx.Response(self.status_code, content=self.bodies[index])

    def count(self, url: str = URL) -> int:
        """Number of requests received for *url*."""
        return sum(1 for r in self.requests if str(r.url) == url)

    def fetcher(self) -> Fetcher:
        """A :class:`Fetcher` routed to this origin."""
        return Fetcher(transport=httpx.MockTransport(self))


def age_entry(cacher: Cacher, key: str, seconds: float) -> None:
    """Backdate the cache file for *key* by *seconds*."""
    stamp = time.time() - seconds
    os.utime(cacher.cache_dir / key, (stamp, stamp))


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When CliRunner or capsys redirects those streams during
    a test, the cached references become stale.  Resetting forces a fresh
    manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Cacher fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def origin() -> FakeOrigin:
    """A fake origin serving ``content`` then ``content_new``."""
    return FakeOrigin()


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    """A not-yet-existing cache directory under tmp_path."""
    return tmp_path / "simple_cache_test"


@pytest.fixture
def cacher(cache_path: Path, origin: FakeOrigin) -> Cacher:
    """A cacher without URL memory, fetching from :func:`origin`."""
    c = Cacher(cache_path, fetcher=origin.fetcher())
    yield c
    c.close()


@pytest.fixture
def url_cacher(cache_path: Path, origin: FakeOrigin) -> Cacher:
    """A cacher with ``store_urls=True``, fetching from :func:`origin`."""
    c = Cacher(cache_path, CacherOptions(store_urls=True), fetcher=origin.fetcher())
    yield c
    c.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config, clears ``SIMPLECACHE_CACHE_DIR``, and forces the XDG layout.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("SIMPLECACHE_CACHE_DIR", raising=False)
    monkeypatch.setattr("simplecache.config._is_xdg_platform", lambda: True)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format, colourless, non-quiet OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def backdate():
    """Return :func:`age_entry` for ageing cache files inside tests."""
    return age_entry


@pytest.fixture
def origin_factory():
    """Return the :class:`FakeOrigin` class for tests needing custom bodies or status."""
    return FakeOrigin
