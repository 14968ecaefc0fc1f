"""Integration tests for the simplecache command line.

Drives the real Typer application through :class:`typer.testing.CliRunner`
with the HTTP layer swapped for the fake origin from ``conftest.py``, and
verifies side effects on the cache directory.
"""

from __future__ import annotations

import hashlib
import json
import os
import sys
import time
from pathlib import Path

import pytest
from typer.testing import CliRunner

from simplecache.app import _write_crash_log, app, main
from simplecache.config import get_data_dir, load_global_config, save_global_config
from simplecache.exceptions import FetchError, InvalidUsageError, MissingUrlError
from simplecache.exit_codes import EXIT_FETCH_ERROR, EXIT_FILESYSTEM_ERROR, EXIT_MISSING_URL
from simplecache.models import GlobalConfig


URL = "http://nothing.com/"


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cache_dir(isolated_config: Path) -> Path:
    return isolated_config / "pages"


@pytest.fixture(autouse=True)
def _route_to_origin(monkeypatch: pytest.MonkeyPatch, origin) -> None:
    """Make every CLI-built cacher fetch from the fake origin."""
    monkeypatch.setattr("simplecache.commands.Fetcher", lambda config=None: origin.fetcher())
    monkeypatch.setattr("simplecache.app._setup_signal_handlers", lambda: None)


def _invoke(runner: CliRunner, cache_dir: Path, *args: str):
    return runner.invoke(app, ["--cache-dir", str(cache_dir), *args])


# ---------------------------------------------------------------------------
# get / key
# ---------------------------------------------------------------------------


class TestGet:
    def test_prints_payload(self, runner: CliRunner, cache_dir: Path) -> None:
        result = _invoke(runner, cache_dir, "get", URL)
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"content"

    def test_uses_md5_key_by_default(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL)
        key = hashlib.md5(URL.encode()).hexdigest()
        assert (cache_dir / key).read_bytes() == b"content"

    def test_explicit_key(self, runner: CliRunner, cache_dir: Path) -> None:
        result = _invoke(runner, cache_dir, "get", URL, "--key", "home")
        assert result.exit_code == 0, result.output
        assert (cache_dir / "home").read_bytes() == b"content"

    def test_second_call_served_from_disk(self, runner: CliRunner, cache_dir: Path, origin) -> None:
        _invoke(runner, cache_dir, "get", URL)
        result = _invoke(runner, cache_dir, "get", URL)
        assert result.stdout_bytes == b"content"
        assert origin.count() == 1

    def test_expiration_refreshes(self, runner: CliRunner, cache_dir: Path, origin) -> None:
        _invoke(runner, cache_dir, "get", URL, "--key", "home")
        stamp = time.time() - 3600
        os.utime(cache_dir / "home", (stamp, stamp))
        result = _invoke(runner, cache_dir, "get", URL, "--key", "home", "-e", "100")
        assert result.stdout_bytes == b"content_new"
        assert origin.count() == 2

    def test_progress_flag(self, runner: CliRunner, cache_dir: Path) -> None:
        result = _invoke(runner, cache_dir, "get", URL, "--progress")
        assert result.exit_code == 0, result.output
        assert "100.00%" in result.output

    def test_fetch_error(self, runner: CliRunner, cache_dir: Path, origin) -> None:
        origin.status_code = 500
        result = _invoke(runner, cache_dir, "get", URL)
        assert isinstance(result.exception, FetchError)

    def test_invalid_key(self, runner: CliRunner, cache_dir: Path) -> None:
        result = _invoke(runner, cache_dir, "get", URL, "--key", "../escape")
        assert isinstance(result.exception, InvalidUsageError)

    def test_env_cache_dir(
        self, runner: CliRunner, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = isolated_config / "from-env"
        monkeypatch.setenv("SIMPLECACHE_CACHE_DIR", str(target))
        result = runner.invoke(app, ["get", URL, "--key", "k"])
        assert result.exit_code == 0, result.output
        assert (target / "k").is_file()


class TestKey:
    def test_cached_key(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL, "--key", "home")
        result = _invoke(runner, cache_dir, "key", "home")
        assert result.exit_code == 0, result.output
        assert result.stdout_bytes == b"content"

    def test_unknown_key(self, runner: CliRunner, cache_dir: Path) -> None:
        result = _invoke(runner, cache_dir, "key", "missing")
        assert isinstance(result.exception, MissingUrlError)


# ---------------------------------------------------------------------------
# Maintenance commands
# ---------------------------------------------------------------------------


class TestMaintenance:
    def test_clear_with_force(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL)
        result = _invoke(runner, cache_dir, "clear", "--force")
        assert result.exit_code == 0, result.output
        assert cache_dir.is_dir()
        assert list(cache_dir.iterdir()) == []

    def test_clear_declined(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL)
        result = runner.invoke(app, ["--cache-dir", str(cache_dir), "clear"], input="n\n")
        assert result.exit_code == 0
        assert len(list(cache_dir.iterdir())) == 1

    def test_invalidate(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL, "--key", "a")
        result = _invoke(runner, cache_dir, "invalidate", "a")
        assert result.exit_code == 0, result.output
        assert not (cache_dir / "a").exists()

    def test_keys(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL, "--key", "b")
        _invoke(runner, cache_dir, "get", URL, "--key", "a")
        result = runner.invoke(app, ["--cache-dir", str(cache_dir), "--plain", "keys"])
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == ["a", "b"]

    def test_stats_json(self, runner: CliRunner, cache_dir: Path) -> None:
        _invoke(runner, cache_dir, "get", URL, "--key", "a")
        result = runner.invoke(app, ["--cache-dir", str(cache_dir), "--json", "stats"])
        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        assert stats["entries"] == 1
        assert stats["size_bytes"] == len(b"content")
        assert stats["directory"] == str(cache_dir.resolve())


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_and_show(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "expiration", "3600"])
        assert result.exit_code == 0, result.output
        assert load_global_config().expiration == 3600

        result = runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0, result.output
        assert '"expiration": 3600.0' in result.stdout

    def test_set_nested_and_bool(self, runner: CliRunner, isolated_config: Path) -> None:
        runner.invoke(app, ["config", "set", "request.connect_timeout", "5"])
        runner.invoke(app, ["config", "set", "store_urls", "true"])
        config = load_global_config()
        assert config.request.connect_timeout == 5
        assert config.store_urls is True

    def test_set_unknown_key(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "nope", "1"])
        assert result.exit_code == 2

    def test_set_invalid_number(self, runner: CliRunner, isolated_config: Path) -> None:
        result = runner.invoke(app, ["config", "set", "request.timeout", "soon"])
        assert result.exit_code == 2

    def test_reset(self, runner: CliRunner, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(store_urls=True))
        result = runner.invoke(app, ["config", "reset", "--force"])
        assert result.exit_code == 0, result.output
        assert load_global_config() == GlobalConfig()

    def test_configured_cache_dir_used(self, runner: CliRunner, isolated_config: Path) -> None:
        target = isolated_config / "configured"
        save_global_config(GlobalConfig(cache_dir=str(target)))
        result = runner.invoke(app, ["get", URL, "--key", "k"])
        assert result.exit_code == 0, result.output
        assert (target / "k").is_file()


# ---------------------------------------------------------------------------
# Entry point error mapping
# ---------------------------------------------------------------------------


class TestMain:
    def test_missing_url_exit_code(
        self, isolated_config: Path, cache_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            sys, "argv", ["simplecache", "--no-color", "--cache-dir", str(cache_dir), "key", "missing"]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_MISSING_URL

    def test_fetch_error_exit_code(
        self, isolated_config: Path, cache_dir: Path, origin, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        origin.status_code = 502
        monkeypatch.setattr(
            sys, "argv", ["simplecache", "--no-color", "--cache-dir", str(cache_dir), "get", URL]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_FETCH_ERROR

    def test_filesystem_error_exit_code(
        self, isolated_config: Path, cache_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            sys,
            "argv",
            ["simplecache", "--no-color", "--cache-dir", str(cache_dir), "get", URL, "-k", "k" * 300],
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == EXIT_FILESYSTEM_ERROR

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "simplecache" in result.output

    @pytest.mark.parametrize("xdg", [True, False])
    def test_crash_log_location(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, xdg: bool
    ) -> None:
        monkeypatch.setattr("simplecache.config._is_xdg_platform", lambda: xdg)
        monkeypatch.setattr(Path, "home", lambda: isolated_config)
        log_path = Path(_write_crash_log(RuntimeError("boom")))
        assert log_path.parent == get_data_dir() / "logs"
        assert log_path.parent.parent.name != "logs"
        assert log_path.is_file()
