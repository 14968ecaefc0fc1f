"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for simplecache:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.simplecache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~simplecache.models.GlobalConfig`
  JSON file storing defaults (cache directory, store_urls, expiration,
  request timeouts, output preferences).
* **Precedence resolution** -- :func:`resolve_cache_dir` picks the cache
  directory from the CLI flag, the ``SIMPLECACHE_CACHE_DIR`` environment
  variable, the config file, or the XDG default, in that order.

Config writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`), the same commit scheme the cache uses for its
entries.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from simplecache.exceptions import ConfigError
from simplecache.models import GlobalConfig

_APP_NAME = "simplecache"
_CONFIG_FILENAME = "config.json"

CACHE_DIR_ENV = "SIMPLECACHE_CACHE_DIR"
"""Environment variable overriding the configured cache directory."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/simplecache/`` (default ``~/.config/simplecache/``).
    On macOS/Windows: ``~/.simplecache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the default cache directory (not created here).

    On Linux/BSD: ``$XDG_CACHE_HOME/simplecache/`` (default ``~/.cache/simplecache/``).
    On macOS/Windows: ``~/.simplecache/cache/``.

    The :class:`~simplecache.cache.Cacher` creates the directory itself so
    that creation failures surface as
    :class:`~simplecache.exceptions.DirectoryCreationError`.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    return _fallback_base_dir() / "cache"


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/simplecache/`` (default ``~/.local/share/simplecache/``).
    On macOS/Windows: ``~/.simplecache/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  On any failure the
    temp file is cleaned up and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~simplecache.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_cache_dir(
    cli_cache_dir: Optional[str] = None,
    config: Optional[GlobalConfig] = None,
) -> Path:
    """Resolve the cache directory with full precedence chain.

    Precedence (high to low):
        1. CLI flag (``cli_cache_dir``)
        2. Environment variable ``SIMPLECACHE_CACHE_DIR``
        3. ``cache_dir`` in the global config
        4. :func:`get_cache_dir`

    Returns:
        The user-expanded cache directory path.
    """
    if cli_cache_dir:
        return Path(cli_cache_dir).expanduser()
    env_value = os.environ.get(CACHE_DIR_ENV)
    if env_value:
        return Path(env_value).expanduser()
    if config is not None and config.cache_dir:
        return Path(config.cache_dir).expanduser()
    return get_cache_dir()
