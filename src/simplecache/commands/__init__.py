"""Built-in CLI sub-commands for simplecache.

Each module defines Typer commands that are registered on the root
application in :mod:`simplecache.app`.  :func:`open_cacher` builds
the :class:`~simplecache.cache.Cacher` every command works against from the
global config and the ``--cache-dir`` flag stored in the Typer context.
"""

from __future__ import annotations

import typer

from simplecache.cache import Cacher
from simplecache.client import Fetcher
from simplecache.config import load_global_config, resolve_cache_dir
from simplecache.models import CacherOptions, GlobalConfig
from simplecache.output import debug


def context_config(ctx: typer.Context) -> GlobalConfig:
    """Return the global config, loading it once per invocation."""
    ctx.ensure_object(dict)
    config = ctx.obj.get("config")
    if config is None:
        config = load_global_config()
        ctx.obj["config"] = config
    return config


def open_cacher(ctx: typer.Context) -> Cacher:
    """Build a :class:`Cacher` for the current invocation.

    The cache directory follows :func:`~simplecache.config.resolve_cache_dir`;
    ``store_urls`` and request settings come from the global config.
    """
    config = context_config(ctx)
    cache_dir = resolve_cache_dir(ctx.obj.get("cache_dir"), config)
    debug(f"Using cache directory: {cache_dir}")
    return Cacher(
        cache_dir,
        CacherOptions(store_urls=config.store_urls),
        fetcher=Fetcher(config.request),
    )
