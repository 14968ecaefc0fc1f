"""Retrieval commands -- ``simplecache get`` and ``simplecache key``.

Both commands write the payload byte for byte to stdout so it can be piped
into other tools, and report cache hits, fetches and refreshes on stderr
in verbose mode.
"""

from __future__ import annotations

from typing import Optional

import typer

from simplecache.commands import context_config, open_cacher
from simplecache.models import RetrieveOptions, RetrieveResult
from simplecache.output import debug, print_bytes


def _retrieve_options(
    ctx: typer.Context,
    expiration: Optional[float],
    progress: Optional[bool],
) -> RetrieveOptions:
    """Merge CLI flags over the configured defaults."""
    config = context_config(ctx)
    return RetrieveOptions(
        show_progress=config.output.show_progress if progress is None else progress,
        expiration=config.expiration if expiration is None else expiration,
    )


def _emit(result: RetrieveResult) -> None:
    content = result.unwrap()
    debug(f"{result.status.value}: {result.key} ({len(content)} bytes)")
    print_bytes(content)


def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to retrieve."),
    key: Optional[str] = typer.Option(
        None, "--key", "-k", help="Cache key (defaults to the MD5 digest of the URL)."
    ),
    expiration: Optional[float] = typer.Option(
        None, "--expiration", "-e", min=0.001, help="Maximum entry age in seconds."
    ),
    progress: Optional[bool] = typer.Option(
        None, "--progress/--no-progress", help="Show download progress on stderr."
    ),
) -> None:
    """Print the contents of URL, served from the cache when valid.

    Example::

        simplecache get https://example.com/data.json
        simplecache get https://example.com/data.json --key data -e 3600
    """
    options = _retrieve_options(ctx, expiration, progress)
    with open_cacher(ctx) as cacher:
        if key is None:
            result = cacher.try_retrieve_by_url(url, options)
        else:
            result = cacher.try_retrieve(url, key, options)
    _emit(result)


def key_command(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key to look up."),
    expiration: Optional[float] = typer.Option(
        None, "--expiration", "-e", min=0.001, help="Maximum entry age in seconds."
    ),
) -> None:
    """Print the cached contents stored under KEY.

    Fails with exit code 4 when the key is not cached or has expired, since
    remembered URLs do not outlive a single process.

    Example::

        simplecache key data
    """
    options = _retrieve_options(ctx, expiration, False)
    with open_cacher(ctx) as cacher:
        result = cacher.try_retrieve_by_key(key, options)
    _emit(result)
