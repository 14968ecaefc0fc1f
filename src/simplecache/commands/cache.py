"""Cache maintenance commands -- ``clear``, ``invalidate``, ``stats``, ``keys``."""

from __future__ import annotations

import typer

from simplecache.commands import open_cacher
from simplecache.output import format_response, info, print_data, success


def clear_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete every cached entry.

    Example::

        simplecache clear --force
    """
    with open_cacher(ctx) as cacher:
        if not force:
            confirmed = typer.confirm(f"Remove all cached entries in {cacher.cache_dir}?")
            if not confirmed:
                info("Cancelled.")
                raise typer.Exit()
        cacher.clear()
        success(f"Cleared {cacher.cache_dir}")


def invalidate_command(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key to remove."),
) -> None:
    """Remove a single cached entry."""
    with open_cacher(ctx) as cacher:
        cacher.invalidate(key)
    success(f"Invalidated {key}")


def stats_command(ctx: typer.Context) -> None:
    """Show cache directory, entry count and total size."""
    with open_cacher(ctx) as cacher:
        format_response(cacher.stats())


def keys_command(ctx: typer.Context) -> None:
    """List cached keys, one per line."""
    with open_cacher(ctx) as cacher:
        for key in cacher.keys():
            print_data(key)
