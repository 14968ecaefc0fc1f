"""Disk-backed retrieve-through caching for simplecache.

This package provides :class:`Cacher`, which serves URL contents from a
flat directory of files and fetches them on a miss, and :class:`CacheStore`,
the file layer underneath it (one file per key, ``<key>.tmp`` plus
:func:`os.replace` for atomic commits, mtime-based age).
"""

from simplecache.cache.cacher import Cacher
from simplecache.cache.store import CacheStore

__all__ = ["Cacher", "CacheStore"]
