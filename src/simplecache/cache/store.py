"""Flat-directory key/value file store with atomic commits.

Every cache entry is a single file named exactly after its key inside one
directory.  The file's modification time is the entry timestamp; nothing
else is persisted.  New content is written to ``<key>.tmp`` first and then
renamed onto ``<key>`` with :func:`os.replace`, so a reader either sees the
old entry, no entry, or the complete new one, never a partial write.

All :class:`OSError` failures are re-raised as
:class:`~simplecache.exceptions.FilesystemError` (or
:class:`~simplecache.exceptions.DirectoryCreationError` while preparing the
directory) with the original error chained.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import time
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from simplecache.exceptions import (
    DirectoryCreationError,
    FilesystemError,
    InvalidUsageError,
)

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"
"""Suffix of in-flight download files; such files are never valid entries."""


class CacheStore:
    """A directory of cache files addressed by opaque string keys.

    Args:
        directory: Location of the store.  ``~`` is expanded and the path is
            made absolute.  The directory and any missing ancestors are
            created immediately.

    Raises:
        DirectoryCreationError: If the directory cannot be created.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser().resolve()
        self._ensure_directory()

    @property
    def directory(self) -> Path:
        """Absolute path of the store directory."""
        return self._directory

    # ------------------------------------------------------------------ #
    # Paths
    # ------------------------------------------------------------------ #

    def path(self, key: str) -> Path:
        """Return the canonical file path for *key*."""
        validate_key(key)
        return self._directory / key

    def tmp_path(self, key: str) -> Path:
        """Return the temporary download path for *key*."""
        validate_key(key)
        return self._directory / f"{key}{TMP_SUFFIX}"

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def exists(self, key: str) -> bool:
        """Whether a committed entry exists for *key*.

        Raises:
            FilesystemError: If the entry cannot be stat'ed for a reason other
                than being absent.
        """
        path = self.path(key)
        try:
            return stat.S_ISREG(path.stat().st_mode)
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as exc:
            raise FilesystemError(f"Cannot stat cache file {path}: {exc}") from exc

    def age(self, key: str) -> float:
        """Seconds elapsed since the entry for *key* was last written.

        Raises:
            FilesystemError: If the entry cannot be stat'ed.
        """
        path = self.path(key)
        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            raise FilesystemError(f"Cannot stat cache file {path}: {exc}") from exc
        return time.time() - mtime

    def keys(self) -> list[str]:
        """Return the sorted keys of all committed entries.

        In-flight ``.tmp`` files are skipped.
        """
        try:
            return sorted(
                p.name
                for p in self._directory.iterdir()
                if p.is_file() and not p.name.endswith(TMP_SUFFIX)
            )
        except OSError as exc:
            raise FilesystemError(
                f"Cannot list cache directory {self._directory}: {exc}"
            ) from exc

    def size(self) -> int:
        """Total size in bytes of all committed entries."""
        total = 0
        for key in self.keys():
            try:
                total += (self._directory / key).stat().st_size
            except FileNotFoundError:
                # Removed between listing and stat.
                continue
            except OSError as exc:
                raise FilesystemError(f"Cannot stat cache file {key}: {exc}") from exc
        return total

    # ------------------------------------------------------------------ #
    # Reads and writes
    # ------------------------------------------------------------------ #

    def read(self, key: str) -> bytes:
        """Return the raw bytes stored under *key*.

        Raises:
            FilesystemError: If the file is missing or unreadable.
        """
        path = self.path(key)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise FilesystemError(f"Cannot read cache file {path}: {exc}") from exc

    @contextmanager
    def writer(self, key: str) -> Iterator[BinaryIO]:
        """Open ``<key>.tmp`` for writing and commit it onto ``<key>`` on exit.

        The rename only happens when the ``with`` block completes normally.
        If the block raises, the temp file is removed, the existing entry
        (if any) is left untouched and the exception propagates unchanged.

        Example::

            with store.writer("report") as fh:
                fh.write(payload)

        Raises:
            FilesystemError: If the temp file cannot be opened or renamed.
        """
        tmp_path = self.tmp_path(key)
        final_path = self.path(key)
        try:
            fh = open(tmp_path, "wb")
        except OSError as exc:
            raise FilesystemError(f"Cannot open temp file {tmp_path}: {exc}") from exc

        try:
            with fh:
                yield fh
        except BaseException:
            self._discard(tmp_path)
            raise

        try:
            os.replace(tmp_path, final_path)
        except OSError as exc:
            self._discard(tmp_path)
            raise FilesystemError(
                f"Cannot commit {tmp_path} to {final_path}: {exc}"
            ) from exc
        logger.debug("Committed cache entry %s", final_path)

    def write(self, key: str, data: bytes) -> None:
        """Atomically store *data* under *key*."""
        with self.writer(key) as fh:
            try:
                fh.write(data)
            except OSError as exc:
                raise FilesystemError(f"Cannot write cache entry {key}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Removal
    # ------------------------------------------------------------------ #

    def remove(self, key: str) -> None:
        """Delete the entry for *key*.  A missing entry is not an error."""
        path = self.path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Cannot remove cache file {path}: {exc}") from exc

    def wipe(self) -> None:
        """Remove the whole directory recursively, then recreate it empty."""
        try:
            shutil.rmtree(self._directory)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise FilesystemError(
                f"Cannot remove cache directory {self._directory}: {exc}"
            ) from exc
        self._ensure_directory()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_directory(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreationError(
                f"Cannot create cache directory {self._directory}: {exc}"
            ) from exc

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        try:
            tmp_path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove temp file %s", tmp_path)


def validate_key(key: str) -> None:
    """Reject keys that cannot safely be used as a single file name.

    Raises:
        InvalidUsageError: If *key* is empty, is ``.`` or ``..``, contains a
            path separator or NUL byte, or ends with the temp-file suffix.
    """
    if not key:
        raise InvalidUsageError("Cache key must be a non-empty string")
    if key in (".", ".."):
        raise InvalidUsageError(f"Cache key {key!r} is not a valid file name")
    separators = {"/", "\0", os.sep}
    if os.altsep:
        separators.add(os.altsep)
    if any(sep in key for sep in separators):
        raise InvalidUsageError(f"Cache key {key!r} must not contain path separators")
    if key.endswith(TMP_SUFFIX):
        raise InvalidUsageError(f"Cache key {key!r} must not end with {TMP_SUFFIX!r}")
