"""Durable snapshot storage for the entity cache.

The cache only needs a narrow "blob by name" facility, described by the
:class:`SnapshotStorage` protocol: ``get``, ``set`` and ``delete`` of a
string value under a fixed name.  Three implementations ship with mixr:

* :class:`DiskCacheStorage` -- a :mod:`diskcache` directory (the default,
  under the XDG cache dir).
* :class:`FileStorage` -- one JSON file per name, written atomically.
* :class:`MemoryStorage` -- a plain dict, for headless use and tests.

Implementations are allowed to raise; :class:`~mixr.store.EntityCache`
catches and logs storage failures so they never break the in-memory state.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Protocol

import diskcache

from mixr.config import atomic_write

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]")


class SnapshotStorage(Protocol):
    """Structural type of a snapshot backend."""

    def get(self, name: str) -> Optional[str]:
        """Return the blob stored under *name*, or ``None``."""
        ...

    def set(self, name: str, value: str) -> None:
        """Store *value* under *name*, replacing any previous blob."""
        ...

    def delete(self, name: str) -> None:
        """Remove the blob under *name*.  Missing names are not an error."""
        ...


class MemoryStorage:
    """Process-local storage.  Survives cache instances, not restarts."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        return self._blobs.get(name)

    def set(self, name: str, value: str) -> None:
        self._blobs[name] = value

    def delete(self, name: str) -> None:
        self._blobs.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._blobs


class FileStorage:
    """One ``<name>.json`` file per blob inside *directory*.

    Writes go through :func:`~mixr.config.atomic_write` (temp file, fsync,
    rename) so a crash mid-write leaves the previous snapshot intact.

    Args:
        directory: Directory holding the snapshot files.  Created on first
            write.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        """The file backing *name*."""
        return self._directory / f"{_SAFE_NAME.sub('_', name)}.json"

    def get(self, name: str) -> Optional[str]:
        path = self.path_for(name)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, name: str, value: str) -> None:
        atomic_write(self.path_for(name), value)

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        if path.is_file():
            path.unlink()


class DiskCacheStorage:
    """Snapshot blobs in a :class:`diskcache.Cache` directory, without expiry.

    Args:
        directory: Root directory.  A ``snapshots/`` subdirectory is created
            inside it.

    Example::

        storage = DiskCacheStorage(get_cache_dir())
        cache = RecipeCache(storage)
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) / "snapshots"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        return self._directory

    def get(self, name: str) -> Optional[str]:
        value = self._cache.get(name)
        return value if isinstance(value, str) else None

    def set(self, name: str, value: str) -> None:
        self._cache.set(name, value)

    def delete(self, name: str) -> None:
        self._cache.delete(name)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
