"""Local entity cache for mixr.

:class:`EntityCache` keeps every entity the client has fetched, keyed by id,
plus the most recent list view, and mirrors both to a durable snapshot.
:class:`RecipeCache` binds it to :class:`~mixr.models.Recipe`.

The snapshot backend is pluggable through
:class:`~mixr.store.storage.SnapshotStorage`; see
:func:`~mixr.config.create_storage` for how the configured backend is built.
"""

from mixr.store.entity_cache import (
    RECIPE_SNAPSHOT_NAME,
    EntityCache,
    RecipeCache,
    SnapshotFormatError,
    decode_snapshot,
    encode_snapshot,
)
from mixr.store.storage import DiskCacheStorage, FileStorage, MemoryStorage, SnapshotStorage

__all__ = [
    "RECIPE_SNAPSHOT_NAME",
    "DiskCacheStorage",
    "EntityCache",
    "FileStorage",
    "MemoryStorage",
    "RecipeCache",
    "SnapshotFormatError",
    "SnapshotStorage",
    "decode_snapshot",
    "encode_snapshot",
]
