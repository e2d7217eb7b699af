"""In-memory entity cache with a durable snapshot.

:class:`EntityCache` is the single source of truth for "entities the client
has seen".  It holds two views of the same data:

* ``by_id`` -- id -> latest entity written for that id (last write wins);
* ``ordered_list`` -- the most recent list view, e.g. the current page of a
  paginated feed.

Every id in ``ordered_list`` has an identical entry in ``by_id`` once a
mutation returns.  The two write operations are deliberately asymmetric:

* :meth:`EntityCache.upsert_one` is incremental -- it replaces the entity
  in place if it is already listed, otherwise puts it at the front, and
  never drops anything;
* :meth:`EntityCache.upsert_many` treats its input as the authoritative
  list view and replaces ``ordered_list`` wholesale, while merging into
  ``by_id`` so earlier detail lookups stay available.

After each mutation the whole state is serialised and written to a
:class:`~mixr.store.storage.SnapshotStorage`.  The snapshot is read lazily
on first access.  Storage failures are logged and ignored: the in-memory
state is always authoritative for the running process.

Mutations build new containers and swap them in under a re-entrant lock,
so concurrent readers (threads or interleaved async tasks) never observe a
half-applied write.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel

from mixr.models import Recipe
from mixr.store.storage import MemoryStorage, SnapshotStorage

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1
RECIPE_SNAPSHOT_NAME = "mixr-recipe-storage"

E = TypeVar("E", bound=BaseModel)

Listener = Callable[[], None]


class SnapshotFormatError(ValueError):
    """Raised by :func:`decode_snapshot` for a blob it cannot restore."""


class EntityCache(Generic[E]):
    """Keyed store of entities with an ordered list view and a durable snapshot.

    Args:
        model: Pydantic model of the cached entities.  It must have an
            integer ``id`` field.
        storage: Snapshot backend.  Defaults to a private
            :class:`~mixr.store.storage.MemoryStorage`.
        name: Name of the snapshot blob inside *storage*.

    Example::

        cache = EntityCache(Recipe, FileStorage(tmp_dir), name="recipes")
        cache.upsert_many(page)
        cache.upsert_one(detail)
        assert cache.get_one(detail.id) == detail
    """

    def __init__(
        self,
        model: type[E],
        storage: Optional[SnapshotStorage] = None,
        name: str = RECIPE_SNAPSHOT_NAME,
    ) -> None:
        self._model = model
        self._storage: SnapshotStorage = storage if storage is not None else MemoryStorage()
        self._name = name
        self._lock = threading.RLock()
        self._by_id: dict[int, E] = {}
        self._ordered: list[E] = []
        self._restored = False
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def upsert_one(self, entity: E | Mapping[str, Any]) -> E:
        """Insert or update a single entity.

        The entity replaces any previous value for its id.  If the id is
        already in :attr:`ordered_list` it is replaced at the same position;
        otherwise it is inserted at index 0.

        Returns:
            The stored entity (validated into the model when a mapping was
            passed).
        """
        item = self._coerce(entity)
        with self._lock:
            self._ensure_restored()
            by_id = dict(self._by_id)
            by_id[item.id] = item  # type: ignore[attr-defined]

            ordered = list(self._ordered)
            index = _index_of(ordered, item.id)  # type: ignore[attr-defined]
            if index is None:
                ordered.insert(0, item)
            else:
                ordered[index] = item

            self._by_id, self._ordered = by_id, ordered
            self._persist()
        self._notify()
        return item

    def upsert_many(self, entities: Iterable[E | Mapping[str, Any]]) -> list[E]:
        """Merge *entities* into ``by_id`` and make them the new list view.

        Ids cached earlier but absent from *entities* stay in ``by_id``;
        only the list membership is replaced.

        Returns:
            The new :attr:`ordered_list`.
        """
        items = [self._coerce(entity) for entity in entities]
        with self._lock:
            self._ensure_restored()
            by_id = dict(self._by_id)
            for item in items:
                by_id[item.id] = item  # type: ignore[attr-defined]

            self._by_id, self._ordered = by_id, items
            self._persist()
        self._notify()
        return list(items)

    def clear(self) -> None:
        """Empty both views and erase the durable snapshot.  Idempotent."""
        with self._lock:
            self._by_id, self._ordered = {}, []
            self._restored = True
            try:
                self._storage.delete(self._name)
            except Exception as exc:
                logger.warning("Could not erase cache snapshot %r: %s", self._name, exc)
        self._notify()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_one(self, entity_id: int) -> Optional[E]:
        """Return the entity for *entity_id*, or ``None`` when not cached."""
        with self._lock:
            self._ensure_restored()
            return self._by_id.get(entity_id)

    def has_one(self, entity_id: int) -> bool:
        """Whether *entity_id* is present in ``by_id``."""
        with self._lock:
            self._ensure_restored()
            return entity_id in self._by_id

    @property
    def ordered_list(self) -> list[E]:
        """A copy of the current list view, in order."""
        with self._lock:
            self._ensure_restored()
            return list(self._ordered)

    @property
    def by_id(self) -> dict[int, E]:
        """A copy of the id -> entity mapping."""
        with self._lock:
            self._ensure_restored()
            return dict(self._by_id)

    def __len__(self) -> int:
        with self._lock:
            self._ensure_restored()
            return len(self._by_id)

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, int) and self.has_one(entity_id)

    # ------------------------------------------------------------------ #
    # Snapshot
    # ------------------------------------------------------------------ #

    @property
    def snapshot_name(self) -> str:
        return self._name

    def snapshot(self) -> str:
        """Serialise the current state to the snapshot format."""
        with self._lock:
            self._ensure_restored()
            return encode_snapshot(self._by_id, self._ordered)

    def restore(self) -> bool:
        """Discard in-memory state and reload it from storage.

        Returns:
            ``True`` if a snapshot was found and loaded, ``False`` if the
            cache is now empty (no snapshot, or an unreadable one).
        """
        with self._lock:
            self._restored = False
            self._by_id, self._ordered = {}, []
            return self._ensure_restored()

    # ------------------------------------------------------------------ #
    # Change notification
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* after every mutation.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _coerce(self, entity: E | Mapping[str, Any]) -> E:
        if isinstance(entity, self._model):
            return entity
        return self._model.model_validate(entity)

    def _ensure_restored(self) -> bool:
        """Load the snapshot once.  Must be called with the lock held."""
        if self._restored:
            return bool(self._by_id or self._ordered)
        self._restored = True

        try:
            raw = self._storage.get(self._name)
        except Exception as exc:
            logger.warning("Could not read cache snapshot %r: %s", self._name, exc)
            return False
        if raw is None:
            return False

        try:
            self._by_id, self._ordered = decode_snapshot(raw, self._model)
        except (SnapshotFormatError, ValueError) as exc:
            logger.warning("Discarding unreadable cache snapshot %r: %s", self._name, exc)
            self._by_id, self._ordered = {}, []
            return False

        logger.debug(
            "Restored %d cached entities from snapshot %r", len(self._by_id), self._name
        )
        return True

    def _persist(self) -> None:
        """Write the snapshot.  Must be called with the lock held."""
        try:
            self._storage.set(self._name, encode_snapshot(self._by_id, self._ordered))
        except Exception as exc:
            logger.warning("Could not persist cache snapshot %r: %s", self._name, exc)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.warning("Cache listener %r failed", listener, exc_info=True)


class RecipeCache(EntityCache[Recipe]):
    """:class:`EntityCache` of :class:`~mixr.models.Recipe` under the standard snapshot name."""

    def __init__(
        self,
        storage: Optional[SnapshotStorage] = None,
        name: str = RECIPE_SNAPSHOT_NAME,
    ) -> None:
        super().__init__(Recipe, storage, name)


def _index_of(items: list[Any], entity_id: int) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == entity_id:
            return index
    return None


# ------------------------------------------------------------------ #
# Snapshot format
# ------------------------------------------------------------------ #


def _dump(entity: BaseModel) -> Any:
    return entity.model_dump(mode="json", by_alias=True)


def encode_snapshot(by_id: Mapping[int, BaseModel], ordered: Iterable[BaseModel]) -> str:
    """Serialise cache state.

    The mapping is stored as a list of ``[id, entity]`` pairs rather than a
    JSON object, so integer keys survive the round trip and an empty mapping
    stays distinguishable from a missing one.
    """
    document = {
        "version": SNAPSHOT_VERSION,
        "state": {
            "by_id": [[entity_id, _dump(entity)] for entity_id, entity in by_id.items()],
            "ordered_list": [_dump(entity) for entity in ordered],
        },
    }
    return json.dumps(document, ensure_ascii=False)


def decode_snapshot(raw: str, model: type[E]) -> tuple[dict[int, E], list[E]]:
    """Parse a blob written by :func:`encode_snapshot`.

    Raises:
        SnapshotFormatError: The blob is not valid JSON, has an unknown
            version, or does not have the expected shape.
        ValueError: An entity failed model validation.
    """
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"invalid JSON: {exc}") from exc

    if not isinstance(document, dict) or document.get("version") != SNAPSHOT_VERSION:
        raise SnapshotFormatError("unsupported snapshot version")

    state = document.get("state")
    if not isinstance(state, dict):
        raise SnapshotFormatError("missing state")
    pairs = state.get("by_id")
    listed = state.get("ordered_list")
    if not isinstance(pairs, list) or not isinstance(listed, list):
        raise SnapshotFormatError("state must hold 'by_id' and 'ordered_list' lists")

    by_id: dict[int, E] = {}
    for pair in pairs:
        if (
            not isinstance(pair, list)
            or len(pair) != 2
            or not isinstance(pair[0], int)
            or isinstance(pair[0], bool)
        ):
            raise SnapshotFormatError(f"malformed by_id entry: {pair!r}")
        by_id[pair[0]] = model.model_validate(pair[1])

    ordered = [model.model_validate(item) for item in listed]
    return by_id, ordered
