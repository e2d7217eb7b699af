"""Tests for the entity cache: upsert semantics, clear, snapshot round trips, fail-safety."""

from __future__ import annotations

import json
import logging
import threading

import pytest

from mixr.models import Recipe
from mixr.store import (
    RECIPE_SNAPSHOT_NAME,
    EntityCache,
    FileStorage,
    MemoryStorage,
    RecipeCache,
    SnapshotFormatError,
    decode_snapshot,
    encode_snapshot,
)


def _recipe(recipe_id: int, name: str = "Recipe", **extra) -> Recipe:
    return Recipe(id=recipe_id, name=name, **extra)


class BrokenStorage:
    """Storage whose every operation fails."""

    def get(self, name: str):
        raise OSError("disk unavailable")

    def set(self, name: str, value: str) -> None:
        raise OSError("disk full")

    def delete(self, name: str) -> None:
        raise OSError("read-only filesystem")


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def cache(storage: MemoryStorage) -> RecipeCache:
    return RecipeCache(storage)


# ------------------------------------------------------------------ #
# upsert_one
# ------------------------------------------------------------------ #


class TestUpsertOne:
    def test_get_one_returns_written_entity(self, cache: RecipeCache) -> None:
        recipe = _recipe(7, "Negroni")
        cache.upsert_one(recipe)
        assert cache.get_one(7) == recipe
        assert cache.has_one(7) is True

    def test_new_id_is_inserted_at_front(self, cache: RecipeCache) -> None:
        cache.upsert_many([_recipe(1), _recipe(2)])
        cache.upsert_one(_recipe(3, "Daiquiri"))
        assert [r.id for r in cache.ordered_list] == [3, 1, 2]

    def test_existing_id_is_replaced_in_place(self, cache: RecipeCache) -> None:
        cache.upsert_many([_recipe(1), _recipe(2), _recipe(3)])
        updated = _recipe(2, "Updated")
        cache.upsert_one(updated)

        listed = cache.ordered_list
        assert len(listed) == 3
        assert listed[1] == updated
        assert cache.get_one(2) == updated

    def test_id_only_in_by_id_goes_to_front(self, cache: RecipeCache) -> None:
        cache.upsert_many([_recipe(1)])
        cache.upsert_many([_recipe(2)])
        cache.upsert_one(_recipe(1, "Back"))
        assert [r.id for r in cache.ordered_list] == [1, 2]

    def test_accepts_wire_mapping(self, cache: RecipeCache) -> None:
        stored = cache.upsert_one({"id": 5, "name": "Mojito", "moodId": 2})
        assert isinstance(stored, Recipe)
        assert cache.get_one(5).mood_id == 2

    def test_list_grows_by_at_most_one(self, cache: RecipeCache) -> None:
        for i in range(5):
            before = len(cache.ordered_list)
            cache.upsert_one(_recipe(i % 3))
            assert len(cache.ordered_list) - before <= 1


# ------------------------------------------------------------------ #
# upsert_many
# ------------------------------------------------------------------ #


class TestUpsertMany:
    def test_ordered_list_equals_input(self, cache: RecipeCache) -> None:
        page = [_recipe(3), _recipe(1), _recipe(2)]
        cache.upsert_many(page)
        assert cache.ordered_list == page
        for recipe in page:
            assert cache.get_one(recipe.id) == recipe

    def test_replaces_list_but_keeps_previous_ids(self, cache: RecipeCache) -> None:
        old = _recipe(1, "Old page")
        cache.upsert_many([old])
        cache.upsert_many([_recipe(2), _recipe(3)])

        assert [r.id for r in cache.ordered_list] == [2, 3]
        assert cache.get_one(1) == old
        assert len(cache) == 3

    def test_empty_sequence_empties_list_only(self, cache: RecipeCache) -> None:
        cache.upsert_many([_recipe(1)])
        cache.upsert_many([])
        assert cache.ordered_list == []
        assert cache.has_one(1)

    def test_duplicate_ids_last_write_wins_in_by_id(self, cache: RecipeCache) -> None:
        first, second = _recipe(1, "First"), _recipe(1, "Second")
        cache.upsert_many([first, second])
        assert cache.ordered_list == [first, second]
        assert cache.get_one(1) == second

    def test_returns_copy_of_new_list(self, cache: RecipeCache) -> None:
        result = cache.upsert_many([_recipe(1)])
        result.append(_recipe(99))
        assert [r.id for r in cache.ordered_list] == [1]


# ------------------------------------------------------------------ #
# Reads, clear
# ------------------------------------------------------------------ #


class TestReads:
    def test_miss_returns_none(self, cache: RecipeCache) -> None:
        assert cache.get_one(404) is None
        assert cache.has_one(404) is False
        assert 404 not in cache

    def test_contains_and_len(self, cache: RecipeCache) -> None:
        cache.upsert_one(_recipe(1))
        assert 1 in cache
        assert "1" not in cache
        assert len(cache) == 1

    def test_views_are_copies(self, cache: RecipeCache) -> None:
        cache.upsert_one(_recipe(1))
        cache.ordered_list.clear()
        cache.by_id.clear()
        assert cache.has_one(1)
        assert len(cache.ordered_list) == 1


class TestClear:
    def test_clear_empties_everything(self, cache: RecipeCache, storage: MemoryStorage) -> None:
        cache.upsert_many([_recipe(1), _recipe(2)])
        cache.upsert_one(_recipe(3))
        cache.clear()

        assert cache.ordered_list == []
        assert not any(cache.has_one(i) for i in (1, 2, 3))
        assert RECIPE_SNAPSHOT_NAME not in storage

    def test_clear_is_idempotent(self, cache: RecipeCache) -> None:
        cache.clear()
        cache.clear()
        assert len(cache) == 0

    def test_clear_survives_restart(self, storage: MemoryStorage) -> None:
        first = RecipeCache(storage)
        first.upsert_one(_recipe(1))
        first.clear()
        assert len(RecipeCache(storage)) == 0


# ------------------------------------------------------------------ #
# Scenario from the product walkthrough
# ------------------------------------------------------------------ #


def test_mojito_margarita_scenario(cache: RecipeCache) -> None:
    cache.upsert_many([{"id": 1, "name": "Mojito"}])
    cache.upsert_one({"id": 2, "name": "Margarita"})
    cache.upsert_one({"id": 1, "name": "Mojito v2"})

    listed = cache.ordered_list
    assert [(r.id, r.name) for r in listed] == [(2, "Margarita"), (1, "Mojito v2")]
    assert len(cache.by_id) == 2


# ------------------------------------------------------------------ #
# Snapshot persistence
# ------------------------------------------------------------------ #


class TestSnapshot:
    def test_every_mutation_is_persisted(self, cache: RecipeCache, storage: MemoryStorage) -> None:
        cache.upsert_one(_recipe(1, "Mojito"))
        document = json.loads(storage.get(RECIPE_SNAPSHOT_NAME))
        assert document["version"] == 1
        assert document["state"]["by_id"][0][0] == 1
        assert document["state"]["ordered_list"][0]["name"] == "Mojito"

    def test_round_trip_restores_identical_state(self, storage: MemoryStorage) -> None:
        original = RecipeCache(storage)
        original.upsert_many([_recipe(1, "A", moodId=3), _recipe(2, "B")])
        original.upsert_many([_recipe(3, "C")])
        original.upsert_one(_recipe(2, "B v2", steps=["stir"]))

        restored = RecipeCache(storage)
        assert restored.ordered_list == original.ordered_list
        assert restored.by_id == original.by_id
        for i in (1, 2, 3, 4):
            assert restored.has_one(i) == original.has_one(i)
            assert restored.get_one(i) == original.get_one(i)

    def test_round_trip_of_empty_cache(self, storage: MemoryStorage) -> None:
        original = RecipeCache(storage)
        original.upsert_many([])
        assert storage.get(RECIPE_SNAPSHOT_NAME) is not None

        restored = RecipeCache(storage)
        assert restored.restore() is True
        assert restored.ordered_list == []
        assert restored.by_id == {}

    def test_round_trip_through_file_storage(self, tmp_path) -> None:
        original = RecipeCache(FileStorage(tmp_path))
        original.upsert_one(_recipe(10, "Gimlet"))

        restored = RecipeCache(FileStorage(tmp_path))
        assert restored.get_one(10) == original.get_one(10)

    def test_restore_is_lazy(self) -> None:
        calls: list[str] = []

        class CountingStorage(MemoryStorage):
            def get(self, name: str):
                calls.append(name)
                return super().get(name)

        cache = RecipeCache(CountingStorage())
        assert calls == []
        cache.get_one(1)
        cache.has_one(1)
        assert calls == [RECIPE_SNAPSHOT_NAME]

    def test_restore_without_snapshot_returns_false(self, cache: RecipeCache) -> None:
        assert cache.restore() is False

    def test_restore_discards_unsaved_memory(self, storage: MemoryStorage) -> None:
        cache = RecipeCache(storage)
        cache.upsert_one(_recipe(1))
        storage.delete(RECIPE_SNAPSHOT_NAME)
        assert cache.restore() is False
        assert len(cache) == 0

    def test_custom_snapshot_name(self, storage: MemoryStorage) -> None:
        cache = EntityCache(Recipe, storage, name="favorites")
        cache.upsert_one(_recipe(1))
        assert cache.snapshot_name == "favorites"
        assert storage.get("favorites") is not None
        assert storage.get(RECIPE_SNAPSHOT_NAME) is None

    def test_snapshot_matches_storage(self, cache: RecipeCache, storage: MemoryStorage) -> None:
        cache.upsert_one(_recipe(1))
        assert cache.snapshot() == storage.get(RECIPE_SNAPSHOT_NAME)


class TestSnapshotCodec:
    def test_encode_keeps_integer_keys(self) -> None:
        raw = encode_snapshot({5: _recipe(5)}, [_recipe(5)])
        by_id, ordered = decode_snapshot(raw, Recipe)
        assert list(by_id) == [5]
        assert isinstance(next(iter(by_id)), int)
        assert ordered == [_recipe(5)]

    def test_encode_uses_wire_aliases(self) -> None:
        raw = encode_snapshot({}, [_recipe(1, moodId=4)])
        assert '"moodId": 4' in raw

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[]",
            json.dumps({"version": 99, "state": {"by_id": [], "ordered_list": []}}),
            json.dumps({"version": 1}),
            json.dumps({"version": 1, "state": {"by_id": {}, "ordered_list": []}}),
            json.dumps({"version": 1, "state": {"by_id": [["1", {}]], "ordered_list": []}}),
            json.dumps({"version": 1, "state": {"by_id": [[True, {}]], "ordered_list": []}}),
        ],
    )
    def test_decode_rejects_malformed(self, raw: str) -> None:
        with pytest.raises(SnapshotFormatError):
            decode_snapshot(raw, Recipe)


# ------------------------------------------------------------------ #
# Fail-safety
# ------------------------------------------------------------------ #


class TestFailSafety:
    def test_corrupt_snapshot_yields_empty_cache(
        self, storage: MemoryStorage, caplog: pytest.LogCaptureFixture
    ) -> None:
        storage.set(RECIPE_SNAPSHOT_NAME, "{broken")
        with caplog.at_level(logging.WARNING, logger="mixr.store.entity_cache"):
            cache = RecipeCache(storage)
            assert cache.ordered_list == []
        assert "Discarding unreadable cache snapshot" in caplog.text

    def test_invalid_entity_in_snapshot_yields_empty_cache(self, storage: MemoryStorage) -> None:
        storage.set(
            RECIPE_SNAPSHOT_NAME,
            json.dumps({"version": 1, "state": {"by_id": [[1, {"id": 1}]], "ordered_list": []}}),
        )
        cache = RecipeCache(storage)
        assert cache.get_one(1) is None

    def test_broken_storage_never_raises(self, caplog: pytest.LogCaptureFixture) -> None:
        cache = RecipeCache(BrokenStorage())
        with caplog.at_level(logging.WARNING, logger="mixr.store.entity_cache"):
            cache.upsert_many([_recipe(1), _recipe(2)])
            cache.upsert_one(_recipe(3))
            assert [r.id for r in cache.ordered_list] == [3, 1, 2]
            cache.clear()
        assert len(cache) == 0
        assert "Could not persist cache snapshot" in caplog.text
        assert "Could not erase cache snapshot" in caplog.text


# ------------------------------------------------------------------ #
# Listeners and concurrency
# ------------------------------------------------------------------ #


class TestListeners:
    def test_listener_called_after_each_mutation(self, cache: RecipeCache) -> None:
        seen: list[int] = []
        cache.subscribe(lambda: seen.append(len(cache.ordered_list)))
        cache.upsert_many([_recipe(1), _recipe(2)])
        cache.upsert_one(_recipe(3))
        cache.clear()
        assert seen == [2, 3, 0]

    def test_unsubscribe(self, cache: RecipeCache) -> None:
        seen: list[str] = []
        unsubscribe = cache.subscribe(lambda: seen.append("x"))
        cache.upsert_one(_recipe(1))
        unsubscribe()
        unsubscribe()
        cache.upsert_one(_recipe(2))
        assert seen == ["x"]

    def test_failing_listener_does_not_break_writes(self, cache: RecipeCache) -> None:
        def boom() -> None:
            raise RuntimeError("listener failed")

        cache.subscribe(boom)
        cache.upsert_one(_recipe(1))
        assert cache.has_one(1)


def test_concurrent_writers_keep_views_consistent(cache: RecipeCache) -> None:
    def detail_writer(offset: int) -> None:
        for i in range(50):
            cache.upsert_one(_recipe(offset + i))

    def page_writer() -> None:
        for i in range(50):
            cache.upsert_many([_recipe(i), _recipe(i + 1000)])

    threads = [
        threading.Thread(target=detail_writer, args=(0,)),
        threading.Thread(target=detail_writer, args=(500,)),
        threading.Thread(target=page_writer),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    by_id = cache.by_id
    for recipe in cache.ordered_list:
        assert by_id[recipe.id] == recipe
