"""Headless data-fetching coordinators.

These classes decide *when* to call the endpoint client and feed what comes
back into the :class:`~mixr.store.RecipeCache`.  They are what a UI layer
binds to; nothing here knows about rendering.

* :class:`QueryCache` remembers each query result with its fetch time, so a
  result younger than its stale window is served without a request.
* :class:`RecipeQueries` pages through ``/api/recipes`` (each non-empty page
  replaces the cache's list view), fetches single recipes (upserted into the
  cache) and generates new ones (upserted, list queries invalidated).
* :class:`AsyncRecipeQueries` is the same over
  :class:`~mixr.client.AsyncMixrClient`.
* :class:`CatalogQueries` covers moods, equipment and ingredients, which are
  not cached beyond their stale window.

A fetch that fails or is cancelled raises before anything is written, so
the entity cache only ever sees complete results.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Hashable, Iterator, Optional

from mixr.client import AsyncMixrClient, MixrClient
from mixr.exceptions import InvalidUsageError
from mixr.models import (
    Equipment,
    EquipmentSubcategory,
    GenerateRecipeRequest,
    Ingredient,
    IngredientSubcategory,
    Mood,
    Recipe,
    RecipeListParams,
)
from mixr.store import RecipeCache

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]

RECIPES_LIST: QueryKey = ("recipes", "list")
RECIPES_DETAIL: QueryKey = ("recipes", "detail")

DEFAULT_PAGE_SIZE = 10
LIST_STALE_SECONDS = 5 * 60
DETAIL_STALE_SECONDS = 10 * 60
CATALOG_STALE_SECONDS = 60 * 60


@dataclass
class _Entry:
    value: Any
    fetched_at: float


class QueryCache:
    """Query results keyed by tuple, each stamped with its fetch time.

    Args:
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[QueryKey, _Entry] = {}

    def get_fresh(self, key: QueryKey, stale_seconds: float) -> Optional[Any]:
        """Return the value for *key* if it was stored less than *stale_seconds* ago."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= stale_seconds:
            return None
        return entry.value

    def set(self, key: QueryKey, value: Any) -> None:
        self._entries[key] = _Entry(value=value, fetched_at=self._clock())

    def invalidate(self, prefix: QueryKey = ()) -> int:
        """Drop every key starting with *prefix*; returns how many were dropped."""
        stale = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


@dataclass
class RecipePage:
    """One page of the recipe feed.

    ``next_offset`` is ``None`` once a short page shows the feed is exhausted.
    """

    recipes: list[Recipe]
    offset: int
    next_offset: Optional[int] = None
    limit: int = field(default=DEFAULT_PAGE_SIZE, repr=False)


class _RecipeQueriesBase:
    """State and cache bookkeeping shared by the sync and async recipe queries."""

    def __init__(
        self,
        cache: RecipeCache,
        query_cache: Optional[QueryCache] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        list_stale_seconds: float = LIST_STALE_SECONDS,
        detail_stale_seconds: float = DETAIL_STALE_SECONDS,
    ) -> None:
        if page_size < 1:
            raise InvalidUsageError(f"page_size must be positive, got {page_size}")
        self.cache = cache
        self.query_cache = query_cache if query_cache is not None else QueryCache()
        self.page_size = page_size
        self.list_stale_seconds = list_stale_seconds
        self.detail_stale_seconds = detail_stale_seconds

    def placeholder(self, recipe_id: Optional[int]) -> Optional[Recipe]:
        """The cached recipe to show while a detail fetch is in flight, if any."""
        if not recipe_id:
            return None
        return self.cache.get_one(recipe_id)

    def _list_key(self, offset: int) -> QueryKey:
        return RECIPES_LIST + (self.page_size, offset)

    def _params(self, offset: int) -> RecipeListParams:
        return RecipeListParams(limit=self.page_size, offset=offset)

    def _cached_page(self, offset: int, refresh: bool) -> Optional[RecipePage]:
        if refresh:
            return None
        return self.query_cache.get_fresh(self._list_key(offset), self.list_stale_seconds)

    def _store_page(self, recipes: list[Recipe], offset: int) -> RecipePage:
        if recipes:
            self.cache.upsert_many(recipes)
        next_offset = offset + self.page_size if len(recipes) == self.page_size else None
        page = RecipePage(
            recipes=recipes, offset=offset, next_offset=next_offset, limit=self.page_size
        )
        self.query_cache.set(self._list_key(offset), page)
        logger.debug("Fetched %d recipes at offset %d", len(recipes), offset)
        return page

    @staticmethod
    def _require_id(recipe_id: Optional[int]) -> int:
        if not recipe_id:
            raise InvalidUsageError("Recipe ID is required")
        return recipe_id

    def _cached_detail(self, recipe_id: int, refresh: bool) -> Optional[Recipe]:
        if refresh:
            return None
        return self.query_cache.get_fresh(RECIPES_DETAIL + (recipe_id,), self.detail_stale_seconds)

    def _store_detail(self, recipe: Recipe) -> Recipe:
        self.cache.upsert_one(recipe)
        self.query_cache.set(RECIPES_DETAIL + (recipe.id,), recipe)
        return recipe

    def _store_generated(self, recipe: Recipe) -> Recipe:
        self._store_detail(recipe)
        self.query_cache.invalidate(RECIPES_LIST)
        return recipe


class RecipeQueries(_RecipeQueriesBase):
    """Recipe feed, detail and generation over a blocking :class:`~mixr.client.MixrClient`.

    Args:
        client: Endpoint client.
        cache: Entity cache receiving every fetched recipe.
        query_cache: Optional shared :class:`QueryCache`.
        page_size: ``limit`` sent with each list request.
        list_stale_seconds: Freshness window of list pages.
        detail_stale_seconds: Freshness window of single recipes.

    Example::

        queries = RecipeQueries(client, RecipeCache(storage))
        for page in queries.iter_pages():
            ...
        recipe = queries.get(42)
    """

    def __init__(self, client: MixrClient, cache: RecipeCache, **kwargs: Any) -> None:
        super().__init__(cache, **kwargs)
        self.client = client

    def list_page(self, offset: int = 0, refresh: bool = False) -> RecipePage:
        """Fetch the page starting at *offset*; a non-empty page becomes the cache's list view."""
        cached = self._cached_page(offset, refresh)
        if cached is not None:
            return cached
        recipes = self.client.get_recipes(self._params(offset))
        return self._store_page(recipes, offset)

    def iter_pages(self, refresh: bool = False) -> Iterator[RecipePage]:
        """Yield pages from offset 0 until a short page ends the feed."""
        offset: Optional[int] = 0
        while offset is not None:
            page = self.list_page(offset, refresh=refresh)
            yield page
            offset = page.next_offset

    def get(self, recipe_id: Optional[int], refresh: bool = False) -> Recipe:
        """Fetch one recipe and upsert it into the cache.

        Raises:
            InvalidUsageError: *recipe_id* is missing or zero.
        """
        recipe_id = self._require_id(recipe_id)
        cached = self._cached_detail(recipe_id, refresh)
        if cached is not None:
            return cached
        return self._store_detail(self.client.get_recipe_by_id(recipe_id))

    def generate(self, request: GenerateRecipeRequest) -> Recipe:
        """Generate a recipe, cache it at the front of the list view, invalidate list pages."""
        return self._store_generated(self.client.generate_recipe(request))


class AsyncRecipeQueries(_RecipeQueriesBase):
    """:class:`RecipeQueries` over an :class:`~mixr.client.AsyncMixrClient`."""

    def __init__(self, client: AsyncMixrClient, cache: RecipeCache, **kwargs: Any) -> None:
        super().__init__(cache, **kwargs)
        self.client = client

    async def list_page(self, offset: int = 0, refresh: bool = False) -> RecipePage:
        cached = self._cached_page(offset, refresh)
        if cached is not None:
            return cached
        recipes = await self.client.get_recipes(self._params(offset))
        return self._store_page(recipes, offset)

    async def iter_pages(self, refresh: bool = False) -> AsyncIterator[RecipePage]:
        offset: Optional[int] = 0
        while offset is not None:
            page = await self.list_page(offset, refresh=refresh)
            yield page
            offset = page.next_offset

    async def get(self, recipe_id: Optional[int], refresh: bool = False) -> Recipe:
        recipe_id = self._require_id(recipe_id)
        cached = self._cached_detail(recipe_id, refresh)
        if cached is not None:
            return cached
        return self._store_detail(await self.client.get_recipe_by_id(recipe_id))

    async def generate(self, request: GenerateRecipeRequest) -> Recipe:
        return self._store_generated(await self.client.generate_recipe(request))


class CatalogQueries:
    """Moods, equipment and ingredients with a shared freshness window.

    These lists change rarely, so results are served from the
    :class:`QueryCache` for ``stale_seconds`` (an hour by default).
    """

    def __init__(
        self,
        client: MixrClient,
        query_cache: Optional[QueryCache] = None,
        stale_seconds: float = CATALOG_STALE_SECONDS,
    ) -> None:
        self.client = client
        self.query_cache = query_cache if query_cache is not None else QueryCache()
        self.stale_seconds = stale_seconds

    def moods(self, refresh: bool = False) -> list[Mood]:
        return self._fetch(("moods", "list"), self.client.get_moods, refresh)

    def mood(self, mood_id: int, refresh: bool = False) -> Mood:
        return self._fetch(
            ("moods", "detail", mood_id), lambda: self.client.get_mood_by_id(mood_id), refresh
        )

    def equipment(
        self,
        subcategory: Optional[EquipmentSubcategory | str] = None,
        refresh: bool = False,
    ) -> list[Equipment]:
        return self._fetch(
            ("equipment", "list", _filter_value(subcategory)),
            lambda: self.client.get_equipment(subcategory),
            refresh,
        )

    def equipment_item(self, equipment_id: int, refresh: bool = False) -> Equipment:
        return self._fetch(
            ("equipment", "detail", equipment_id),
            lambda: self.client.get_equipment_by_id(equipment_id),
            refresh,
        )

    def equipment_subcategories(self, refresh: bool = False) -> list[str]:
        return self._fetch(
            ("equipment", "subcategories"), self.client.get_equipment_subcategories, refresh
        )

    def ingredients(
        self,
        subcategory: Optional[IngredientSubcategory | str] = None,
        refresh: bool = False,
    ) -> list[Ingredient]:
        return self._fetch(
            ("ingredients", "list", _filter_value(subcategory)),
            lambda: self.client.get_ingredients(subcategory),
            refresh,
        )

    def ingredient(self, ingredient_id: int, refresh: bool = False) -> Ingredient:
        return self._fetch(
            ("ingredients", "detail", ingredient_id),
            lambda: self.client.get_ingredient_by_id(ingredient_id),
            refresh,
        )

    def ingredient_subcategories(self, refresh: bool = False) -> list[str]:
        return self._fetch(
            ("ingredients", "subcategories"), self.client.get_ingredient_subcategories, refresh
        )

    def _fetch(self, key: QueryKey, fetch: Callable[[], Any], refresh: bool) -> Any:
        if not refresh:
            cached = self.query_cache.get_fresh(key, self.stale_seconds)
            if cached is not None:
                return cached
        value = fetch()
        self.query_cache.set(key, value)
        return value


def _filter_value(
    subcategory: Optional[EquipmentSubcategory | IngredientSubcategory | str],
) -> Optional[str]:
    if subcategory is None:
        return None
    return getattr(subcategory, "value", subcategory)
