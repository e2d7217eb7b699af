"""Asynchronous MIXR endpoint client -- mirrors :class:`~mixr.client.sync_client.MixrClient`.

:class:`AsyncMixrClient` sends the same :mod:`~mixr.client.operations`
through an async transport, so every method has the same name, arguments,
return type and error behaviour as its blocking counterpart, but must be
awaited.  An :class:`asyncio.Event` passed to :meth:`AsyncMixrClient.execute`
aborts the in-flight request; the aborted call then raises
:class:`~mixr.exceptions.TransportError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from mixr.client import operations as ops
from mixr.client.helpers import build_url, create_headers
from mixr.client.response import unwrap_result
from mixr.models import (
    ApiEnvelope,
    Equipment,
    EquipmentSubcategory,
    GenerateRecipeRequest,
    HealthStatus,
    Ingredient,
    IngredientSubcategory,
    Mood,
    RatingAggregate,
    RatingListParams,
    Recipe,
    RecipeListParams,
    RecipeRating,
    SubmitRatingRequest,
    UpdateUserPreferencesRequest,
    UpdateUserRequest,
    User,
    UserPreferences,
    VersionInfo,
)
from mixr.transport import AsyncHttpxTransport, AsyncTransport

logger = logging.getLogger(__name__)


class AsyncMixrClient:
    """Non-blocking client for the MIXR API.

    Args:
        base_url: API root, e.g. ``http://localhost:3000``.
        token: Optional bearer token attached to every request.
        transport: Optional async transport.  Defaults to an
            :class:`~mixr.transport.AsyncHttpxTransport` owned by this client.
        timeout: Timeout for the default transport, in seconds.
        verify_ssl: TLS verification for the default transport.

    Example::

        async with AsyncMixrClient("http://localhost:3000") as client:
            recipes = await client.get_recipes(RecipeListParams(limit=5))
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[AsyncTransport] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
    ) -> None:
        self._base_url = base_url
        self._token = token
        self._owns_transport = transport is None
        self._transport: AsyncTransport = transport or AsyncHttpxTransport(
            timeout=timeout, verify_ssl=verify_ssl
        )

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncMixrClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, AsyncHttpxTransport):
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # Credentials
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> Optional[str]:
        """The bearer token sent with every request, if any."""
        return self._token

    @token.setter
    def token(self, value: Optional[str]) -> None:
        self._token = value or None

    def set_token(self, token: Optional[str]) -> None:
        """Replace the bearer token; ``None`` clears it."""
        self.token = token

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    async def execute(
        self,
        operation: ops.Operation,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Send *operation* and return its unwrapped payload.

        Raises the same exceptions as :meth:`MixrClient.execute`.
        """
        url = build_url(self._base_url, operation.path)
        logger.debug("%s %s", operation.method, url)
        result = await self._transport.request(
            url,
            method=operation.method,
            headers=create_headers(token=self._token),
            body=operation.body,
            cancel_event=cancel_event,
        )
        return unwrap_result(result, operation)

    # ------------------------------------------------------------------ #
    # Health
    # ------------------------------------------------------------------ #

    async def get_version(self) -> VersionInfo:
        """``GET /`` -- API version and status."""
        return await self.execute(ops.get_version())

    async def health_check(self) -> HealthStatus:
        """``GET /health``."""
        return await self.execute(ops.health_check())

    # ------------------------------------------------------------------ #
    # Equipment
    # ------------------------------------------------------------------ #

    async def get_equipment(
        self, subcategory: Optional[EquipmentSubcategory | str] = None
    ) -> list[Equipment]:
        """All equipment, optionally filtered by subcategory."""
        return await self.execute(ops.get_equipment(subcategory))

    async def get_equipment_by_id(self, equipment_id: int) -> Equipment:
        return await self.execute(ops.get_equipment_by_id(equipment_id))

    async def get_equipment_subcategories(self) -> list[str]:
        return await self.execute(ops.get_equipment_subcategories())

    # ------------------------------------------------------------------ #
    # Ingredients
    # ------------------------------------------------------------------ #

    async def get_ingredients(
        self, subcategory: Optional[IngredientSubcategory | str] = None
    ) -> list[Ingredient]:
        """All ingredients, optionally filtered by subcategory."""
        return await self.execute(ops.get_ingredients(subcategory))

    async def get_ingredient_by_id(self, ingredient_id: int) -> Ingredient:
        return await self.execute(ops.get_ingredient_by_id(ingredient_id))

    async def get_ingredient_subcategories(self) -> list[str]:
        return await self.execute(ops.get_ingredient_subcategories())

    # ------------------------------------------------------------------ #
    # Moods
    # ------------------------------------------------------------------ #

    async def get_moods(self) -> list[Mood]:
        return await self.execute(ops.get_moods())

    async def get_mood_by_id(self, mood_id: int) -> Mood:
        return await self.execute(ops.get_mood_by_id(mood_id))

    # ------------------------------------------------------------------ #
    # Recipes
    # ------------------------------------------------------------------ #

    async def generate_recipe(self, request: GenerateRecipeRequest) -> Recipe:
        """``POST /api/recipes/generate`` -- ask the server for a new recipe."""
        return await self.execute(ops.generate_recipe(request))

    async def get_recipes(self, params: Optional[RecipeListParams] = None) -> list[Recipe]:
        """One page of recipes; ``limit``/``offset`` are sent only when set."""
        return await self.execute(ops.get_recipes(params))

    async def get_recipe_by_id(self, recipe_id: int) -> Recipe:
        return await self.execute(ops.get_recipe_by_id(recipe_id))

    # ------------------------------------------------------------------ #
    # Users (authenticated)
    # ------------------------------------------------------------------ #

    async def get_current_user(self) -> User:
        return await self.execute(ops.get_current_user())

    async def update_current_user(self, request: UpdateUserRequest) -> User:
        return await self.execute(ops.update_current_user(request))

    async def get_user_preferences(self) -> UserPreferences:
        return await self.execute(ops.get_user_preferences())

    async def update_user_preferences(
        self, request: UpdateUserPreferencesRequest
    ) -> UserPreferences:
        return await self.execute(ops.update_user_preferences(request))

    async def get_favorites(self) -> list[Recipe]:
        return await self.execute(ops.get_favorites())

    async def add_favorite(self, recipe_id: int) -> ApiEnvelope:
        return await self.execute(ops.add_favorite(recipe_id))

    async def remove_favorite(self, recipe_id: int) -> ApiEnvelope:
        return await self.execute(ops.remove_favorite(recipe_id))

    # ------------------------------------------------------------------ #
    # Ratings
    # ------------------------------------------------------------------ #

    async def submit_rating(self, recipe_id: int, request: SubmitRatingRequest) -> RecipeRating:
        return await self.execute(ops.submit_rating(recipe_id, request))

    async def get_ratings(
        self, recipe_id: int, params: Optional[RatingListParams] = None
    ) -> list[RecipeRating]:
        return await self.execute(ops.get_ratings(recipe_id, params))

    async def get_rating_aggregate(self, recipe_id: int) -> RatingAggregate:
        return await self.execute(ops.get_rating_aggregate(recipe_id))

    async def delete_rating(self, recipe_id: int, rating_id: int) -> ApiEnvelope:
        return await self.execute(ops.delete_rating(recipe_id, rating_id))
