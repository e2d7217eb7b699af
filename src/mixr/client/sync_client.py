"""Synchronous MIXR endpoint client.

:class:`MixrClient` turns each domain call (get moods, generate a recipe,
...) into exactly one transport request and hands back the unwrapped,
validated payload.  Failures surface as typed exceptions from
:mod:`mixr.exceptions`; see :func:`~mixr.client.response.unwrap_result`
for the rules.

See Also:
    :class:`~mixr.client.async_client.AsyncMixrClient` for the
    non-blocking equivalent.
"""

from __future__ import annotations

import logging
import threading
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
from mixr.transport import HttpxTransport, Transport

logger = logging.getLogger(__name__)


class MixrClient:
    """Blocking client for the MIXR API.

    The client is stateless apart from its base URL and an optional bearer
    token.  The token can be swapped or cleared at any time with
    :meth:`set_token`; the next request picks it up.

    Args:
        base_url: API root, e.g. ``http://localhost:3000``.
        token: Optional bearer token attached to every request.
        transport: Optional transport.  Defaults to an
            :class:`~mixr.transport.HttpxTransport` owned (and closed) by
            this client.
        timeout: Timeout for the default transport, in seconds.
        verify_ssl: TLS verification for the default transport.

    Example::

        with MixrClient("http://localhost:3000") as client:
            for mood in client.get_moods():
                print(mood.emoji, mood.name)
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[Transport] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
    ) -> None:
        self._base_url = base_url
        self._token = token
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(
            timeout=timeout, verify_ssl=verify_ssl
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> MixrClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport and isinstance(self._transport, HttpxTransport):
            self._transport.close()

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

    def execute(
        self,
        operation: ops.Operation,
        cancel_event: Optional[threading.Event] = None,
    ) -> Any:
        """Send *operation* and return its unwrapped payload.

        Raises:
            TransportError: Network-level failure.
            HttpError: Non-2xx status (or a more specific subclass).
            EmptyPayloadError: 2xx without usable ``data``.
        """
        url = build_url(self._base_url, operation.path)
        logger.debug("%s %s", operation.method, url)
        result = self._transport.request(
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

    def get_version(self) -> VersionInfo:
        """``GET /`` -- API version and status."""
        return self.execute(ops.get_version())

    def health_check(self) -> HealthStatus:
        """``GET /health``."""
        return self.execute(ops.health_check())

    # ------------------------------------------------------------------ #
    # Equipment
    # ------------------------------------------------------------------ #

    def get_equipment(
        self, subcategory: Optional[EquipmentSubcategory | str] = None
    ) -> list[Equipment]:
        """All equipment, optionally filtered by subcategory."""
        return self.execute(ops.get_equipment(subcategory))

    def get_equipment_by_id(self, equipment_id: int) -> Equipment:
        return self.execute(ops.get_equipment_by_id(equipment_id))

    def get_equipment_subcategories(self) -> list[str]:
        return self.execute(ops.get_equipment_subcategories())

    # ------------------------------------------------------------------ #
    # Ingredients
    # ------------------------------------------------------------------ #

    def get_ingredients(
        self, subcategory: Optional[IngredientSubcategory | str] = None
    ) -> list[Ingredient]:
        """All ingredients, optionally filtered by subcategory."""
        return self.execute(ops.get_ingredients(subcategory))

    def get_ingredient_by_id(self, ingredient_id: int) -> Ingredient:
        return self.execute(ops.get_ingredient_by_id(ingredient_id))

    def get_ingredient_subcategories(self) -> list[str]:
        return self.execute(ops.get_ingredient_subcategories())

    # ------------------------------------------------------------------ #
    # Moods
    # ------------------------------------------------------------------ #

    def get_moods(self) -> list[Mood]:
        return self.execute(ops.get_moods())

    def get_mood_by_id(self, mood_id: int) -> Mood:
        return self.execute(ops.get_mood_by_id(mood_id))

    # ------------------------------------------------------------------ #
    # Recipes
    # ------------------------------------------------------------------ #

    def generate_recipe(self, request: GenerateRecipeRequest) -> Recipe:
        """``POST /api/recipes/generate`` -- ask the server for a new recipe."""
        return self.execute(ops.generate_recipe(request))

    def get_recipes(self, params: Optional[RecipeListParams] = None) -> list[Recipe]:
        """One page of recipes; ``limit``/``offset`` are sent only when set."""
        return self.execute(ops.get_recipes(params))

    def get_recipe_by_id(self, recipe_id: int) -> Recipe:
        return self.execute(ops.get_recipe_by_id(recipe_id))

    # ------------------------------------------------------------------ #
    # Users (authenticated)
    # ------------------------------------------------------------------ #

    def get_current_user(self) -> User:
        return self.execute(ops.get_current_user())

    def update_current_user(self, request: UpdateUserRequest) -> User:
        return self.execute(ops.update_current_user(request))

    def get_user_preferences(self) -> UserPreferences:
        return self.execute(ops.get_user_preferences())

    def update_user_preferences(
        self, request: UpdateUserPreferencesRequest
    ) -> UserPreferences:
        return self.execute(ops.update_user_preferences(request))

    def get_favorites(self) -> list[Recipe]:
        return self.execute(ops.get_favorites())

    def add_favorite(self, recipe_id: int) -> ApiEnvelope:
        return self.execute(ops.add_favorite(recipe_id))

    def remove_favorite(self, recipe_id: int) -> ApiEnvelope:
        return self.execute(ops.remove_favorite(recipe_id))

    # ------------------------------------------------------------------ #
    # Ratings
    # ------------------------------------------------------------------ #

    def submit_rating(self, recipe_id: int, request: SubmitRatingRequest) -> RecipeRating:
        return self.execute(ops.submit_rating(recipe_id, request))

    def get_ratings(
        self, recipe_id: int, params: Optional[RatingListParams] = None
    ) -> list[RecipeRating]:
        return self.execute(ops.get_ratings(recipe_id, params))

    def get_rating_aggregate(self, recipe_id: int) -> RatingAggregate:
        return self.execute(ops.get_rating_aggregate(recipe_id))

    def delete_rating(self, recipe_id: int, rating_id: int) -> ApiEnvelope:
        return self.execute(ops.delete_rating(recipe_id, rating_id))
