"""Declarative table of MIXR API operations.

Every endpoint the clients expose is described once here as an
:class:`Operation`: the verb, the path (query string included), the body,
whether the response must carry an envelope ``data`` field, and how to
validate the payload.  :class:`~mixr.client.sync_client.MixrClient` and
:class:`~mixr.client.async_client.AsyncMixrClient` differ only in how they
send an operation, never in what they send.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter

from mixr.client.helpers import build_query
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

T = TypeVar("T")


@dataclass(frozen=True)
class Operation:
    """One request/response mapping.

    Attributes:
        name: Short verb phrase used in error messages (``"get moods"``).
        method: HTTP verb.
        path: Path relative to the base URL, including any query string.
        parse: Validates the unwrapped payload into its return type.
        body: JSON-serialisable request body, or ``None``.
        requires_data: When ``True`` the payload is the envelope's
            ``data`` field and a missing ``data`` is an error.  When
            ``False`` the whole response body is the payload.
    """

    name: str
    method: str
    path: str
    parse: Callable[[Any], Any] = field(repr=False)
    body: Any = None
    requires_data: bool = True


def _model(model: type[T]) -> Callable[[Any], T]:
    return TypeAdapter(model).validate_python


def _list_of(model: type[T]) -> Callable[[Any], list[T]]:
    return TypeAdapter(list[model]).validate_python  # type: ignore[valid-type]


def _dump(body: BaseModel) -> dict[str, Any]:
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


def _subcategory_query(subcategory: Optional[str]) -> str:
    return build_query({"subcategory": subcategory})


# --- Health ---


def get_version() -> Operation:
    return Operation("get version", "GET", "/", _model(VersionInfo), requires_data=False)


def health_check() -> Operation:
    return Operation("health check", "GET", "/health", _model(HealthStatus), requires_data=False)


# --- Equipment ---


def get_equipment(subcategory: Optional[EquipmentSubcategory | str] = None) -> Operation:
    return Operation(
        "get equipment",
        "GET",
        f"/api/equipment{_subcategory_query(subcategory)}",
        _list_of(Equipment),
    )


def get_equipment_by_id(equipment_id: int) -> Operation:
    return Operation(
        "get equipment by id", "GET", f"/api/equipment/{int(equipment_id)}", _model(Equipment)
    )


def get_equipment_subcategories() -> Operation:
    return Operation(
        "get equipment subcategories", "GET", "/api/equipment/subcategories", _list_of(str)
    )


# --- Ingredients ---


def get_ingredients(subcategory: Optional[IngredientSubcategory | str] = None) -> Operation:
    return Operation(
        "get ingredients",
        "GET",
        f"/api/ingredients{_subcategory_query(subcategory)}",
        _list_of(Ingredient),
    )


def get_ingredient_by_id(ingredient_id: int) -> Operation:
    return Operation(
        "get ingredient by id",
        "GET",
        f"/api/ingredients/{int(ingredient_id)}",
        _model(Ingredient),
    )


def get_ingredient_subcategories() -> Operation:
    return Operation(
        "get ingredient subcategories", "GET", "/api/ingredients/subcategories", _list_of(str)
    )


# --- Moods ---


def get_moods() -> Operation:
    return Operation("get moods", "GET", "/api/moods", _list_of(Mood))


def get_mood_by_id(mood_id: int) -> Operation:
    return Operation("get mood by id", "GET", f"/api/moods/{int(mood_id)}", _model(Mood))


# --- Recipes ---


def generate_recipe(request: GenerateRecipeRequest) -> Operation:
    return Operation(
        "generate recipe",
        "POST",
        "/api/recipes/generate",
        _model(Recipe),
        body=_dump(request),
    )


def get_recipes(params: Optional[RecipeListParams] = None) -> Operation:
    query = build_query(params.model_dump() if params is not None else None)
    return Operation("get recipes", "GET", f"/api/recipes{query}", _list_of(Recipe))


def get_recipe_by_id(recipe_id: int) -> Operation:
    return Operation("get recipe by id", "GET", f"/api/recipes/{int(recipe_id)}", _model(Recipe))


# --- Users ---


def get_current_user() -> Operation:
    return Operation("get current user", "GET", "/api/users/me", _model(User))


def update_current_user(request: UpdateUserRequest) -> Operation:
    return Operation(
        "update current user", "PUT", "/api/users/me", _model(User), body=_dump(request)
    )


def get_user_preferences() -> Operation:
    return Operation(
        "get user preferences", "GET", "/api/users/me/preferences", _model(UserPreferences)
    )


def update_user_preferences(request: UpdateUserPreferencesRequest) -> Operation:
    return Operation(
        "update user preferences",
        "PUT",
        "/api/users/me/preferences",
        _model(UserPreferences),
        body=_dump(request),
    )


def get_favorites() -> Operation:
    return Operation("get favorites", "GET", "/api/users/me/favorites", _list_of(Recipe))


def add_favorite(recipe_id: int) -> Operation:
    return Operation(
        "add favorite",
        "POST",
        "/api/users/me/favorites",
        _model(ApiEnvelope),
        body={"recipe_id": int(recipe_id)},
        requires_data=False,
    )


def remove_favorite(recipe_id: int) -> Operation:
    return Operation(
        "remove favorite",
        "DELETE",
        f"/api/users/me/favorites/{int(recipe_id)}",
        _model(ApiEnvelope),
        requires_data=False,
    )


# --- Ratings ---


def submit_rating(recipe_id: int, request: SubmitRatingRequest) -> Operation:
    return Operation(
        "submit rating",
        "POST",
        f"/api/recipes/{int(recipe_id)}/ratings",
        _model(RecipeRating),
        body=_dump(request),
    )


def get_ratings(recipe_id: int, params: Optional[RatingListParams] = None) -> Operation:
    query = build_query(params.model_dump() if params is not None else None)
    return Operation(
        "get ratings",
        "GET",
        f"/api/recipes/{int(recipe_id)}/ratings{query}",
        _list_of(RecipeRating),
    )


def get_rating_aggregate(recipe_id: int) -> Operation:
    return Operation(
        "get rating aggregate",
        "GET",
        f"/api/recipes/{int(recipe_id)}/ratings/aggregate",
        _model(RatingAggregate),
    )


def delete_rating(recipe_id: int, rating_id: int) -> Operation:
    return Operation(
        "delete rating",
        "DELETE",
        f"/api/recipes/{int(recipe_id)}/ratings/{int(rating_id)}",
        _model(ApiEnvelope),
        requires_data=False,
    )
