"""Canonical Pydantic models shared across all mixr modules.

This is the single source of truth for data shapes in the project.  The
models fall into two groups:

**Wire models** -- the JSON bodies exchanged with the MIXR API:
    :class:`Equipment`, :class:`Ingredient`, :class:`Mood`, :class:`Recipe`
    (with :class:`RecipeIngredient` and :class:`RecipeEquipment`),
    :class:`User`, :class:`UserPreferences`, :class:`RecipeRating`,
    :class:`RatingAggregate`, the request bodies, and the
    :class:`ApiEnvelope` that wraps every response.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CacheConfig` and :class:`Settings`.

The server mixes camelCase (``createdAt``, ``moodId``) and snake_case
(``created_at``, ``recipe_id``) keys.  Attributes are always snake_case;
camelCase keys are mapped with field aliases, and ``populate_by_name`` lets
callers use either spelling.  Dump with ``by_alias=True`` to get the wire
form back.  Entity models are frozen so cached values cannot be mutated
behind the cache's back.
"""

from __future__ import annotations

import enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


_WIRE_CONFIG = ConfigDict(populate_by_name=True, extra="allow", frozen=True)


# --- Catalog ---


class EquipmentSubcategory(str, enum.Enum):
    """Filter values accepted by ``GET /api/equipment?subcategory=``."""

    ESSENTIAL = "essential"
    GLASSWARE = "glassware"
    GARNISH = "garnish"
    ADVANCED = "advanced"


class IngredientSubcategory(str, enum.Enum):
    """Filter values accepted by ``GET /api/ingredients?subcategory=``."""

    SPIRIT = "spirit"
    WINE = "wine"
    OTHER_ALCOHOL = "other_alcohol"
    FRUIT = "fruit"
    SPICE = "spice"
    OTHER = "other"


class Equipment(BaseModel):
    """A bar tool or glass the user may own."""

    model_config = _WIRE_CONFIG

    id: int
    subcategory: str
    name: str
    icon: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class Ingredient(BaseModel):
    """A spirit, mixer, fruit or spice usable in a recipe."""

    model_config = _WIRE_CONFIG

    id: int
    subcategory: str
    name: str
    icon: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class Mood(BaseModel):
    """A mood the recipe generator can target, e.g. "Celebratory"."""

    model_config = _WIRE_CONFIG

    id: int
    emoji: str = ""
    name: str
    description: str = ""
    example_drinks: str = Field(default="", alias="exampleDrinks")
    image_name: Optional[str] = Field(default=None, alias="imageName")
    created_at: Optional[str] = Field(default=None, alias="createdAt")


# --- Recipes ---


class RecipeIngredient(BaseModel):
    """An ingredient line inside a :class:`Recipe`."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    icon: Optional[str] = None
    amount: str = ""


class RecipeEquipment(BaseModel):
    """An equipment reference inside a :class:`Recipe`."""

    model_config = _WIRE_CONFIG

    id: int
    name: str
    icon: Optional[str] = None


class Recipe(BaseModel):
    """A generated cocktail recipe -- the entity kept by :class:`~mixr.store.RecipeCache`.

    Identity is :attr:`id`: two recipes with the same id are the same
    logical entity, whatever their other fields say.
    """

    model_config = _WIRE_CONFIG

    id: int
    name: str
    description: Optional[str] = None
    mood_id: Optional[int] = Field(default=None, alias="moodId")
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    mood: Optional[Mood] = None
    ingredients: list[RecipeIngredient] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    equipment: list[RecipeEquipment] = Field(default_factory=list)
    user_id: Optional[str] = Field(default=None, alias="userId")


class GenerateRecipeRequest(BaseModel):
    """Body of ``POST /api/recipes/generate``."""

    equipment_ids: list[int] = Field(default_factory=list)
    ingredient_ids: list[int] = Field(default_factory=list)
    mood_id: int


class RecipeListParams(BaseModel):
    """Pagination for ``GET /api/recipes``; unset fields are not sent."""

    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)


# --- Service info ---


class VersionInfo(BaseModel):
    """Body of ``GET /``."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    message: str = ""
    version: str = ""


class HealthStatus(BaseModel):
    """Body of ``GET /health``."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    status: str = ""
    timestamp: str = ""


# --- Users ---


class User(BaseModel):
    """The authenticated user (``/api/users/me``)."""

    model_config = _WIRE_CONFIG

    id: str
    email: str
    display_name: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UpdateUserRequest(BaseModel):
    """Body of ``PUT /api/users/me``."""

    display_name: str


class UserPreferences(BaseModel):
    """The equipment and ingredients a user keeps at home."""

    model_config = _WIRE_CONFIG

    equipment_ids: list[int] = Field(default_factory=list)
    ingredient_ids: list[int] = Field(default_factory=list)
    updated_at: Optional[str] = None


class UpdateUserPreferencesRequest(BaseModel):
    """Body of ``PUT /api/users/me/preferences``."""

    equipment_ids: list[int] = Field(default_factory=list)
    ingredient_ids: list[int] = Field(default_factory=list)


# --- Ratings ---


class RecipeRating(BaseModel):
    """A single user's star rating of a recipe."""

    model_config = _WIRE_CONFIG

    id: int
    recipe_id: int
    user_id: str = ""
    user_name: str = ""
    user_email: str = ""
    stars: int
    review: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class SubmitRatingRequest(BaseModel):
    """Body of ``POST /api/recipes/{id}/ratings``."""

    stars: int = Field(ge=1, le=5)
    review: Optional[str] = None


class RatingAggregate(BaseModel):
    """Rating summary from ``GET /api/recipes/{id}/ratings/aggregate``."""

    model_config = _WIRE_CONFIG

    recipe_id: int
    average_rating: float = 0.0
    total_ratings: int = 0
    rating_distribution: dict[str, int] = Field(default_factory=dict)


class RatingListParams(BaseModel):
    """Pagination and ordering for ``GET /api/recipes/{id}/ratings``."""

    limit: Optional[int] = Field(default=None, ge=0)
    offset: Optional[int] = Field(default=None, ge=0)
    sort: Optional[Literal["newest", "oldest", "highest", "lowest"]] = None


# --- Envelope ---


class ApiEnvelope(BaseModel):
    """The ``{success, data, error, count}`` wrapper around every response body.

    Operations that carry no ``data`` (adding or removing a favorite,
    deleting a rating) return the envelope itself so callers still see the
    server's ``message``.
    """

    model_config = ConfigDict(extra="allow")

    success: bool = False
    data: Any = None
    error: Optional[str] = None
    count: Optional[int] = None
    message: Optional[str] = None


# --- Configuration ---


class StorageBackend(str, enum.Enum):
    """Where the recipe cache keeps its durable snapshot."""

    DISKCACHE = "diskcache"
    FILE = "file"
    MEMORY = "memory"


class CacheConfig(BaseModel):
    """Local cache settings stored in :class:`Settings`.

    The ``*_stale_seconds`` values are the windows during which
    :mod:`mixr.queries` serves a previous result without refetching.
    """

    enabled: bool = Field(default=True, description="Persist the recipe cache")
    backend: StorageBackend = Field(
        default=StorageBackend.DISKCACHE, description="Snapshot storage backend"
    )
    list_stale_seconds: int = Field(default=300, description="Recipe list freshness")
    detail_stale_seconds: int = Field(default=600, description="Recipe detail freshness")
    catalog_stale_seconds: int = Field(
        default=3600, description="Moods, equipment and ingredients freshness"
    )


class Settings(BaseModel):
    """User-wide configuration persisted at ``~/.config/mixr/config.json``.

    Loaded and saved by :func:`~mixr.config.load_settings` and
    :func:`~mixr.config.save_settings`.  See
    :func:`~mixr.config.resolve_settings` for the precedence chain that
    layers environment variables and CLI flags on top.
    """

    base_url: str = Field(default="http://localhost:3000", description="MIXR API base URL")
    token: Optional[str] = Field(default=None, description="Bearer token")
    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    cache: CacheConfig = Field(default_factory=CacheConfig)
