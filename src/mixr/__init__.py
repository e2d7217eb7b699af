"""mixr -- typed client for the MIXR cocktail-recipe API.

The package wraps the MIXR HTTP endpoints in a typed client, keeps a durable
local cache of every recipe the client has seen, and ships a small command
line on top of both.

Typical use::

    from mixr import MixrClient, RecipeCache, RecipeQueries

    with MixrClient("http://localhost:3000") as client:
        queries = RecipeQueries(client, RecipeCache())
        page = queries.list_page()

Modules:
    transport: uniform-result HTTP transports backed by httpx.
    client: endpoint clients (sync and async) with typed errors.
    store: the entity cache and its durable snapshot storage.
    queries: headless data-fetching coordinators feeding the cache.
    models: Pydantic models for wire types and settings.
    config: XDG-aware settings, token store and precedence resolution.
    exceptions: exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting used by the CLI.
    app: Typer application and console entry point.
"""

__version__ = "0.1.0"

from mixr.client import AsyncMixrClient, MixrClient  # noqa: E402
from mixr.queries import AsyncRecipeQueries, CatalogQueries, RecipeQueries  # noqa: E402
from mixr.store import EntityCache, RecipeCache  # noqa: E402

__all__ = [
    "__version__",
    "AsyncMixrClient",
    "AsyncRecipeQueries",
    "CatalogQueries",
    "EntityCache",
    "MixrClient",
    "RecipeCache",
    "RecipeQueries",
]
