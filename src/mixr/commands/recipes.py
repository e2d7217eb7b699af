"""Recipe commands -- browse, fetch and generate recipes.

Every recipe fetched here also lands in the durable recipe cache, so
``mixr recipes get ID --cached`` and ``mixr cache show`` work offline
afterwards.

Typical workflow::

    mixr recipes list --limit 5
    mixr recipes get 42
    mixr recipes generate --mood 1 --equipment 1 --equipment 2 --ingredient 3
"""

from __future__ import annotations

from typing import Optional

import typer

from mixr.commands import open_cache, open_client, query_windows
from mixr.models import GenerateRecipeRequest
from mixr.output import format_response, info, print_models, success
from mixr.queries import RecipeQueries


recipes_app = typer.Typer(no_args_is_help=True)

RECIPE_COLUMNS = ["id", "name", "description", "ingredients"]


@recipes_app.command("list")
def recipes_list(
    ctx: typer.Context,
    limit: int = typer.Option(10, "--limit", "-l", min=1, help="Page size."),
    offset: int = typer.Option(0, "--offset", min=0, help="Start offset."),
) -> None:
    """Fetch one page of recipes and make it the cached list view."""
    cache = open_cache(ctx)
    with open_client(ctx) as client:
        queries = RecipeQueries(client, cache, page_size=limit, **query_windows(ctx))
        page = queries.list_page(offset)
    print_models(page.recipes, RECIPE_COLUMNS, title="Recipes")
    if page.next_offset is not None:
        info(f"More recipes: mixr recipes list --limit {limit} --offset {page.next_offset}")


@recipes_app.command("get")
def recipes_get(
    ctx: typer.Context,
    recipe_id: int = typer.Argument(help="Recipe id."),
    cached: bool = typer.Option(
        False, "--cached", help="Answer from the local cache when possible."
    ),
) -> None:
    """Show one recipe, fetching it from the API unless --cached finds it locally."""
    cache = open_cache(ctx)
    if cached:
        recipe = cache.get_one(recipe_id)
        if recipe is not None:
            info(f"Recipe {recipe_id} served from cache.")
            format_response(recipe)
            return

    with open_client(ctx) as client:
        recipe = RecipeQueries(client, cache, **query_windows(ctx)).get(recipe_id)
    format_response(recipe)


@recipes_app.command("generate")
def recipes_generate(
    ctx: typer.Context,
    mood_id: int = typer.Option(..., "--mood", "-m", help="Mood id."),
    equipment_ids: Optional[list[int]] = typer.Option(
        None, "--equipment", "-e", help="Equipment id (repeatable)."
    ),
    ingredient_ids: Optional[list[int]] = typer.Option(
        None, "--ingredient", "-i", help="Ingredient id (repeatable)."
    ),
) -> None:
    """Ask the API for a new recipe and cache it."""
    request = GenerateRecipeRequest(
        mood_id=mood_id,
        equipment_ids=equipment_ids or [],
        ingredient_ids=ingredient_ids or [],
    )
    cache = open_cache(ctx)
    with open_client(ctx) as client:
        recipe = RecipeQueries(client, cache, **query_windows(ctx)).generate(request)
    success(f'Generated "{recipe.name}" (id {recipe.id}).')
    format_response(recipe)
