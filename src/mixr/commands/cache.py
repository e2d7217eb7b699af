"""Cache commands -- inspect or wipe the local recipe cache."""

from __future__ import annotations

import typer

from mixr.commands import open_cache
from mixr.commands.recipes import RECIPE_COLUMNS
from mixr.output import info, print_models, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("show")
def cache_show(ctx: typer.Context) -> None:
    """Show the cached recipe list view and how many recipes are cached."""
    cache = open_cache(ctx)
    recipes = cache.ordered_list
    info(f"{len(cache)} recipes cached, {len(recipes)} in the current list view.")
    print_models(recipes, RECIPE_COLUMNS, title="Cached recipes")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Drop every cached recipe and erase the durable snapshot."""
    open_cache(ctx).clear()
    success("Recipe cache cleared.")
