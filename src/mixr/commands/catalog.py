"""Catalog commands -- moods, equipment and ingredients.

Read-only views of the lists the recipe generator draws from::

    mixr moods list
    mixr equipment list --subcategory glassware
    mixr ingredients subcategories
"""

from __future__ import annotations

from typing import Optional

import typer

from mixr.commands import open_client
from mixr.models import EquipmentSubcategory, IngredientSubcategory
from mixr.output import format_response, print_models


moods_app = typer.Typer(no_args_is_help=True)
equipment_app = typer.Typer(no_args_is_help=True)
ingredients_app = typer.Typer(no_args_is_help=True)

_CATALOG_COLUMNS = ["id", "subcategory", "name", "icon"]


# ------------------------------------------------------------------ #
# Moods
# ------------------------------------------------------------------ #


@moods_app.command("list")
def moods_list(ctx: typer.Context) -> None:
    """List every mood the generator supports."""
    with open_client(ctx) as client:
        moods = client.get_moods()
    print_models(moods, ["id", "emoji", "name", "description"], title="Moods")


@moods_app.command("get")
def moods_get(
    ctx: typer.Context,
    mood_id: int = typer.Argument(help="Mood id."),
) -> None:
    """Show a single mood."""
    with open_client(ctx) as client:
        format_response(client.get_mood_by_id(mood_id))


# ------------------------------------------------------------------ #
# Equipment
# ------------------------------------------------------------------ #


@equipment_app.command("list")
def equipment_list(
    ctx: typer.Context,
    subcategory: Optional[EquipmentSubcategory] = typer.Option(
        None, "--subcategory", "-s", help="Only this subcategory."
    ),
) -> None:
    """List equipment, optionally filtered by subcategory."""
    with open_client(ctx) as client:
        items = client.get_equipment(subcategory)
    print_models(items, _CATALOG_COLUMNS, title="Equipment")


@equipment_app.command("get")
def equipment_get(
    ctx: typer.Context,
    equipment_id: int = typer.Argument(help="Equipment id."),
) -> None:
    """Show a single piece of equipment."""
    with open_client(ctx) as client:
        format_response(client.get_equipment_by_id(equipment_id))


@equipment_app.command("subcategories")
def equipment_subcategories(ctx: typer.Context) -> None:
    """List equipment subcategories."""
    with open_client(ctx) as client:
        format_response(client.get_equipment_subcategories())


# ------------------------------------------------------------------ #
# Ingredients
# ------------------------------------------------------------------ #


@ingredients_app.command("list")
def ingredients_list(
    ctx: typer.Context,
    subcategory: Optional[IngredientSubcategory] = typer.Option(
        None, "--subcategory", "-s", help="Only this subcategory."
    ),
) -> None:
    """List ingredients, optionally filtered by subcategory."""
    with open_client(ctx) as client:
        items = client.get_ingredients(subcategory)
    print_models(items, _CATALOG_COLUMNS, title="Ingredients")


@ingredients_app.command("get")
def ingredients_get(
    ctx: typer.Context,
    ingredient_id: int = typer.Argument(help="Ingredient id."),
) -> None:
    """Show a single ingredient."""
    with open_client(ctx) as client:
        format_response(client.get_ingredient_by_id(ingredient_id))


@ingredients_app.command("subcategories")
def ingredients_subcategories(ctx: typer.Context) -> None:
    """List ingredient subcategories."""
    with open_client(ctx) as client:
        format_response(client.get_ingredient_subcategories())
