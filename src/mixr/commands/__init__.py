"""Built-in ``mixr`` sub-commands.

Each module defines a :class:`typer.Typer` group registered on the root app
in :mod:`mixr.app`.  The helpers below turn the shared Typer context
(filled by :func:`~mixr.app.main_callback`) into resolved settings, an
endpoint client, and the durable recipe cache.
"""

from __future__ import annotations

import typer

from mixr.client import MixrClient
from mixr.config import create_storage, resolve_settings
from mixr.models import Settings
from mixr.store import RecipeCache


def get_settings(ctx: typer.Context) -> Settings:
    """Resolve settings once per invocation and memoise them on the context."""
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = resolve_settings(
            cli_base_url=obj.get("base_url"),
            cli_token=obj.get("token"),
        )
        obj["settings"] = settings
    return settings


def open_client(ctx: typer.Context) -> MixrClient:
    """Build a :class:`~mixr.client.MixrClient` from the resolved settings."""
    settings = get_settings(ctx)
    return MixrClient(
        settings.base_url,
        token=settings.token,
        timeout=settings.timeout,
        verify_ssl=settings.verify_ssl,
    )


def open_cache(ctx: typer.Context) -> RecipeCache:
    """The recipe cache backed by the configured snapshot storage."""
    return RecipeCache(create_storage(get_settings(ctx)))


def query_windows(ctx: typer.Context) -> dict[str, float]:
    """Freshness windows for :class:`~mixr.queries.RecipeQueries` from settings."""
    cache = get_settings(ctx).cache
    return {
        "list_stale_seconds": cache.list_stale_seconds,
        "detail_stale_seconds": cache.detail_stale_seconds,
    }
