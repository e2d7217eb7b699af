"""Auth commands -- manage the bearer token used for ``/api/users/...``.

The token is stored by :class:`~mixr.config.TokenStore`; ``MIXR_TOKEN`` and
``--token`` still take precedence over it (see
:func:`~mixr.config.resolve_settings`).

Typical workflow::

    mixr auth set-token eyJhbGci...
    mixr auth status
    mixr auth clear
"""

from __future__ import annotations

import typer

from mixr.commands import get_settings, open_client
from mixr.config import TokenStore
from mixr.output import info, success, warning


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("set-token")
def auth_set_token(
    token: str = typer.Argument(help="Bearer token issued by the MIXR API."),
) -> None:
    """Store a bearer token for later invocations."""
    if not token.strip():
        warning("Refusing to store an empty token.")
        raise typer.Exit(code=2)
    TokenStore().save(token.strip())
    success("Token saved.")


@auth_app.command("clear")
def auth_clear() -> None:
    """Forget the stored bearer token."""
    TokenStore().clear()
    success("Token removed.")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Report whether a token is configured and who it belongs to."""
    settings = get_settings(ctx)
    if not settings.token:
        info("No token configured.")
        return

    with open_client(ctx) as client:
        user = client.get_current_user()
    success(f"Authenticated as {user.display_name or user.email} ({user.email}).")
