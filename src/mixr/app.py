"""Typer application and CLI entry point for mixr.

This module wires together the top-level Typer application and registers
the built-in sub-command groups (``moods``, ``equipment``, ``ingredients``,
``recipes``, ``cache``, ``auth``) plus the ``health`` and ``version``
commands.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs a SIGINT handler, invokes the Typer app, and
maps :class:`~mixr.exceptions.MixrError` to its exit code.  Any other
exception is written to a crash log under the data directory.

See Also:
    :mod:`mixr.config`: Settings resolution used by every command.
    :mod:`mixr.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from mixr import __version__
from mixr.commands import open_client
from mixr.commands.auth import auth_app
from mixr.commands.cache import cache_app
from mixr.commands.catalog import equipment_app, ingredients_app, moods_app
from mixr.commands.recipes import recipes_app
from mixr.exit_codes import EXIT_GENERIC_FAILURE
from mixr.output import format_response


app = typer.Typer(
    name="mixr",
    help="Browse, generate and cache cocktail recipes from the MIXR API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(moods_app, name="moods", help="Moods the generator can target.")
app.add_typer(equipment_app, name="equipment", help="Bar equipment catalog.")
app.add_typer(ingredients_app, name="ingredients", help="Ingredient catalog.")
app.add_typer(recipes_app, name="recipes", help="Browse, fetch and generate recipes.")
app.add_typer(cache_app, name="cache", help="Local recipe cache.")
app.add_typer(auth_app, name="auth", help="Bearer token management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"mixr {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, quiet: bool, no_color: bool) -> None:
    """Route the ``mixr`` logger to stderr through a Rich handler.

    The handler is rebuilt on every invocation so it always targets the
    current ``sys.stderr``.
    """
    logger = logging.getLogger("mixr")
    for handler in list(logger.handlers):
        if getattr(handler, "_mixr_cli", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(file=sys.stderr, no_color=no_color, stderr=True),
        show_time=False,
        show_path=False,
    )
    handler._mixr_cli = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="MIXR API base URL (overrides MIXR_BASE_URL)."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Bearer token (overrides MIXR_TOKEN and the stored token)."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~mixr.output.OutputManager` and the
    ``mixr`` logger from CLI flags, and stores the connection overrides in
    the Typer context so that sub-commands can resolve settings via
    :func:`~mixr.commands.get_settings`.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        base_url: API base URL override (highest precedence).
        token: Bearer token override (highest precedence).
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output.
    """
    from mixr.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging(verbose, quiet, no_color)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url
    ctx.obj["token"] = token
    ctx.obj["verbose"] = verbose


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the API is up."""
    with open_client(ctx) as client:
        format_response(client.health_check())


@app.command("version")
def version_command(ctx: typer.Context) -> None:
    """Show the API's version banner."""
    with open_client(ctx) as client:
        format_response(client.get_version())


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from mixr.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``mixr`` console script.

    Unhandled :class:`~mixr.exceptions.MixrError` instances cause a clean
    exit with the error's ``exit_code``.  All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from mixr.exceptions import MixrError
        from mixr.output import error

        if isinstance(exc, MixrError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
