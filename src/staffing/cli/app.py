"""
Root Typer application for the staffing CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from staffing.cli.config import app as config_app
from staffing.cli.demo import demo_command
from staffing.cli.descriptor import descriptor_command
from staffing.cli.rows import rows_command
from staffing.core.logging import configure_logging
from staffing.core.settings import get_settings

app = Typer(
    name="staffing",
    help="staffing — optimistic mutation cache for the staffing dashboard.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("staffing-cache")
        except PackageNotFoundError:
            v = "0.1.0"
        typer.echo(f"staffing {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """staffing CLI — inspect cache keys, flatten tables, run the demo."""
    settings = get_settings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_format=settings.log_format == "json",
    )


# ── Sub-command registration ─────────────────────────────────────────────

app.command("descriptor")(descriptor_command)
app.command("rows")(rows_command)
app.command("demo")(demo_command)
app.add_typer(config_app, name="config", help="Configuration management.")
