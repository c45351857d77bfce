"""
Root Typer application for the labrules CLI.

Commands operate directly on the configured document store
(``--store`` or ``LABRULES_STORE_URL``); ``serve`` starts the REST API.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="labrules",
    help="labrules: lab result validation algorithms and workflows.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from labrules import __version__

        typer.echo(f"labrules {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Structured log level"),
) -> None:
    """labrules CLI: manage algorithms and workflows, run them, generate scrapers."""
    from labrules.core.logging import configure_logging

    configure_logging(level=log_level, json_format=False, to_stderr=True)


# ── Sub-command registration ─────────────────────────────────────────────

from labrules.cli.algorithms import app as algorithms_app  # noqa: E402
from labrules.cli.catalog import app as catalog_app  # noqa: E402
from labrules.cli.run import app as run_app  # noqa: E402
from labrules.cli.scraper import app as scraper_app  # noqa: E402
from labrules.cli.serve import serve  # noqa: E402
from labrules.cli.workflows import app as workflows_app  # noqa: E402

app.add_typer(algorithms_app, name="algorithms", help="Algorithm management.")
app.add_typer(workflows_app, name="workflows", help="Workflow management.")
app.add_typer(run_app, name="run", help="Execute algorithms and workflows.")
app.add_typer(catalog_app, name="catalog", help="Parameter definitions and templates.")
app.add_typer(scraper_app, name="scraper", help="Scraper code generation.")
app.command("serve", help="Start the API server.")(serve)
