"""Typer-based CLI for symnav semantic navigation and refactoring."""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from . import cli_config, cli_explore, cli_health, cli_refactor  # noqa: F401  (register commands)
from .cli_groups import config_app, explore_app, health_app, refactor_app

app = typer.Typer(
    help="🧭 symnav — semantic symbol navigation, health checks and safe refactoring for Python projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(explore_app, name="explore")
app.add_typer(health_app, name="health")
app.add_typer(refactor_app, name="refactor")
app.add_typer(config_app, name="config")


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"symnav v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    package_logger = logging.getLogger("symnav")
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log every tool call and cache decision."),
):
    """symnav: navigate, analyze and refactor Python code by meaning, not text."""
    _configure_logging(verbose)


if __name__ == "__main__":
    app()
