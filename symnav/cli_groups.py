"""Command groups and helpers shared by the CLI modules.

Provides logical grouping of commands under:
  symnav explore   — Navigation and reading
  symnav health    — Dead code, complexity, dependencies and metrics
  symnav refactor  — Rename and structural rewrite
  symnav config    — Settings stored in config.toml
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import typer
from rich.console import Console

from .errors import NavigatorError, PartialWriteFailure
from .orchestrator import Navigator

T = TypeVar("T")

console = Console()

# ── Navigation group ─────────────────────────────────────────
explore_app = typer.Typer(
    help="🧭 Explore — packages, symbols, references and sources.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Health group ─────────────────────────────────────────────
health_app = typer.Typer(
    help="🏥 Health — dead code, complexity, dependencies and metrics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Refactoring group ────────────────────────────────────────
refactor_app = typer.Typer(
    help="✏️  Refactor — safe rename and structural rewrite.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ── Configuration group ──────────────────────────────────────
config_app = typer.Typer(
    help="⚙️  Configuration — cache timings and default limits.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_navigator: Optional[Navigator] = None


def get_navigator() -> Navigator:
    """Return the process-wide navigator (created on first use)."""
    global _navigator
    if _navigator is None:
        _navigator = Navigator()
    return _navigator


def root_option() -> Any:
    return typer.Option(Path("."), "--root", "-r", help="Project root to analyze.")


def run_tool(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call a navigator tool, turning symnav errors into a red message and exit code 1."""
    try:
        return func(*args, **kwargs)
    except PartialWriteFailure as exc:
        console.print(f"[red]✗[/red] {exc}")
        if exc.changed_files:
            console.print("[yellow]Files already written:[/yellow]")
            for path in exc.changed_files:
                console.print(f"  • {path}")
        raise typer.Exit(1)
    except NavigatorError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)


def print_json(data: Any) -> None:
    """Print a result (dataclass, list or dict) as JSON."""
    if is_dataclass(data):
        data = asdict(data)
    elif isinstance(data, list):
        data = [asdict(item) if is_dataclass(item) else item for item in data]
    elif isinstance(data, dict):
        data = {
            key: [asdict(v) if is_dataclass(v) else v for v in value] if isinstance(value, list) else value
            for key, value in data.items()
        }
    typer.echo(json.dumps(data, indent=2))
