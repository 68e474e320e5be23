"""Configuration commands backed by config.toml."""

from __future__ import annotations

import typer
from rich.table import Table

from . import config, config_manager
from .cli_groups import config_app, console


@config_app.command("show")
def show_config():
    """📋 Show effective settings and where they are stored."""
    table = Table(title=f"Settings ({config_manager.CONFIG_FILE})", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    rows = (
        ("cache.ttl_seconds", config.CACHE_TTL),
        ("cache.sweep_interval_seconds", config.CACHE_SWEEP_INTERVAL),
        ("cache.check_interval_seconds", config.CACHE_CHECK_INTERVAL),
        ("limits.usages", config.DEFAULT_USAGE_LIMIT),
        ("limits.test_usages", config.DEFAULT_TEST_USAGE_LIMIT),
        ("limits.dependencies", config.DEFAULT_DEPENDENCY_LIMIT),
        ("limits.dead_code", config.DEFAULT_DEAD_CODE_LIMIT or "unlimited"),
    )
    for name, value in rows:
        table.add_row(name, str(value))
    console.print(table)


@config_app.command("set")
def set_config(
    key: str = typer.Argument(..., help="Setting as section.key, e.g. cache.ttl_seconds"),
    value: str = typer.Argument(..., help="New value"),
):
    """✏️  Store a setting in config.toml (applies to the next run)."""
    section, _, name = key.partition(".")
    if not name:
        console.print("[red]✗[/red] Use section.key, e.g. limits.usages")
        raise typer.Exit(1)
    try:
        saved = config_manager.save_setting(section, name, config_manager.parse_value(value))
    except ValueError as exc:
        console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(1)
    if not saved:
        console.print(f"[red]✗[/red] Could not write {config_manager.CONFIG_FILE}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {key} = {value}")
