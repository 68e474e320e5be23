"""Project health commands: dead code, complexity, dependencies and metrics."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table

from . import config
from .cli_groups import console, get_navigator, health_app, print_json, root_option, run_tool


def _complexity_color(cyclomatic: int) -> str:
    if cyclomatic <= 5:
        return "green"
    elif cyclomatic <= 10:
        return "yellow"
    return "red"


@health_app.command("dead")
def dead(
    root: Path = root_option(),
    include_exported: bool = typer.Option(False, "--include-exported", "-e", help="Also report exported names."),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
    limit: Optional[int] = typer.Option(config.DEFAULT_DEAD_CODE_LIMIT, "--limit", "-n", help="Max symbols shown."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """💀 Find declarations nothing refers to.

    Example:
      symnav health dead
      symnav health dead --include-exported --package mypkg
    """
    report = run_tool(get_navigator().find_dead_code, root, include_exported, package, limit)
    if as_json:
        print_json(report)
        return
    if not report.total:
        console.print("[green]✓[/green] No dead code found.")
        return

    for pkg, symbols in report.grouped().items():
        table = Table(title=pkg, show_header=True, title_justify="left")
        table.add_column("Name", style="cyan")
        table.add_column("Kind")
        table.add_column("Location")
        table.add_column("Exported")
        for sym in symbols:
            table.add_row(sym.name, sym.kind, f"{sym.file}:{sym.line}", "yes" if sym.exported else "")
        console.print(table)

    kinds = ", ".join(f"{kind}: {count}" for kind, count in sorted(report.by_kind.items()))
    console.print(f"\n[bold]{report.total}[/bold] unused ({kinds}); {report.exported_count} exported")
    if report.has_more:
        console.print(f"[dim]Showing {len(report.unused)} of {report.total}; raise --limit to see more.[/dim]")


@health_app.command("complexity")
def complexity(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
    threshold: int = typer.Option(1, "--min", help="Only functions with at least this cyclomatic complexity."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🌀 Cyclomatic complexity, nesting and length of every function."""
    grouped = run_tool(get_navigator().analyze_complexity, root, package)
    if as_json:
        print_json({file: entries for file, entries in grouped.items()})
        return

    table = Table(title="Function Complexity", show_header=True)
    table.add_column("Function", style="cyan")
    table.add_column("Location")
    table.add_column("Cyclomatic", justify="right")
    table.add_column("Nesting", justify="right")
    table.add_column("Lines", justify="right")
    shown = 0
    for file, entries in grouped.items():
        for entry in entries:
            if entry.cyclomatic < threshold:
                continue
            color = _complexity_color(entry.cyclomatic)
            table.add_row(
                entry.name, f"{file}:{entry.line}",
                f"[{color}]{entry.cyclomatic}[/{color}]", str(entry.nesting), str(entry.lines),
            )
            shown += 1
    if not shown:
        console.print("[yellow]No functions matched.[/yellow]")
        return
    console.print(table)


@health_app.command("deps")
def deps(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🕸️  Module dependencies, fan-in/fan-out and import cycles."""
    result = run_tool(get_navigator().analyze_dependencies, root, package)
    if as_json:
        print_json(result)
        return

    table = Table(title="Module Dependencies", show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Fan-in", justify="right")
    table.add_column("Fan-out", justify="right")
    table.add_column("Imports")
    for module, info in result["modules"].items():
        table.add_row(module, str(info["fan_in"]), str(info["fan_out"]), ", ".join(info["imports"]))
    console.print(table)

    if result["cycles"]:
        console.print("\n[bold red]⚠️  Import cycles[/bold red]")
        for cycle in result["cycles"]:
            console.print(f"  • {' → '.join(cycle)}", highlight=False)
    else:
        console.print("\n[green]✓[/green] No import cycles.")


@health_app.command("metrics")
def metrics(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """📊 Headline project metrics."""
    result = run_tool(get_navigator().metrics_summary, root, package)
    if as_json:
        print_json(result)
        return

    table = Table(show_header=True, show_lines=False)
    table.add_column("Metric", style="cyan", width=22)
    table.add_column("Value", justify="right")
    labels = (
        ("modules", "Modules"),
        ("files", "Files"),
        ("lines", "Lines"),
        ("classes", "Classes"),
        ("interfaces", "Interfaces"),
        ("functions", "Functions & methods"),
        ("average_cyclomatic", "Avg. cyclomatic"),
        ("dead", "Dead symbols"),
        ("exported_unused", "Exported but unused"),
    )
    for key, label in labels:
        table.add_row(label, str(result[key]))
    console.print(Panel.fit(table, title="[bold]Project Metrics[/bold]", border_style="cyan"))
