"""Navigation commands: packages, symbols, references, imports and readers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from .cli_groups import console, explore_app, get_navigator, print_json, root_option, run_tool


def _print_locations(title: str, result: Dict[str, Any], key: str) -> None:
    grouped: Dict[str, List[Dict[str, Any]]] = result[key]
    console.print(f"[bold cyan]{title}[/bold cyan] "
                  f"[dim]({result['total']} total, offset {result['offset']})[/dim]")
    for file, entries in grouped.items():
        console.print(f"\n[bold]{file}[/bold]")
        for entry in entries:
            console.print(f"  [green]{entry['line']:>5}[/green]  {entry['snippet']}", highlight=False)
    if result["has_more"]:
        console.print("\n[dim]More results available; use --offset to page.[/dim]")


@explore_app.command("packages")
def packages(root: Path = root_option()):
    """📦 List every module under the project root."""
    for name in run_tool(get_navigator().list_packages, root):
        typer.echo(name)


@explore_app.command("symbols")
def symbols(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🔤 List module- and class-level symbols grouped by package and file."""
    result = run_tool(get_navigator().list_symbols, root, package)
    if as_json:
        print_json(result)
        return
    for pkg, files in result.items():
        console.print(f"\n[bold cyan]{pkg}[/bold cyan]")
        for file, entries in files.items():
            console.print(f"  [dim]{file}[/dim]")
            for entry in entries:
                marker = "" if entry["exported"] else " [dim](private)[/dim]"
                console.print(f"    {entry['line']:>5}  {entry['kind']:<9} {entry['name']}{marker}")


@explore_app.command("refs")
def refs(
    name: str = typer.Argument(..., help="Symbol name (Class.member allowed)."),
    root: Path = root_option(),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Only references in this file."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Declaration kind filter."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Page size (default: unlimited)."),
    offset: int = typer.Option(0, "--offset", help="Results to skip."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🔗 Find references to a symbol."""
    result = run_tool(get_navigator().find_references, root, name, file, kind, limit, offset)
    if as_json:
        print_json(result)
    else:
        _print_locations(f"References to {name}", result, "references")


@explore_app.command("defs")
def defs(
    name: str = typer.Argument(..., help="Symbol name (Class.member allowed)."),
    root: Path = root_option(),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Only definitions in this file."),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Declaration kind filter."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Page size (default: unlimited)."),
    offset: int = typer.Option(0, "--offset", help="Results to skip."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """📍 Find every definition site of a name."""
    result = run_tool(get_navigator().find_definitions, root, name, file, kind, limit, offset)
    if as_json:
        print_json(result)
    else:
        _print_locations(f"Definitions of {name}", result, "definitions")


@explore_app.command("imports")
def imports(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
):
    """📥 List import statements grouped by file."""
    result = run_tool(get_navigator().list_imports, root, package)
    for file, entries in result.items():
        console.print(f"[bold]{file}[/bold]")
        for entry in entries:
            console.print(f"  {entry['line']:>5}  {entry['path']}", highlight=False)


@explore_app.command("interfaces")
def interfaces(
    root: Path = root_option(),
    package: Optional[str] = typer.Option(None, "--package", "-p", help="Only this package."),
):
    """🧩 List Protocols and abstract base classes."""
    result = run_tool(get_navigator().list_interfaces, root, package)
    if not result:
        console.print("[yellow]No interfaces found.[/yellow]")
        return
    for pkg, entries in result.items():
        console.print(f"\n[bold cyan]{pkg}[/bold cyan]")
        for entry in entries:
            methods = ", ".join(m["name"] for m in entry["methods"]) or "-"
            console.print(f"  {entry['name']} [dim]({entry['file']}:{entry['line']})[/dim]: {methods}")


@explore_app.command("impls")
def impls(
    name: str = typer.Argument(..., help="Interface (Protocol or ABC) name."),
    root: Path = root_option(),
):
    """🧬 Find classes that structurally satisfy an interface."""
    result = run_tool(get_navigator().find_implementations, root, name)
    if not result:
        console.print(f"[yellow]No implementations of {name}.[/yellow]")
        return
    table = Table(title=f"Implementations of {name}", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Package")
    table.add_column("Location")
    table.add_column("Kind")
    for impl in result:
        table.add_row(
            impl.type, impl.package, f"{impl.file}:{impl.line}",
            "class" if impl.is_type else "interface",
        )
    console.print(table)


@explore_app.command("func")
def func(
    name: str = typer.Argument(..., help="Function or Class.method name."),
    root: Path = root_option(),
):
    """📖 Show the source of a function or method."""
    result = run_tool(get_navigator().read_function, root, name)
    title = f"{result['file']}:{result['start_line']}-{result['end_line']}"
    console.print(Panel(
        Syntax(result["source"], "python", line_numbers=True, start_line=result["start_line"]),
        title=title,
    ))


@explore_app.command("file")
def file(
    path: str = typer.Argument(..., help="File path relative to the root."),
    root: Path = root_option(),
    mode: str = typer.Option("raw", "--mode", "-m", help="raw, summary or ast."),
    kinds: Optional[str] = typer.Option(None, "--kinds", help="Comma-separated symbol kinds to keep."),
    contains: Optional[str] = typer.Option(None, "--contains", help="Keep symbols whose name contains this."),
    exported: bool = typer.Option(False, "--exported", help="Only exported symbols."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """📄 Read a file as source or as an outline."""
    symbol_kinds = [k.strip() for k in kinds.split(",") if k.strip()] if kinds else None
    result = run_tool(
        get_navigator().read_file, root, path, mode,
        symbol_kinds=symbol_kinds, name_contains=contains, exported_only=exported,
    )
    if as_json:
        print_json(result)
        return
    if mode == "raw":
        typer.echo(result["source"], nl=False)
        return
    console.print(f"[bold]{result['file']}[/bold] [dim]({result['lines']} lines, {result['package']})[/dim]")
    for entry in result["imports"]:
        console.print(f"  import {entry['path']} [dim](line {entry['line']})[/dim]", highlight=False)
    for entry in result["symbols"]:
        detail = ""
        if mode == "ast":
            detail = f" [dim]{entry['signature'] or entry['type']} (to line {entry['end_line']})[/dim]"
        console.print(f"  {entry['line']:>5}  {entry['kind']:<9} {entry['name']}{detail}", highlight=False)


@explore_app.command("schema")
def schema(
    root: Path = root_option(),
    depth: str = typer.Option("standard", "--depth", "-d", help="summary, standard or deep."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🗺️  Project architecture: modules, imports, symbols and dependencies."""
    result = run_tool(get_navigator().project_schema, root, depth)
    if as_json:
        print_json(result)
        return
    title = result["name"]
    if "python_requires" in result:
        title += f" [dim](python {result['python_requires']})[/dim]"
    console.print(f"[bold cyan]{title}[/bold cyan]")

    table = Table(show_header=True)
    table.add_column("Module", style="cyan")
    table.add_column("Imports")
    if depth != "summary":
        table.add_column("Classes")
        table.add_column("Interfaces")
        table.add_column("Functions")
    for pkg in result["packages"]:
        row = [pkg["path"], str(len(pkg["imports"]))]
        if depth != "summary":
            symbols = pkg["symbols"]
            row.extend(", ".join(symbols[key]) or "-" for key in ("classes", "interfaces", "functions"))
        table.add_row(*row)
    console.print(table)

    counts = result["counts"]
    console.print(
        f"{counts['packages']} modules, {counts['classes']} classes, "
        f"{counts['interfaces']} interfaces, {counts['functions']} functions"
    )
    if result["external_deps"]:
        console.print(f"External dependencies: {', '.join(result['external_deps'])}", highlight=False)
    for iface in result.get("interfaces", []):
        methods = ", ".join(m["name"] for m in iface.get("methods", []))
        suffix = f": {methods}" if methods else ""
        console.print(f"  {iface['name']} [dim]({iface['defined_in']})[/dim]{suffix}", highlight=False)


@explore_app.command("class")
def read_class(
    name: str = typer.Argument(..., help="Class name."),
    root: Path = root_option(),
    no_methods: bool = typer.Option(False, "--no-methods", help="Hide methods."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🏛️  Show a class's fields and methods."""
    result = run_tool(get_navigator().read_class, root, name, not no_methods)
    if as_json:
        print_json(result)
        return
    bases = f"({', '.join(result['bases'])})" if result["bases"] else ""
    console.print(f"[bold cyan]{result['name']}{bases}[/bold cyan] "
                  f"[dim]{result['file']}:{result['start_line']}-{result['end_line']}[/dim]")
    for field in result["fields"]:
        suffix = f": {field['type']}" if field["type"] else ""
        console.print(f"  {field['line']:>5}  {field['name']}{suffix}", highlight=False)
    for method in result.get("methods", []):
        console.print(f"  {method['line']:>5}  def {method['name']}{method['signature']}", highlight=False)


@explore_app.command("context")
def context(
    name: str = typer.Argument(..., help="Symbol name (Class.member allowed)."),
    root: Path = root_option(),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Declaration kind filter."),
    usages: Optional[int] = typer.Option(None, "--usages", help="Max key usages."),
    test_usages: Optional[int] = typer.Option(None, "--test-usages", help="Max test usages."),
    dependencies: Optional[int] = typer.Option(None, "--deps", help="Max dependencies."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """🎯 Definition, key usages, test usages and dependencies of a symbol."""
    limits = {
        key: value for key, value in
        (("usages", usages), ("test_usages", test_usages), ("dependencies", dependencies))
        if value is not None
    }
    result = run_tool(get_navigator().best_context, root, name, kind, **limits)
    if as_json:
        print_json(result)
        return

    d = result.definition
    console.print(f"[bold cyan]Definition[/bold cyan]  {d.file}:{d.line}")
    console.print(f"  {d.snippet}", highlight=False)
    sections = (
        ("Other definitions", result.additional_definitions),
        ("Key usages", result.key_usages),
        ("Test usages", result.test_usages),
    )
    for title, entries in sections:
        if not entries:
            continue
        console.print(f"\n[bold cyan]{title}[/bold cyan]")
        for entry in entries:
            console.print(f"  {entry.file}:{entry.line}  {entry.snippet}", highlight=False)
    if result.dependencies:
        console.print("\n[bold cyan]Dependencies[/bold cyan]")
        for dep in result.dependencies:
            users = ", ".join(dep.files)
            console.print(f"  {dep.path} [dim]({users})[/dim]", highlight=False)
