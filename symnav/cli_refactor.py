"""CLI commands for refactoring operations."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from .cli_groups import console, get_navigator, refactor_app, root_option, run_tool
from .reports import FileDiff


def _show_diffs(diffs: List[FileDiff]) -> None:
    for diff in diffs:
        typer.echo(f"{'='*60}")
        typer.echo(f"[MODIFY] {diff.path}")
        typer.echo(f"{'='*60}")
        typer.echo(diff.diff)


def _confirm(dry_run: bool, auto_apply: bool) -> bool:
    if dry_run:
        typer.echo("📋 Dry run - no changes applied")
        return False
    if not auto_apply and not typer.confirm("\n❓ Apply changes?", default=False):
        typer.echo("❌ Refactoring cancelled")
        return False
    return True


@refactor_app.command("rename")
def rename_symbol(
    old_name: str = typer.Argument(..., help="Current symbol name (Class.member allowed)"),
    new_name: str = typer.Argument(..., help="New symbol name"),
    root: Path = root_option(),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Declaration kind filter"),
    dry_run: bool = typer.Option(False, "--dry-run", "-p", help="Preview changes without applying"),
    auto_apply: bool = typer.Option(False, "--yes", "-y", help="Apply changes without confirmation"),
):
    """✏️  Rename a symbol and update all references.

    Example:
      symnav refactor rename old_function new_function
      symnav refactor rename UserModel.save persist --dry-run
    """
    navigator = get_navigator()
    typer.echo(f"🔄 Renaming '{old_name}' to '{new_name}'...")

    preview = run_tool(navigator.rename, root, old_name, new_name, kind, True)
    for message in preview.collisions:
        console.print(f"[yellow]⚠️  {message}[/yellow]", highlight=False)
    if not preview.changed_files:
        typer.echo("Nothing to change.")
        return

    typer.echo(f"\n📝 Files to modify: {len(preview.changed_files)}\n")
    _show_diffs(preview.diffs)
    if not _confirm(dry_run, auto_apply):
        return

    typer.echo("\n✨ Applying rename...")
    result = run_tool(navigator.rename, root, old_name, new_name, kind, False)
    typer.echo(f"✅ Renamed in {len(result.changed_files)} file(s)")


@refactor_app.command("rewrite")
def rewrite(
    find: str = typer.Argument(..., help="Expression to find, e.g. 'print(x)'"),
    replace: str = typer.Argument(..., help="Replacement expression"),
    root: Path = root_option(),
    dry_run: bool = typer.Option(False, "--dry-run", "-p", help="Preview changes without applying"),
    auto_apply: bool = typer.Option(False, "--yes", "-y", help="Apply changes without confirmation"),
):
    """🔁 Replace every structurally equal expression.

    Example:
      symnav refactor rewrite "os.path.join(a, b)" "a / b" --dry-run
    """
    navigator = get_navigator()
    preview = run_tool(navigator.rewrite, root, find, replace, True)
    if not preview.changed_files:
        typer.echo("No matches.")
        return

    typer.echo(f"📝 {preview.total_changes} match(es) in {len(preview.changed_files)} file(s)\n")
    _show_diffs(preview.diffs)
    if not _confirm(dry_run, auto_apply):
        return

    result = run_tool(navigator.rewrite, root, find, replace, False)
    typer.echo(f"✅ Rewrote {result.total_changes} expression(s) in {len(result.changed_files)} file(s)")
