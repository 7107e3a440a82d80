"""Rich output formatting helpers for the ResolveKit CLI."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


def print_resolution_summary(
    success: bool,
    resolved: dict[str, str],
    errors: list[str],
) -> None:
    """Print dependency resolution results.

    Args:
        success: Whether resolution succeeded.
        resolved: Origin to selected revision (if success).
        errors: Failure descriptions (if failure).
    """
    if success:
        console.print(
            Panel("[bold green]Resolution successful[/bold green]",
                  title="Dependency Resolution")
        )
        if resolved:
            table = Table(show_header=True)
            table.add_column("Dependency", style="bold")
            table.add_column("Resolved Version")
            for origin in sorted(resolved):
                table.add_row(origin, resolved[origin])
            console.print(table)
        else:
            console.print("[dim]No dependencies to resolve.[/dim]")
    else:
        console.print(
            Panel("[bold red]Resolution failed[/bold red]",
                  title="Dependency Resolution")
        )
        for error in errors:
            console.print(f"  [red]- {error}[/red]")


def print_lockfile_diff(diff: dict[str, Any]) -> None:
    """Print the changes between a previous and a new lockfile.

    Args:
        diff: Dictionary from ``ResolvedLockfile.diff()``.
    """
    if not (diff["added"] or diff["removed"] or diff["changed"]):
        console.print("[dim]No changes to the lockfile.[/dim]")
        return

    table = Table(title="Lockfile Changes", show_header=True)
    table.add_column("Dependency", style="bold")
    table.add_column("Old")
    table.add_column("New")
    for origin in diff["added"]:
        table.add_row(origin, "-", "[green]added[/green]")
    for origin in diff["removed"]:
        table.add_row(origin, "[red]removed[/red]", "-")
    for change in diff["changed"]:
        table.add_row(change["origin"], change["old"], f"[cyan]{change['new']}[/cyan]")
    console.print(table)
