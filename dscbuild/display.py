"""Console status lines for a build run."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.table import Table

from .models import BuildOutcome

console = Console(highlight=False)


def project_status(action: str, project: str) -> None:
    console.print(f"[cyan]{action} {project} ...[/cyan]")


def note(message: str) -> None:
    console.print(f"[dim]{message}[/dim]")


def failure(message: str) -> None:
    console.print(f"[bold red]{message}[/bold red]")


def staged_summary(target: Path, root: Path) -> None:
    try:
        relative = target.relative_to(root)
    except ValueError:
        relative = target
    console.print(f"\n[green]EXE's are copied to {target} ({relative})[/green]")


def outcome_table(outcome: BuildOutcome, title: str) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Project")
    table.add_column("Result")
    table.add_column("Time", justify="right")
    failed = set(outcome.failures)
    for project in outcome.attempted:
        result = "[red]failed[/red]" if project in failed else "[green]ok[/green]"
        seconds = outcome.durations_ms.get(project, 0) / 1000
        table.add_row(project, result, f"{seconds:.1f}s")
    return table
