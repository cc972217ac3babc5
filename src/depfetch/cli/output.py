"""Rich output formatting helpers for the depfetch CLI.

Provides consistent terminal output for update reports, conflicts,
resolution errors and configuration closures.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from depfetch.core.configurations import ConfigurationGraph
from depfetch.core.report import UpdateReport

console = Console()


def print_diagnostics(report: UpdateReport) -> None:
    """Print version conflicts and resolution errors, if any."""
    if report.conflicts:
        console.print(f"[yellow]{len(report.conflicts)} conflict(s):[/yellow]")
        for line in report.conflicts:
            console.print(f"  {line}", markup=False)
    if report.errors:
        console.print(f"\n[red]{len(report.errors)} error(s):[/red]")
        for line in report.errors:
            console.print(f"  {line}", markup=False)


def print_update_report(report: UpdateReport) -> None:
    """Print one table per configuration, then the diagnostics.

    Args:
        report: Result of an update operation.
    """
    for configuration in report.configurations:
        table = Table(title=f"Configuration: {configuration.name}", show_header=True, header_style="bold")
        table.add_column("Module", style="bold")
        table.add_column("Version")
        table.add_column("Fetched", justify="right")
        table.add_column("Failed", justify="right")
        if not configuration.modules:
            console.print(f"[dim]{configuration.name}: no dependencies[/dim]")
            continue
        for module in configuration.modules:
            dep = module.dependency
            failed = Text(str(len(module.failed)), style="bold red" if module.failed else "dim")
            table.add_row(str(dep.module), dep.version, str(len(module.artifacts)), failed)
        console.print(table)

    print_diagnostics(report)

    if report.failed_count:
        console.print(
            Panel(f"[bold red]{report.failed_count} artifact(s) could not be fetched[/bold red]",
                  title="Update")
        )
    else:
        console.print(Panel("[bold green]Update successful[/bold green]", title="Update"))


def print_configuration_closures(graph: ConfigurationGraph) -> None:
    table = Table(title="Configurations", show_header=True, header_style="bold")
    table.add_column("Configuration", style="bold")
    table.add_column("Extends")
    table.add_column("Closure")
    for name in graph.names:
        table.add_row(name, ", ".join(graph.supers(name)) or "-", ", ".join(sorted(graph.closure(name))))
    console.print(table)
    for cycle in graph.cycles():
        console.print(f"[yellow]Cycle:[/yellow] {' -> '.join(cycle)}")
