"""Rich rendering of merge results, conflicts, differences and validation reports."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..merge.models import Conflict
from ..merge.models import DifferenceReport
from ..merge.models import MergeResult
from ..validation import ValidationResult


def render_stats(console: Console, result: MergeResult) -> None:
    """Print the service counters of a merge."""
    stats = result.stats
    table = Table(title="Merge Summary", show_header=True, header_style="bold cyan")
    table.add_column("Source services", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Updated", justify="right", style="cyan")
    table.add_column("Skipped", justify="right", style="yellow")
    table.add_column("Conflicted", justify="right", style="red")
    table.add_row(
        str(stats.total_source_services),
        str(stats.added),
        str(stats.updated),
        str(stats.skipped),
        str(stats.conflicted),
    )
    console.print(table)


def render_conflicts(console: Console, conflicts: list[Conflict] | tuple[Conflict, ...]) -> None:
    """Print one row per conflict with the differing fields side by side."""
    if not conflicts:
        console.print("[green]No conflicts.[/green]")
        return

    table = Table(title="Conflicts", show_header=True, header_style="bold red")
    table.add_column("Service", style="bold")
    table.add_column("Fields", style="yellow")
    table.add_column("Source")
    table.add_column("Target")

    for conflict in conflicts:
        fields = [name for name in ("command", "args", "env", "disabled") if name in conflict.conflicting_fields]
        table.add_row(
            escape(conflict.service_name),
            ", ".join(fields),
            escape(_describe_fields(conflict.source_value.to_dict(), fields)),
            escape(_describe_fields(conflict.target_value.to_dict(), fields)),
        )
    console.print(table)


def _describe_fields(data: dict, fields: list[str]) -> str:
    parts = []
    for name in fields:
        value = data.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        elif isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in value.items())
        parts.append(f"{name}: {value if value not in (None, '') else '-'}")
    return "\n".join(parts)


def render_messages(console: Console, result: MergeResult) -> None:
    """Print warnings and errors collected by a merge."""
    for warning in result.warnings:
        console.print(f"[yellow]⚠️ {escape(warning)}[/yellow]")

    if result.errors:
        content = Text()
        for error in result.errors:
            content.append("✗ ", style="red")
            content.append(f"{error}\n")
        console.print(
            Panel(
                content,
                title="[bold red]Merge Failed[/bold red]",
                border_style="red",
                padding=(1, 2),
            )
        )


def render_differences(console: Console, report: DifferenceReport, first_label: str, second_label: str) -> None:
    """Print the partition of service names between two records."""
    table = Table(title="Service Differences", show_header=True, header_style="bold cyan")
    table.add_column("Service", style="bold")
    table.add_column("Status")

    rows = [
        *((name, f"[green]only in {escape(first_label)}[/green]") for name in report.only_in_first),
        *((name, f"[blue]only in {escape(second_label)}[/blue]") for name in report.only_in_second),
        *((name, "[yellow]different[/yellow]") for name in report.different),
        *((name, "[dim]identical[/dim]") for name in report.identical),
    ]
    if not rows:
        console.print("[yellow]Neither configuration defines any services.[/yellow]")
        return

    for name, status in rows:
        table.add_row(escape(name), status)
    console.print(table)


def render_validation(console: Console, result: ValidationResult) -> None:
    """Print a validation report."""
    if result.valid and not result.warnings:
        console.print("[green]✓ Configuration is valid[/green]")
        return

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 1))
    table.add_column("", width=3)
    table.add_column("Service", style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Message")

    for issue in result.errors:
        table.add_row("[red]✗[/red]", escape(issue.service_name or "-"), issue.field, escape(issue.message))
    for issue in result.warnings:
        table.add_row("[yellow]![/yellow]", escape(issue.service_name or "-"), issue.field, escape(issue.message))
    console.print(table)

    for suggestion in result.suggestions:
        console.print(f"[dim]Tip: {escape(suggestion)}[/dim]")

    if result.valid:
        console.print("[green]✓ No errors[/green] [dim](warnings only)[/dim]")
    else:
        console.print(f"[red]✗ {len(result.errors)} error(s)[/red]")
