"""Merge command for the mcp-config CLI."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.prompt import Prompt

from ..console import console
from ..merge import Conflict
from ..merge import MergeInputError
from ..merge import MergeStrategy
from ..merge import Resolution
from ..merge import apply_resolutions
from ..merge import merge_multiple
from ..schema import ConfigurationRecord
from ..settings import SettingsManager
from ..store import ConfigFormatError
from ..store import ConfigStore
from ..ui import render_conflicts
from ..ui import render_messages
from ..ui import render_stats

logger = logging.getLogger(__name__)

STRATEGY_CHOICES = [strategy.value for strategy in MergeStrategy] + ["prompt"]


def prompt_for_resolutions(conflicts: tuple[Conflict, ...]) -> dict[str, Resolution]:
    """Ask the user how to resolve each pending conflict.

    Returns:
        Conflict id -> Resolution
    """
    decisions: dict[str, Resolution] = {}
    for index, conflict in enumerate(conflicts, start=1):
        console.print(f"\n[bold]Conflict {index}/{len(conflicts)}:[/bold] {escape(conflict.description)}")
        render_conflicts(console, [conflict])
        choice = Prompt.ask(
            "Keep which version",
            choices=[resolution.value for resolution in Resolution],
            default=Resolution.TARGET.value,
        )
        decisions[conflict.id] = Resolution(choice)
    return decisions


@click.command(name="merge")
@click.argument("sources", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--into",
    "target",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file to merge into (created if missing)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the result here instead of the --into file",
)
@click.option("--strategy", "-s", type=click.Choice(STRATEGY_CHOICES), help="Conflict strategy (default from settings)")
@click.option("--preserve-metadata/--no-preserve-metadata", default=None, help="Combine metadata of both sides")
@click.option("--validate/--no-validate", default=None, help="Validate the merged configuration")
@click.option("--backup/--no-backup", default=None, help="Back up the destination before writing")
@click.option("--dry-run", is_flag=True, help="Show what would happen without writing anything")
@click.option("--interactive", "-i", is_flag=True, help="Decide each pending conflict interactively")
@click.option(
    "--report",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Report format; json prints a machine-readable summary",
)
def merge_cmd(
    sources: tuple[Path, ...],
    target: Path,
    output: Path | None,
    strategy: str | None,
    preserve_metadata: bool | None,
    validate: bool | None,
    backup: bool | None,
    dry_run: bool,
    interactive: bool,
    report: str,
):
    """Merge SOURCES into the --into configuration, in order."""
    if interactive and report == "json":
        raise click.UsageError("--interactive cannot be combined with --report json")

    options = SettingsManager().get_merge_options()
    if strategy is not None:
        options.strategy = MergeStrategy(strategy)
    if preserve_metadata is not None:
        options.preserve_metadata = preserve_metadata
    if validate is not None:
        options.validate_result = validate
    if backup is not None:
        options.create_backup = backup
    logger.info(f"Merging {len(sources)} source(s) into {target} with strategy '{options.strategy.value}'")

    store = ConfigStore()
    try:
        base = store.read(target) if target.exists() else ConfigurationRecord()
        records = [base, *store.read_many(sources)]
    except (FileNotFoundError, ConfigFormatError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    try:
        result = merge_multiple(records, options)
    except MergeInputError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if interactive and result.conflicts:
        decisions = prompt_for_resolutions(result.conflicts)
        result = apply_resolutions(result, decisions, options.preserve_metadata)

    destination = output or target
    failed = not result.succeeded or result.merged_record is None

    if report == "json":
        summary = result.to_dict()
        summary["destination"] = str(destination)
        summary["written"] = False
        summary["backup"] = None
        if not failed and not dry_run:
            backup_path = store.write(destination, result.merged_record, backup=options.create_backup)
            summary["written"] = True
            summary["backup"] = str(backup_path) if backup_path else None
        print(json.dumps(summary, indent=2))
        if failed:
            sys.exit(1)
        return

    console.print()
    render_stats(console, result)
    render_messages(console, result)
    if result.conflicts:
        render_conflicts(console, result.conflicts)
        console.print(
            f"[yellow]{len(result.conflicts)} conflict(s) left unresolved; "
            "the existing entries were kept.[/yellow]"
        )
        console.print("[dim]Re-run with --interactive or --strategy to resolve them.[/dim]")

    if failed:
        sys.exit(1)

    if dry_run:
        console.print(f"[dim]Dry run: {escape(str(destination))} was not written[/dim]")
        return

    backup_path = store.write(destination, result.merged_record, backup=options.create_backup)
    if backup_path:
        console.print(f"[dim]Backup: {escape(str(backup_path))}[/dim]")
    console.print(f"[green]✓ Wrote {escape(str(destination))}[/green]")
