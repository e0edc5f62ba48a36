"""Settings commands for the mcp-config CLI."""

from __future__ import annotations

import click
from rich.table import Table

from ..console import console
from ..merge import MergeStrategy
from ..settings import SCOPES
from ..settings import SettingsManager


@click.group(name="config", invoke_without_command=True)
@click.pass_context
def config_group(ctx: click.Context):
    """Show or change merge defaults."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@config_group.command(name="show")
def config_show():
    """Show the effective merge defaults."""
    options = SettingsManager().get_merge_options()

    table = Table(title="Merge Defaults", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="green")
    table.add_column("Value")
    table.add_row("strategy", options.strategy.value)
    table.add_row("preserve_metadata", str(options.preserve_metadata).lower())
    table.add_row("validate_result", str(options.validate_result).lower())
    table.add_row("create_backup", str(options.create_backup).lower())
    console.print(table)


@config_group.command(name="set-strategy")
@click.argument("strategy", type=click.Choice([strategy.value for strategy in MergeStrategy]))
@click.option("--scope", type=click.Choice(list(SCOPES)), default="project", show_default=True)
def config_set_strategy(strategy: str, scope: str):
    """Set the default conflict strategy."""
    SettingsManager().set_default_strategy(strategy, scope=scope)
    console.print(f"[green]✓ Default strategy set to {strategy}[/green] [dim]({scope} settings)[/dim]")
