"""mcp-config CLI entry point."""

import logging

import click

from . import __version__
from .commands.config import config_group
from .commands.inspect import conflicts_cmd
from .commands.inspect import diff_cmd
from .commands.inspect import validate_cmd
from .commands.merge import merge_cmd
from .logging_setup import init_json_logging

logger = logging.getLogger(__name__)


@click.group(invoke_without_command=True)
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level for the JSONL log file (default: MCP_CONFIG_LOG_LEVEL or INFO)",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None):
    """mcp-config - merge and reconcile MCP server configurations."""
    init_json_logging(level=log_level)
    logger.debug(f"Invoked subcommand: {ctx.invoked_subcommand}")

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(merge_cmd)
cli.add_command(diff_cmd)
cli.add_command(conflicts_cmd)
cli.add_command(validate_cmd)
cli.add_command(config_group)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
