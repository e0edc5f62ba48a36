"""Read-only commands: diff, conflicts and validate."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich.markup import escape

from ..console import console
from ..merge import analyze_differences
from ..merge import detect_conflicts
from ..schema import ConfigurationRecord
from ..store import ConfigFormatError
from ..store import ConfigStore
from ..ui import render_conflicts
from ..ui import render_differences
from ..ui import render_validation
from ..validation import ConfigValidator

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _read_or_exit(store: ConfigStore, path: Path) -> ConfigurationRecord:
    try:
        return store.read(path)
    except (FileNotFoundError, ConfigFormatError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


@click.command(name="diff")
@click.argument("first", type=_FILE)
@click.argument("second", type=_FILE)
def diff_cmd(first: Path, second: Path):
    """Compare the services of two configuration files."""
    store = ConfigStore()
    report = analyze_differences(_read_or_exit(store, first), _read_or_exit(store, second))
    render_differences(console, report, first.name, second.name)


@click.command(name="conflicts")
@click.argument("source", type=_FILE)
@click.argument("target", type=_FILE)
@click.option("--output", "-o", type=click.Choice(["table", "json"]), default="table", help="Output format")
def conflicts_cmd(source: Path, target: Path, output: str):
    """Preview the conflicts merging SOURCE into TARGET would raise."""
    store = ConfigStore()
    conflicts = detect_conflicts(_read_or_exit(store, source), _read_or_exit(store, target))
    if output == "json":
        print(json.dumps([conflict.to_dict() for conflict in conflicts], indent=2))
        return
    render_conflicts(console, conflicts)


@click.command(name="validate")
@click.argument("path", type=_FILE)
@click.option("--check-commands", is_flag=True, help="Warn when a command is not found on PATH")
@click.option("--check-paths", is_flag=True, help="Warn when a working directory does not exist")
def validate_cmd(path: Path, check_commands: bool, check_paths: bool):
    """Validate a configuration file."""
    record = _read_or_exit(ConfigStore(), path)
    result = ConfigValidator(check_commands=check_commands, check_paths=check_paths).validate(record)
    render_validation(console, result)
    if not result.valid:
        sys.exit(1)
