"""Root CLI group for modctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from modctl import __version__
from modctl.commands import register_commands
from modctl.commands._context import AppContext


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="modctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-interact", is_flag=True, help="Non-interactive mode (no prompts).")
@click.option("-c", "--config", "config_path", default=None, help="Extra settings file.")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Repository root (default: nearest directory containing .modctl/).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    no_interact: bool,
    config_path: str | None,
    root: Path | None,
) -> None:
    """modctl: build, migrate, package and diagnose a modular .NET repository."""
    ctx.obj = AppContext(
        root=root,
        config_path=config_path,
        json_output=json_output,
        verbose=verbose,
        log_json=log_json,
        no_interact=no_interact,
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
