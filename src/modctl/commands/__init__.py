"""Subcommand modules for modctl.

Provides register_commands() which uses deferred imports to keep
``modctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from modctl.commands.config_cmd import config_cmd
    from modctl.commands.modules import modules
    from modctl.commands.run import run
    from modctl.commands.tasks_cmd import tasks_cmd

    cli.add_command(run)
    cli.add_command(tasks_cmd)
    cli.add_command(modules)
    cli.add_command(config_cmd)
