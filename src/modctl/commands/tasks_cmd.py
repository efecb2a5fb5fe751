"""Command: list registered task verbs."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from modctl.commands._base import ModCommand
from modctl.output.formatters import format_table

if TYPE_CHECKING:
    from modctl.commands._context import AppContext


@click.command("tasks", cls=ModCommand, examples=("modctl tasks", "modctl --json tasks"))
@click.pass_obj
def tasks_cmd(app: AppContext) -> None:
    """List available task verbs."""
    rows = [[spec.name, spec.group, spec.help] for spec in app.registry()]
    columns = ["Task", "Group", "Description"]
    click.echo(format_table("Tasks", columns, rows, json_output=app.json_output))
