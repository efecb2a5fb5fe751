"""Command: list discovered modules and their database contexts."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from modctl.commands._base import ModCommand
from modctl.infrastructure.discovery import discover_db_contexts, discover_modules
from modctl.output.formatters import format_table

if TYPE_CHECKING:
    from modctl.commands._context import AppContext


@click.command(cls=ModCommand, examples=("modctl modules", "modctl --root ../app modules"))
@click.pass_obj
def modules(app: AppContext) -> None:
    """List modules under src/Modules and their database contexts."""
    rows = [
        [module.name, ", ".join(c.name for c in discover_db_contexts(app.root, module.name))]
        for module in discover_modules(app.root)
    ]
    if not rows and not app.json_output:
        click.echo(f"No modules found under {app.root}", err=True)
        return
    click.echo(
        format_table("Modules", ["Module", "Contexts"], rows, json_output=app.json_output)
    )
