"""Command: show resolved settings and the layer files they came from."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from modctl.commands._base import ModCommand
from modctl.domain.errors import ModctlError
from modctl.services.result import TaskResult

if TYPE_CHECKING:
    from modctl.commands._context import AppContext

_FLAG_FIELDS = {"verbose", "log_json", "json_output", "no_interact", "settings_files"}


@click.command("config", cls=ModCommand, examples=("modctl config", "modctl --json config"))
@click.pass_obj
def config_cmd(app: AppContext) -> None:
    """Show the effective settings."""
    try:
        settings = app.settings
    except ModctlError as exc:
        app.fail("config", exc)
        return
    data = {
        key: (str(value) if value is not None else None)
        for key, value in settings.model_dump(exclude=_FLAG_FIELDS).items()
    }
    data["settings_files"] = [str(p) for p in settings.settings_files]
    app.emit(TaskResult(ok=True, op="config", data=data))
