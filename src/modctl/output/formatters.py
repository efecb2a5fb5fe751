"""Human and JSON rendering of TaskResult and listings."""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from modctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from modctl.services.result import TaskResult


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        value = _json.dumps(value, separators=(",", ":"), default=str)
    style = "modctl.path" if key.endswith(("path", "dir", "directory", "file")) else ""
    console.print(
        Text(f"  {key}: ", style="modctl.key"),
        Text(str(value), style=style),
        sep="",
        soft_wrap=True,
    )


def format_result(result: TaskResult, *, json_output: bool = False) -> str:
    """Format a TaskResult for display.

    Args:
        result: The task result to format.
        json_output: If True, return JSON; otherwise return human-readable text.
    """
    if json_output:
        return result.model_dump_json(indent=2)
    if result.cancelled:
        return str(result.data.get("message", "Cancelled."))

    console = create_console()
    if result.ok:
        console.print(
            Text("OK", style="modctl.ok"),
            Text(f"  {result.op}", style="modctl.op"),
            sep="",
            soft_wrap=True,
        )
        for key, value in result.data.items():
            _field(console, key, value)
    else:
        msg = result.error.message if result.error else "Unknown error"
        console.print(
            Text("ERROR", style="modctl.error"),
            Text(f"  {result.op}", style="modctl.op"),
            Text(f" - {msg}"),
            sep="",
            soft_wrap=True,
        )
    return get_output(console).rstrip("\n")


def format_table(
    title: str,
    columns: list[str],
    rows: list[list[str]],
    *,
    json_output: bool = False,
) -> str:
    """Render a simple listing as a Rich table or a JSON array of objects."""
    if json_output:
        keys = [c.lower().replace(" ", "_") for c in columns]
        return _json.dumps([dict(zip(keys, row, strict=True)) for row in rows], indent=2)
    console = create_console()
    table = Table(title=title, show_header=True, pad_edge=False, expand=False)
    for index, column in enumerate(columns):
        table.add_column(column, style="modctl.choice" if index == 0 else None)
    for row in rows:
        table.add_row(*row)
    console.print(table)
    return get_output(console).rstrip("\n")
