"""Rich Console factory and theme for modctl output.

Result rendering goes to a StringIO-backed Console so formatters keep a
``-> str`` contract.  Interactive menus render straight to stderr so
stdout stays clean for tool output.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

MODCTL_THEME = Theme(
    {
        "modctl.ok": "bold green",
        "modctl.error": "bold red",
        "modctl.warning": "bold yellow",
        "modctl.op": "bold cyan",
        "modctl.key": "dim",
        "modctl.path": "dim",
        "modctl.choice": "bold",
        "modctl.index": "cyan",
        "modctl.group": "magenta",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=MODCTL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def create_menu_console() -> Console:
    """Console for interactive menus (stderr)."""
    return Console(stderr=True, theme=MODCTL_THEME, highlight=False)


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
