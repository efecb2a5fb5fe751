"""Interactive and non-interactive Selector implementations.

The implementation is chosen once per invocation (see
:func:`create_selector`): a numbered terminal menu when a user is present,
otherwise a selector that fails fast so CI runs never hang on a prompt.
"""

from __future__ import annotations

import math
import sys
from collections.abc import Sequence

import click
from rich.console import Console
from rich.table import Table

from modctl.domain.errors import InteractionRequiredError
from modctl.domain.selection import CANCEL, Cancelled, Selector
from modctl.output.console import create_menu_console

_CANCEL_INPUTS = frozenset({"c", "cancel", "q"})


class PromptSelector:
    """Numbered menu rendered with Rich, answered through ``click.prompt``.

    Input: a row number or exact choice text selects; ``n``/``p`` page;
    ``/text`` filters (when *search* is on); ``c`` or an empty answer
    cancels.
    """

    interactive = True

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or create_menu_console()

    def select(
        self,
        title: str,
        choices: Sequence[str],
        *,
        search: bool = False,
        page_size: int = 10,
        allow_cancel: bool = True,
    ) -> str | Cancelled:
        if not choices:
            return CANCEL
        page_size = max(1, page_size)
        query = ""
        page = 0
        while True:
            visible = [c for c in choices if query.lower() in c.lower()] if query else list(choices)
            pages = max(1, math.ceil(len(visible) / page_size))
            page = min(max(page, 0), pages - 1)
            start = page * page_size
            self._render(title, visible[start : start + page_size], start, page, pages, query)

            try:
                raw = click.prompt(
                    self._hint(search, pages, allow_cancel),
                    default="",
                    show_default=False,
                    err=True,
                ).strip()
            except click.Abort:
                if allow_cancel:
                    return CANCEL
                raise

            lowered = raw.lower()
            if not raw or lowered in _CANCEL_INPUTS:
                if allow_cancel:
                    return CANCEL
                continue
            if raw.isdigit():
                number = int(raw)
                if 1 <= number <= len(visible):
                    return visible[number - 1]
            elif lowered == "n":
                page += 1
                continue
            elif lowered == "p":
                page -= 1
                continue
            elif search and raw.startswith("/"):
                query = raw[1:].strip()
                page = 0
                continue
            else:
                exact = [c for c in choices if c.lower() == lowered]
                if exact:
                    return exact[0]
            self._console.print(f"[modctl.warning]Invalid selection:[/modctl.warning] {raw}")

    def _render(
        self,
        title: str,
        rows: list[str],
        offset: int,
        page: int,
        pages: int,
        query: str,
    ) -> None:
        caption = f"page {page + 1}/{pages}"
        if query:
            caption += f", filter: {query!r}"
        table = Table(title=title, caption=caption, show_header=False, pad_edge=False)
        table.add_column(style="modctl.index", justify="right")
        table.add_column(style="modctl.choice")
        for index, choice in enumerate(rows, start=offset + 1):
            table.add_row(str(index), choice)
        if not rows:
            table.add_row("", "(no matches)")
        self._console.print(table)

    @staticmethod
    def _hint(search: bool, pages: int, allow_cancel: bool) -> str:
        parts = ["number"]
        if pages > 1:
            parts.append("n/p page")
        if search:
            parts.append("/text filter")
        if allow_cancel:
            parts.append("c cancel")
        return f"Select ({', '.join(parts)})"

    def ask_text(self, prompt: str) -> str:
        return click.prompt(prompt, err=True).strip()

    def confirm(self, prompt: str) -> bool:
        return click.confirm(prompt, default=False, err=True)


class NonInteractiveSelector:
    """Selector for CI: any attempt to prompt is a fatal, explicit error."""

    interactive = False

    def select(
        self,
        title: str,
        choices: Sequence[str],
        *,
        search: bool = False,
        page_size: int = 10,
        allow_cancel: bool = True,
    ) -> str | Cancelled:
        listed = ", ".join(choices)
        raise InteractionRequiredError(
            f"{title}: a choice is required but prompts are disabled; "
            f"pass it explicitly (choices: {listed})"
        )

    def ask_text(self, prompt: str) -> str:
        raise InteractionRequiredError(f"{prompt}: a value is required but prompts are disabled")

    def confirm(self, prompt: str) -> bool:
        raise InteractionRequiredError(
            f"{prompt}: confirmation is required but prompts are disabled (use --force)"
        )


def create_selector(*, no_interact: bool = False, stdin_isatty: bool | None = None) -> Selector:
    """Pick the selector once, from the flag and TTY detection."""
    if stdin_isatty is None:
        stdin_isatty = sys.stdin.isatty()
    if no_interact or not stdin_isatty:
        return NonInteractiveSelector()
    return PromptSelector()
