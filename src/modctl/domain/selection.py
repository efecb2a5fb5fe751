"""Selector capability: the port the resolver uses to ask the user.

Implementations live in :mod:`modctl.output.selector`; the resolver only
depends on this protocol so tests can inject scripted doubles.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Final, Protocol


class Cancelled(Enum):
    """Marker type for a dismissed menu; never equal to any choice text."""

    CANCEL = "cancel"


CANCEL: Final = Cancelled.CANCEL
"""Returned by a selector when the user cancels or dismisses."""


class Selector(Protocol):
    """Present *choices* and return one of them, or :data:`CANCEL`."""

    interactive: bool

    def select(
        self,
        title: str,
        choices: Sequence[str],
        *,
        search: bool = False,
        page_size: int = 10,
        allow_cancel: bool = True,
    ) -> str | Cancelled: ...

    def ask_text(self, prompt: str) -> str: ...

    def confirm(self, prompt: str) -> bool: ...
