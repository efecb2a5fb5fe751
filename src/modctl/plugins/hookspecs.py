"""Pluggy hook specifications for modctl.

One setup-time hook lets plugins add task bodies; two lifecycle hooks
fire around every dispatched task.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from modctl.services.dispatch import TaskRegistry

hookspec = pluggy.HookspecMarker("modctl")
hookimpl = pluggy.HookimplMarker("modctl")


class ModctlHookSpec:
    """Hook specifications for the modctl plugin system."""

    @hookspec
    def register_tasks(self, registry: TaskRegistry) -> None:
        """Register additional TaskSpecs on *registry*."""

    @hookspec
    def pre_task(self, task: str, options: dict[str, Any]) -> None:
        """Called before a task body runs."""

    @hookspec
    def post_task(self, task: str, ok: bool, exit_code: int) -> None:
        """Called after a task body finished (or failed)."""
