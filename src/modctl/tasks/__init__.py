"""Built-in task bodies.

Provides register_builtin_tasks() which imports each task area lazily so
``modctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modctl.services.dispatch import TaskRegistry


def register_builtin_tasks(registry: TaskRegistry) -> None:
    """Register every built-in TaskSpec on *registry*."""
    from modctl.tasks.build import TASKS as BUILD_TASKS
    from modctl.tasks.diagnostics import TASKS as DIAGNOSTICS_TASKS
    from modctl.tasks.docker import TASKS as DOCKER_TASKS
    from modctl.tasks.ef import TASKS as EF_TASKS
    from modctl.tasks.licenses import TASKS as LICENSE_TASKS

    for spec in (*BUILD_TASKS, *EF_TASKS, *DOCKER_TASKS, *DIAGNOSTICS_TASKS, *LICENSE_TASKS):
        registry.register(spec)
