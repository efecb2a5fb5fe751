"""Task registry and dispatcher.

The dispatcher is the single place where exceptions become exit codes:
task bodies and the layers below them raise, the dispatcher translates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from modctl.config.logging import task_scope
from modctl.domain.errors import ModctlError, OperationCancelled, UnknownTaskError
from modctl.services.context import TaskContext
from modctl.services.result import TaskError, TaskResult

if TYPE_CHECKING:
    from modctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

TaskBody = Callable[[TaskContext], TaskResult]


@dataclass(frozen=True)
class TaskSpec:
    """A named task body.

    Attributes:
        name: Verb used on the command line.
        body: Callable receiving a TaskContext.
        help: One-line description for ``modctl tasks``.
        group: Listing group (build, ef, docker, ...).
        requires: Settings fields validated before the body runs.
    """

    name: str
    body: TaskBody
    help: str = ""
    group: str = "misc"
    requires: tuple[str, ...] = ()


class TaskRegistry:
    """Case-insensitive verb -> TaskSpec table."""

    def __init__(self) -> None:
        self._tasks: dict[str, TaskSpec] = {}

    def register(self, spec: TaskSpec) -> None:
        key = spec.name.lower()
        if key in self._tasks:
            raise ValueError(f"Task {spec.name!r} is already registered")
        self._tasks[key] = spec

    def get(self, verb: str) -> TaskSpec:
        spec = self._tasks.get(verb.strip().lower())
        if spec is None:
            raise UnknownTaskError(
                f"Unknown command: {verb!r}. Run 'modctl tasks' to list commands."
            )
        return spec

    def __contains__(self, verb: object) -> bool:
        return isinstance(verb, str) and verb.lower() in self._tasks

    def __iter__(self) -> Iterator[TaskSpec]:
        return iter(sorted(self._tasks.values(), key=lambda s: (s.group, s.name)))

    def __len__(self) -> int:
        return len(self._tasks)


class TaskDispatcher:
    """Look up a verb, run its body, and translate failures.

    *context_factory* is called lazily so configuration errors surface
    through the same translation path as task failures.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        context_factory: Callable[[], TaskContext],
        *,
        plugins: PluginManager | None = None,
    ) -> None:
        self._registry = registry
        self._context_factory = context_factory
        self._plugins = plugins

    def dispatch(self, verb: str) -> TaskResult:
        op = verb.strip().lower()
        try:
            spec = self._registry.get(verb)
            op = spec.name
            with task_scope(op):
                ctx = self._context_factory()
                ctx.settings.require(*spec.requires)
                options = ctx.options.model_dump(exclude_none=True)
                self._notify("pre_task", task=op, options=options)
                result = spec.body(ctx)
        except OperationCancelled as exc:
            result = TaskResult.cancelled_result(op, exc.message)
        except ModctlError as exc:
            result = TaskResult.from_error(op, exc)
        except Exception as exc:
            logger.debug("Task %s raised", op, exc_info=True)
            result = TaskResult(
                ok=False,
                op=op,
                error=TaskError(code="INTERNAL", message=f"internal error: {exc}"),
                exit_code=1,
            )
        self._notify("post_task", task=op, ok=result.ok, exit_code=result.exit_code)
        return result

    def _notify(self, hook_name: str, **payload: object) -> None:
        """Fire a plugin hook. INVARIANT: plugin failures are warnings."""
        if self._plugins is None:
            return
        try:
            getattr(self._plugins.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)
