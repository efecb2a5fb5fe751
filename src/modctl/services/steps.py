"""Declarative step sequencing for task bodies.

A task body reads as a list of ``must_succeed`` and ``best_effort`` steps:

    run = ctx.run("docker-run")
    run.best_effort("remove old container", rm)
    run.must_succeed("start container", docker_run)
    return run.finish(container=name)

A failed must-succeed step raises :class:`StepFailedError`, aborting the
body.  A failed best-effort step is logged, recorded as a warning, and
counted in the final summary.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from modctl.config.logging import step_scope
from modctl.domain.errors import StepFailedError
from modctl.domain.process import Outcome, ProcessInvocation
from modctl.infrastructure.process import ProcessRunner
from modctl.services.result import TaskResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepRecord:
    name: str
    ok: bool
    best_effort: bool
    message: str = ""


class TaskRun:
    """Accumulates step outcomes for one task body."""

    def __init__(self, op: str, runner: ProcessRunner) -> None:
        self.op = op
        self._runner = runner
        self._steps: list[StepRecord] = []
        self._warnings: list[str] = []

    @property
    def steps(self) -> list[StepRecord]:
        return list(self._steps)

    @property
    def errors(self) -> int:
        return sum(1 for s in self._steps if not s.ok)

    def must_succeed(self, name: str, invocation: ProcessInvocation) -> Outcome:
        """Run *invocation*; raise StepFailedError if it fails."""
        with step_scope(name):
            outcome = self._runner.run(invocation)
        self._steps.append(StepRecord(name, outcome.ok, False, outcome.message))
        if not outcome.ok:
            raise StepFailedError(name, f"{name}: {outcome.message}", exit_code=outcome.exit_code)
        return outcome

    def best_effort(self, name: str, invocation: ProcessInvocation) -> Outcome:
        """Run *invocation*; on failure log a warning and carry on."""
        with step_scope(name):
            outcome = self._runner.run(invocation)
            self._record_best_effort(name, outcome.ok, outcome.message)
        return outcome

    def best_effort_call(self, name: str, func: Callable[[], object]) -> bool:
        """Run an in-process step (file deletion etc.) as best-effort."""
        with step_scope(name):
            try:
                func()
            except OSError as exc:
                self._record_best_effort(name, False, str(exc))
                return False
            self._record_best_effort(name, True, "")
        return True

    def _record_best_effort(self, name: str, ok: bool, message: str) -> None:
        self._steps.append(StepRecord(name, ok, True, message))
        if not ok:
            logger.warning("Best-effort step %r failed: %s", name, message)
            self._warnings.append(f"{name}: {message}")

    def finish(self, **data: Any) -> TaskResult:
        """Build the successful TaskResult, including the error summary."""
        errors = self.errors
        summary = f"completed with {errors} error(s)" if errors else "completed"
        payload = {**data, "steps": len(self._steps), "errors": errors, "summary": summary}
        return TaskResult(ok=True, op=self.op, data=payload, warnings=list(self._warnings))
