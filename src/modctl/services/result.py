"""TaskResult and TaskError: the terminal outcome of one task body.

INVARIANT: every task body returns a TaskResult, and the dispatcher turns
every exception into one.  The CLI only ever consumes this type.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from modctl.domain.errors import ModctlError


class TaskError(BaseModel):
    """Structured error payload within a TaskResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class TaskResult(BaseModel):
    """Universal return type for task bodies.

    Attributes:
        ok: Whether the task succeeded (cancellation counts as ok).
        op: Task verb (e.g. ``"ef-add"``).
        data: Task-specific payload.
        warnings: Best-effort failures and other non-fatal issues.
        error: Structured error if ``ok`` is False.
        exit_code: Process exit code the CLI returns.
        cancelled: The user cancelled at a menu.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: TaskError | None = None
    exit_code: int = 0
    cancelled: bool = False

    @classmethod
    def cancelled_result(cls, op: str, message: str = "Cancelled.") -> TaskResult:
        return cls(ok=True, op=op, cancelled=True, data={"message": message})

    @classmethod
    def from_error(cls, op: str, exc: ModctlError) -> TaskResult:
        detail: dict[str, Any] = {}
        step = getattr(exc, "step", None)
        if step:
            detail["step"] = step
        return cls(
            ok=False,
            op=op,
            error=TaskError(code=exc.code, message=exc.message, detail=detail),
            exit_code=exc.exit_code or 1,
        )
