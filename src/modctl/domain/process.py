"""External process invocation and its outcome.

A ProcessInvocation is built immediately before execution and discarded
afterwards; it is never stored or replayed.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel


@dataclass(frozen=True)
class ProcessInvocation:
    """One external command plus what to report if it fails.

    Attributes:
        executable: Program name or path.
        args: Ordered argument list.
        failure_message: Diagnostic reported on non-zero exit.
        failure_code: Exit code reported on non-zero exit.
        cwd: Working directory (None inherits).
        quiet: Discard the child's stdout/stderr. Opt-in only; used for
            existence probes where output is noise.
        passthrough_code: Report the child's own exit code instead of
            *failure_code*.
    """

    executable: str
    args: tuple[str, ...] = field(default_factory=tuple)
    failure_message: str = "command failed"
    failure_code: int = 1
    cwd: Path | None = None
    quiet: bool = False
    passthrough_code: bool = False

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    @property
    def display(self) -> str:
        return shlex.join(self.argv)


class Outcome(BaseModel):
    """Result of running one ProcessInvocation."""

    model_config = {"frozen": True}

    ok: bool
    message: str = ""
    exit_code: int = 0
    returncode: int | None = 0

    @classmethod
    def success(cls) -> Outcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, message: str, exit_code: int, *, returncode: int | None = None) -> Outcome:
        return cls(ok=False, message=message, exit_code=exit_code, returncode=returncode)
