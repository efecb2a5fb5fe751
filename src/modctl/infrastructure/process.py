"""Process runner: blocking execution of external tools.

No retry, no timeout, no backoff: a hung tool hangs the CLI, and a failed
invocation is reported exactly once.
"""

from __future__ import annotations

import logging
import subprocess

from modctl.domain.errors import StepFailedError
from modctl.domain.process import Outcome, ProcessInvocation

logger = logging.getLogger(__name__)

EXECUTABLE_NOT_FOUND = 127
STDERR_TAIL_LINES = 5


def _stderr_tail(stderr: str | None) -> list[str]:
    lines = [line.rstrip() for line in (stderr or "").splitlines() if line.strip()]
    return lines[-STDERR_TAIL_LINES:]


class ProcessRunner:
    """Run external commands and map their exit codes to outcomes."""

    def run(self, invocation: ProcessInvocation) -> Outcome:
        """Run *invocation* to completion, streaming output unless quiet."""
        logger.debug("Running %s", invocation.display)
        stream = subprocess.DEVNULL if invocation.quiet else None
        try:
            completed = subprocess.run(
                invocation.argv,
                cwd=invocation.cwd,
                stdout=stream,
                stderr=stream,
                check=False,
            )
        except FileNotFoundError:
            return Outcome.failure(
                f"{invocation.failure_message} (executable not found: {invocation.executable})",
                EXECUTABLE_NOT_FOUND if invocation.passthrough_code else invocation.failure_code,
                returncode=None,
            )
        return self._outcome(invocation, completed.returncode)

    def capture(self, invocation: ProcessInvocation) -> str:
        """Run *invocation* and return its stdout.

        Used for tools whose structured output is parsed.  Raises
        :class:`StepFailedError` on any failure; the last lines of the
        tool's stderr are logged and the final one ends the message.
        """
        logger.debug("Capturing %s", invocation.display)
        try:
            completed = subprocess.run(
                invocation.argv,
                cwd=invocation.cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise StepFailedError(
                invocation.display,
                f"{invocation.failure_message} (executable not found: {invocation.executable})",
                exit_code=invocation.failure_code,
            ) from exc
        outcome = self._outcome(invocation, completed.returncode)
        if not outcome.ok:
            message = outcome.message
            tail = _stderr_tail(completed.stderr)
            if tail:
                logger.warning(
                    "%s failed:\n%s",
                    invocation.executable,
                    "\n".join(tail),
                    extra={"tool": invocation.executable, "returncode": completed.returncode},
                )
                message = f"{message}: {tail[-1]}"
            raise StepFailedError(invocation.display, message, exit_code=outcome.exit_code)
        return completed.stdout

    @staticmethod
    def _outcome(invocation: ProcessInvocation, returncode: int) -> Outcome:
        if returncode == 0:
            return Outcome.success()
        exit_code = returncode if invocation.passthrough_code else invocation.failure_code
        logger.debug("%s exited with %d", invocation.executable, returncode)
        return Outcome.failure(invocation.failure_message, exit_code, returncode=returncode)
