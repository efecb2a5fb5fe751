"""Error taxonomy shared by every layer.

Lower layers raise these; the task dispatcher is the single place that
translates them into a TaskResult and a process exit code.
"""

from __future__ import annotations


class ModctlError(Exception):
    """Base class for all expected modctl failures."""

    code = "MODCTL_ERROR"
    exit_code = 1

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(ModctlError):
    """A mandatory settings layer or a required setting is missing."""

    code = "CONFIG"
    exit_code = 3


class DiscoveryError(ModctlError):
    """Nothing was discovered where at least one target is required."""

    code = "DISCOVERY"
    exit_code = 4


class InteractionRequiredError(ModctlError):
    """A menu or prompt was needed while running non-interactively."""

    code = "INTERACTION_REQUIRED"
    exit_code = 5


class UnknownTaskError(ModctlError):
    """The requested verb is not registered."""

    code = "UNKNOWN_TASK"
    exit_code = 2


class StepFailedError(ModctlError):
    """A must-succeed external step exited non-zero."""

    code = "STEP_FAILED"

    def __init__(self, step: str, message: str, *, exit_code: int = 1) -> None:
        super().__init__(message, exit_code=exit_code)
        self.step = step


class OperationCancelled(ModctlError):
    """The user cancelled at an interactive menu. Not a failure."""

    code = "CANCELLED"
    exit_code = 0

    def __init__(self, message: str = "Cancelled.") -> None:
        super().__init__(message)
