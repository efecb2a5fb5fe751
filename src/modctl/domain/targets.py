"""Target types: modules, database contexts and selection requests.

A *target* is the operand a task acts on: a module, a database context,
a solution file, a runtime identifier, an OS process or a container.
Targets are always resolved against a discovered candidate set.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

WILDCARD = "All"
"""Pseudo-candidate meaning "every discovered module"."""

MODULE_ENV_VAR = "MODCTL_MODULE"
DBCONTEXT_ENV_VAR = "MODCTL_DBCONTEXT"

MODULES_DIR = ("src", "Modules")
MODULE_DENYLIST = frozenset({"common", "shared"})
DBCONTEXT_SUFFIX = "DbContext.cs"

FRAMEWORK_DEPENDENT = "framework-dependent"
RUNTIME_IDENTIFIERS = (
    "win-x64",
    "win-arm64",
    "linux-x64",
    "linux-arm64",
    "linux-musl-x64",
    "osx-x64",
    "osx-arm64",
)

_PROCESS_LABEL_RE = re.compile(r"\(#(\d+)\)\s*$")


@dataclass(frozen=True, order=True)
class Module:
    """A vertical slice of the target application (``src/Modules/<name>``)."""

    name: str


@dataclass(frozen=True, order=True)
class DatabaseContext:
    """A persistence unit owned by exactly one module."""

    module: str
    name: str


@dataclass(frozen=True)
class ProcessInfo:
    """An OS process offered for diagnostics attachment."""

    pid: int
    name: str
    command: str = ""

    @property
    def label(self) -> str:
        return process_label(self.name, self.pid)


def process_label(name: str, pid: int) -> str:
    """Compose the menu label for a process, e.g. ``Web.Server (#4242)``."""
    return f"{name} (#{pid})"


def pid_from_label(label: str) -> int | None:
    """Recover the pid from a label built by :func:`process_label`."""
    match = _PROCESS_LABEL_RE.search(label)
    if match is None:
        return None
    return int(match.group(1))


class ResolutionKind(StrEnum):
    CANDIDATE = "candidate"
    WILDCARD = "wildcard"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Resolution:
    """Terminal state of target resolution.

    Exactly one of: a verified candidate, the wildcard, or cancellation.
    """

    kind: ResolutionKind
    value: str | None = None
    source: str = ""

    @property
    def cancelled(self) -> bool:
        return self.kind is ResolutionKind.CANCELLED

    @property
    def is_wildcard(self) -> bool:
        return self.kind is ResolutionKind.WILDCARD


@dataclass(frozen=True)
class SelectionRequest:
    """Everything needed to resolve one target.

    Attributes:
        title: Menu title shown when the user has to choose.
        candidates: The discovered candidate set, in menu order.
        explicit: Value passed on the command line, if any.
        env_var: Environment variable consulted when *explicit* is unusable.
        allow_wildcard: Whether the ``All`` pseudo-candidate is accepted.
        search: Enable type-to-filter in the interactive menu.
        page_size: Rows per menu page.
    """

    title: str
    candidates: tuple[str, ...]
    explicit: str | None = None
    env_var: str | None = None
    allow_wildcard: bool = False
    search: bool = False
    page_size: int = 10
