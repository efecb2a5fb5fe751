"""Target resolution: explicit argument, then environment, then menu.

Resolution of a target against a discovered candidate set always
terminates in exactly one of: a verified candidate, the ``All`` wildcard
(where permitted), or cancellation.  An explicit or environment value that
is not a candidate is never accepted; it is logged and resolution falls
through to the next source.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path

from modctl.domain.errors import ConfigError, DiscoveryError, ModctlError, OperationCancelled
from modctl.domain.selection import CANCEL, Selector
from modctl.domain.targets import (
    DBCONTEXT_ENV_VAR,
    FRAMEWORK_DEPENDENT,
    MODULE_ENV_VAR,
    RUNTIME_IDENTIFIERS,
    WILDCARD,
    ProcessInfo,
    Resolution,
    ResolutionKind,
    SelectionRequest,
    pid_from_label,
    process_label,
)
from modctl.infrastructure.discovery import (
    discover_db_contexts,
    discover_modules,
    discover_solutions,
)

logger = logging.getLogger(__name__)


class TargetResolver:
    """Resolve targets, falling back to an injected :class:`Selector`.

    Args:
        selector: Menu capability used when no valid value was supplied.
        environ: Environment mapping (defaults to ``os.environ``), read at
            resolution time.
    """

    def __init__(self, selector: Selector, *, environ: Mapping[str, str] | None = None) -> None:
        self._selector = selector
        self._environ = environ if environ is not None else os.environ

    # ------------------------------------------------------------------
    # Core state machine
    # ------------------------------------------------------------------

    def resolve(self, request: SelectionRequest) -> Resolution:
        """Resolve *request* in the fixed order argument -> env var -> menu."""
        if not request.candidates:
            raise DiscoveryError(f"Nothing to choose from: {request.title}")
        if request.allow_wildcard and any(
            c.lower() == WILDCARD.lower() for c in request.candidates
        ):
            raise DiscoveryError(
                f"{request.title}: a candidate named {WILDCARD!r} clashes with the wildcard"
            )

        if request.explicit:
            resolution = self._match(request, request.explicit, "argument")
            if resolution is not None:
                return resolution
            logger.warning(
                "%r is not a valid choice for %s (expected one of: %s)",
                request.explicit,
                request.title,
                ", ".join(request.candidates),
            )

        if request.env_var:
            value = self._environ.get(request.env_var)
            if value:
                resolution = self._match(request, value, "environment")
                if resolution is not None:
                    return resolution
                logger.warning(
                    "%s=%r is not a valid choice for %s",
                    request.env_var,
                    value,
                    request.title,
                )

        return self._prompt(request)

    def _match(self, request: SelectionRequest, value: str, source: str) -> Resolution | None:
        if request.allow_wildcard and value.lower() == WILDCARD.lower():
            return Resolution(ResolutionKind.WILDCARD, WILDCARD, source)
        if value in request.candidates:
            return Resolution(ResolutionKind.CANDIDATE, value, source)
        folded = [c for c in request.candidates if c.lower() == value.lower()]
        if len(folded) == 1:
            return Resolution(ResolutionKind.CANDIDATE, folded[0], source)
        return None

    def _prompt(self, request: SelectionRequest) -> Resolution:
        choices = list(request.candidates)
        if request.allow_wildcard:
            choices.append(WILDCARD)
        picked = self._selector.select(
            request.title,
            choices,
            search=request.search,
            page_size=request.page_size,
            allow_cancel=True,
        )
        if picked is CANCEL:
            return Resolution(ResolutionKind.CANCELLED, None, "menu")
        if request.allow_wildcard and picked == WILDCARD:
            return Resolution(ResolutionKind.WILDCARD, WILDCARD, "menu")
        if picked not in request.candidates:
            raise ModctlError(f"Selection {picked!r} is not a valid choice for {request.title}")
        return Resolution(ResolutionKind.CANDIDATE, picked, "menu")

    @staticmethod
    def _value(resolution: Resolution) -> str:
        if resolution.cancelled or resolution.value is None:
            raise OperationCancelled()
        return resolution.value

    # ------------------------------------------------------------------
    # Specializations used by task bodies
    # ------------------------------------------------------------------

    def module_target(
        self, root: Path, explicit: str | None = None, *, allow_all: bool = False
    ) -> Resolution:
        """Resolve a module (or the wildcard). Raises OperationCancelled on cancel."""
        names = tuple(m.name for m in discover_modules(root))
        if not names:
            raise DiscoveryError(f"No modules found under {root / 'src' / 'Modules'}")
        resolution = self.resolve(
            SelectionRequest(
                title="Select module",
                candidates=names,
                explicit=explicit,
                env_var=MODULE_ENV_VAR,
                allow_wildcard=allow_all,
            )
        )
        self._value(resolution)
        return resolution

    def modules(
        self, root: Path, explicit: str | None = None, *, allow_all: bool = False
    ) -> list[str]:
        """Resolve one module, or every module when ``All`` is chosen."""
        resolution = self.module_target(root, explicit, allow_all=allow_all)
        if resolution.is_wildcard:
            return [m.name for m in discover_modules(root)]
        return [self._value(resolution)]

    def module(self, root: Path, explicit: str | None = None) -> str:
        return self.modules(root, explicit)[0]

    def db_context(self, root: Path, module: str, explicit: str | None = None) -> str:
        """Resolve the database context of *module*.

        A single context is taken without a menu only when neither an
        explicit nor an environment value was given.
        """
        names = tuple(c.name for c in discover_db_contexts(root, module))
        if not names:
            raise DiscoveryError(f"No database context found for module {module}")
        if len(names) == 1 and not (explicit or self._environ.get(DBCONTEXT_ENV_VAR)):
            return names[0]
        request = SelectionRequest(
            title=f"Select database context ({module})",
            candidates=names,
            explicit=explicit,
            env_var=DBCONTEXT_ENV_VAR,
        )
        return self._value(self.resolve(request))

    def solution(self, root: Path, configured: Path | None = None) -> Path:
        """Resolve the solution file.

        A configured solution is used as-is.  Otherwise a single discovered
        solution is auto-selected and several always prompt.
        """
        if configured is not None:
            path = configured if configured.is_absolute() else root / configured
            if not path.is_file():
                raise ConfigError(f"Configured solution does not exist: {path}")
            return path
        solutions = discover_solutions(root)
        if not solutions:
            raise DiscoveryError(f"No solution file found in {root}")
        if len(solutions) == 1:
            return solutions[0]
        by_name = {p.name: p for p in solutions}
        name = self._value(
            self.resolve(SelectionRequest(title="Select solution", candidates=tuple(by_name)))
        )
        return by_name[name]

    def rid(self, explicit: str | None = None) -> str | None:
        """Resolve a runtime identifier; None means framework-dependent."""
        value = self._value(
            self.resolve(
                SelectionRequest(
                    title="Select runtime identifier",
                    candidates=(*RUNTIME_IDENTIFIERS, FRAMEWORK_DEPENDENT),
                    explicit=explicit,
                )
            )
        )
        return None if value == FRAMEWORK_DEPENDENT else value

    def process(
        self, processes: Sequence[ProcessInfo], explicit_pid: int | None = None
    ) -> ProcessInfo:
        """Resolve a process by pid, matching menu labels back to pids."""
        if not processes:
            raise DiscoveryError("No running processes available to attach to")
        by_pid = {p.pid: p for p in processes}
        explicit = None
        if explicit_pid is not None:
            match = by_pid.get(explicit_pid)
            explicit = match.label if match else process_label("?", explicit_pid)
        label = self._value(
            self.resolve(
                SelectionRequest(
                    title="Select process",
                    candidates=tuple(p.label for p in processes),
                    explicit=explicit,
                    search=True,
                )
            )
        )
        pid = pid_from_label(label)
        if pid is None or pid not in by_pid:
            raise ModctlError(f"Could not determine process id from {label!r}")
        return by_pid[pid]

    def container(self, names: Sequence[str], explicit: str | None = None) -> str:
        if not names:
            raise DiscoveryError("No containers found")
        return self._value(
            self.resolve(
                SelectionRequest(
                    title="Select container",
                    candidates=tuple(names),
                    explicit=explicit,
                    search=True,
                )
            )
        )
