"""TaskContext: everything a task body needs, passed explicitly.

Built once per invocation by the CLI layer; task bodies never reach for
globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel

from modctl.config.layers import LayeredConfig
from modctl.config.settings import ModctlSettings
from modctl.domain.process import ProcessInvocation
from modctl.domain.selection import Selector
from modctl.infrastructure.artifacts import create_run_directory
from modctl.infrastructure.process import ProcessRunner
from modctl.services.resolver import TargetResolver
from modctl.services.steps import TaskRun


class TaskOptions(BaseModel):
    """Named options passed to ``modctl run``."""

    model_config = {"frozen": True}

    module: str | None = None
    context: str | None = None
    name: str | None = None
    rid: str | None = None
    pid: int | None = None
    container: str | None = None
    port: int | None = None
    configuration: str | None = None
    output: Path | None = None
    filter: str | None = None
    force: bool = False
    coverage: bool = False


@dataclass
class TaskContext:
    settings: ModctlSettings
    config: LayeredConfig
    runner: ProcessRunner
    selector: Selector
    options: TaskOptions = field(default_factory=TaskOptions)
    resolver: TargetResolver | None = None

    def __post_init__(self) -> None:
        if self.resolver is None:
            self.resolver = TargetResolver(self.selector)

    @property
    def root(self) -> Path:
        return self.settings.root

    @property
    def targets(self) -> TargetResolver:
        assert self.resolver is not None
        return self.resolver

    def run(self, op: str) -> TaskRun:
        return TaskRun(op, self.runner)

    def output_dir(self) -> Path:
        """``--output`` override, else the configured output directory."""
        if self.options.output is not None:
            return self.settings.resolve_path(self.options.output)
        self.settings.require("output_directory")
        assert self.settings.output_directory is not None
        return self.settings.resolve_path(self.settings.output_directory)

    def artifacts_dir(self) -> Path:
        self.settings.require("artifacts_directory")
        assert self.settings.artifacts_directory is not None
        return self.settings.resolve_path(self.settings.artifacts_directory)

    def run_directory(self, category: str) -> Path:
        return create_run_directory(self.output_dir(), category)

    def dotnet(
        self, *args: str, failure: str, code: int = 1, passthrough: bool = False
    ) -> ProcessInvocation:
        return ProcessInvocation(
            self.settings.dotnet_executable,
            tuple(args),
            failure_message=failure,
            failure_code=code,
            cwd=self.root,
            passthrough_code=passthrough,
        )

    def docker(
        self, *args: str, failure: str, code: int = 1, quiet: bool = False
    ) -> ProcessInvocation:
        return ProcessInvocation(
            self.settings.docker_executable,
            tuple(args),
            failure_message=failure,
            failure_code=code,
            cwd=self.root,
            quiet=quiet,
        )
