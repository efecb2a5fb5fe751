"""Shared pytest fixtures and test helpers for modctl tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from modctl.config.discovery import default_layers
from modctl.config.layers import LayeredConfig
from modctl.config.settings import ModctlSettings
from modctl.domain.errors import StepFailedError
from modctl.domain.process import Outcome, ProcessInvocation
from modctl.domain.selection import Cancelled
from modctl.infrastructure.process import ProcessRunner
from modctl.services.context import TaskContext, TaskOptions

SETTINGS_ENV = """\
# tool defaults
OUTPUT_DIRECTORY=out
ARTIFACTS_DIRECTORY=artifacts
DOCKER_IMAGE=shop
DOCKER_CONTAINER=shop-api
"""


class FakeRunner(ProcessRunner):
    """Records invocations instead of starting processes.

    ``fail_on`` and ``output_for`` match on a fragment of the command line.
    """

    def __init__(self) -> None:
        self.calls: list[ProcessInvocation] = []
        self._failures: dict[str, int] = {}
        self._outputs: dict[str, str] = {}

    def fail_on(self, fragment: str, returncode: int = 1) -> None:
        self._failures[fragment] = returncode

    def output_for(self, fragment: str, text: str) -> None:
        self._outputs[fragment] = text

    @property
    def commands(self) -> list[str]:
        return [call.display for call in self.calls]

    def _returncode(self, invocation: ProcessInvocation) -> int:
        for fragment, code in self._failures.items():
            if fragment in invocation.display:
                return code
        return 0

    def run(self, invocation: ProcessInvocation) -> Outcome:
        self.calls.append(invocation)
        return self._outcome(invocation, self._returncode(invocation))

    def capture(self, invocation: ProcessInvocation) -> str:
        self.calls.append(invocation)
        outcome = self._outcome(invocation, self._returncode(invocation))
        if not outcome.ok:
            raise StepFailedError(invocation.display, outcome.message, exit_code=outcome.exit_code)
        for fragment, text in self._outputs.items():
            if fragment in invocation.display:
                return text
        return ""


class ScriptedSelector:
    """Selector test double answering menus from a script."""

    interactive = True

    def __init__(
        self,
        *answers: str | Cancelled,
        texts: Sequence[str] = (),
        confirms: Sequence[bool] = (),
    ) -> None:
        self._answers = list(answers)
        self._texts = list(texts)
        self._confirms = list(confirms)
        self.menus: list[tuple[str, list[str]]] = []
        self.prompts: list[str] = []

    def select(
        self,
        title: str,
        choices: Sequence[str],
        *,
        search: bool = False,
        page_size: int = 10,
        allow_cancel: bool = True,
    ) -> str | Cancelled:
        self.menus.append((title, list(choices)))
        if not self._answers:
            raise AssertionError(f"unexpected menu: {title}")
        return self._answers.pop(0)

    def ask_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self._texts.pop(0)

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        return self._confirms.pop(0)


def write_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's MODCTL_* variables out of every test."""
    for name in list(os.environ):
        if name.startswith("MODCTL_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Undo configure_logging() calls made by CLI invocations."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    modctl_logger = logging.getLogger("modctl")
    modctl_level = modctl_logger.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    modctl_logger.setLevel(modctl_level)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """Sample repository: modules Alpha, Beta and Common, one solution.

    Alpha has one database context, Beta has two, Common is denylisted.
    """
    write_file(tmp_path / ".modctl" / "settings.env", SETTINGS_ENV)
    write_file(tmp_path / "App.sln")
    modules = tmp_path / "src" / "Modules"
    alpha = modules / "Alpha" / "Alpha.Infrastructure"
    write_file(alpha / "Alpha.Infrastructure.csproj")
    write_file(alpha / "EntityFramework" / "AlphaDbContext.cs")
    beta = modules / "Beta" / "Beta.Infrastructure"
    write_file(beta / "Beta.Infrastructure.csproj")
    write_file(beta / "EntityFramework" / "BetaDbContext.cs")
    write_file(beta / "EntityFramework" / "BetaReadDbContext.cs")
    write_file(modules / "Common" / "Common.Infrastructure" / "CommonDbContext.cs")
    write_file(
        tmp_path / "src" / "Presentation.Web.Server" / "Presentation.Web.Server.csproj"
    )
    return tmp_path


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def make_context(repo: Path, runner: FakeRunner) -> Callable[..., TaskContext]:
    """Factory building a TaskContext on the sample repository.

    Positional arguments are scripted menu answers; keyword arguments become
    TaskOptions, except ``selector`` and ``settings`` overrides.
    """

    def _make(*answers: str | Cancelled, selector: Any = None, **options: Any) -> TaskContext:
        layers = LayeredConfig().load(default_layers(repo))
        settings = ModctlSettings.from_layers(layers, root=repo)
        return TaskContext(
            settings=settings,
            config=layers,
            runner=runner,
            selector=selector or ScriptedSelector(*answers),
            options=TaskOptions(**options),
        )

    return _make


@pytest.fixture
def _isolated_repo(repo: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the sample repository so the CLI discovers it.

    Use via ``@pytest.mark.usefixtures("_isolated_repo")`` on command test
    classes.
    """
    monkeypatch.chdir(repo)


@pytest.fixture
def cli_runner_process(runner: FakeRunner, monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    """Make every CLI invocation use the recording FakeRunner."""
    monkeypatch.setattr("modctl.commands._context.ProcessRunner", lambda: runner)
    return runner


@pytest.fixture
def use_selector(monkeypatch: pytest.MonkeyPatch) -> Callable[[Any], None]:
    """Install a selector double for CLI invocations (stdin is never a TTY there)."""

    def _install(selector: Any) -> None:
        monkeypatch.setattr(
            "modctl.commands._context.create_selector", lambda **_kwargs: selector
        )

    return _install
