"""Tests for build toolchain task bodies."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from modctl.domain.errors import ConfigError, DiscoveryError, StepFailedError
from modctl.services.context import TaskContext
from modctl.tasks.build import (
    BUILD_FAILED,
    build,
    clean,
    format_check,
    outdated,
    pack,
    publish,
    run_all_tests,
    run_unit_tests,
    tools_restore,
)
from tests.conftest import FakeRunner, write_file

MakeContext = Callable[..., TaskContext]


def _single_dir(base: Path) -> Path:
    (run_dir,) = list(base.iterdir())
    return run_dir


class TestBuild:
    def test_builds_discovered_solution(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        result = build(make_context())
        assert result.ok
        call = runner.calls[0]
        assert call.executable == "dotnet"
        assert call.args == ("build", str(repo / "App.sln"), "-c", "Debug")
        assert call.cwd == repo
        assert result.data["configuration"] == "Debug"

    def test_configuration_option(self, make_context: MakeContext, runner: FakeRunner) -> None:
        build(make_context(configuration="Release"))
        assert runner.calls[0].args[-2:] == ("-c", "Release")

    def test_failure_uses_build_code(self, make_context: MakeContext, runner: FakeRunner) -> None:
        runner.fail_on("dotnet build", returncode=1)
        with pytest.raises(StepFailedError) as exc_info:
            build(make_context())
        assert exc_info.value.exit_code == BUILD_FAILED
        assert "Build of App.sln failed" in exc_info.value.message

    def test_multiple_solutions_prompt(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        write_file(repo / "Tools.sln")
        build(make_context("Tools.sln"))
        assert runner.calls[0].args[1] == str(repo / "Tools.sln")


class TestClean:
    def test_removes_bin_and_obj(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        bin_dir = repo / "src" / "Presentation.Web.Server" / "bin"
        write_file(bin_dir / "Debug" / "app.dll")
        (repo / "src" / "Presentation.Web.Server" / "obj").mkdir()
        result = clean(make_context())
        assert result.data["removed"] == 2
        assert not bin_dir.exists()
        assert runner.calls[0].args[0] == "clean"


class TestTests:
    def test_all_tests_write_summary(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        result = run_all_tests(make_context())
        run_dir = _single_dir(repo / "out" / "test-results")
        args = runner.calls[0].args
        assert args[:2] == ("test", str(repo / "App.sln"))
        assert args[args.index("--results-directory") + 1] == str(run_dir)
        assert "--filter" not in args
        assert result.data["results_dir"] == str(run_dir)
        assert json.loads((run_dir / "summary.json").read_text())["name"] == "test"

    def test_unit_filter_and_coverage(self, make_context: MakeContext, runner: FakeRunner) -> None:
        run_unit_tests(make_context(filter="FullyQualifiedName~Orders", coverage=True))
        args = runner.calls[0].args
        assert args[args.index("--filter") + 1] == "Category=UnitTest&FullyQualifiedName~Orders"
        assert args[args.index("--collect") + 1] == "XPlat Code Coverage"

    def test_failure_passes_child_code_and_keeps_summary(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        runner.fail_on("dotnet test", returncode=3)
        with pytest.raises(StepFailedError) as exc_info:
            run_all_tests(make_context())
        assert exc_info.value.exit_code == 3
        assert (_single_dir(repo / "out" / "test-results") / "summary.json").is_file()

    def test_output_override(self, make_context: MakeContext, repo: Path) -> None:
        run_all_tests(make_context(output=Path("custom")))
        assert (repo / "custom" / "test-results").is_dir()


class TestLint:
    def test_format_check(self, make_context: MakeContext, runner: FakeRunner) -> None:
        format_check(make_context())
        assert runner.calls[0].args[0] == "format"
        assert runner.calls[0].args[-1] == "--verify-no-changes"

    def test_outdated(self, make_context: MakeContext, runner: FakeRunner) -> None:
        outdated(make_context())
        assert runner.calls[0].args[2:] == ("package", "--outdated")


class TestPackage:
    def test_publish_for_rid(
        self, make_context: MakeContext, runner: FakeRunner, repo: Path
    ) -> None:
        result = publish(make_context(rid="linux-x64"))
        out = repo / "artifacts" / "publish" / "linux-x64"
        args = runner.calls[0].args
        assert args[args.index("-o") + 1] == str(out)
        assert args[-4:] == ("-r", "linux-x64", "--self-contained", "true")
        assert result.data["rid"] == "linux-x64"
        assert (out / "summary.json").is_file()

    def test_publish_framework_dependent_from_menu(
        self, make_context: MakeContext, runner: FakeRunner
    ) -> None:
        result = publish(make_context("framework-dependent"))
        assert "-r" not in runner.calls[0].args
        assert result.data["rid"] == "portable"

    def test_publish_missing_startup_project(
        self, make_context: MakeContext, repo: Path
    ) -> None:
        (repo / "src" / "Presentation.Web.Server" / "Presentation.Web.Server.csproj").unlink()
        with pytest.raises(DiscoveryError, match="Startup project"):
            publish(make_context(rid="linux-x64"))

    def test_pack(self, make_context: MakeContext, runner: FakeRunner, repo: Path) -> None:
        pack(make_context())
        args = runner.calls[0].args
        assert args[args.index("-o") + 1] == str(repo / "artifacts" / "packages")

    def test_missing_artifacts_directory(
        self, make_context: MakeContext, repo: Path
    ) -> None:
        (repo / ".modctl" / "settings.env").write_text("OUTPUT_DIRECTORY=out\n")
        with pytest.raises(ConfigError, match="ARTIFACTS_DIRECTORY"):
            pack(make_context())


def test_tools_restore(make_context: MakeContext, runner: FakeRunner) -> None:
    tools_restore(make_context())
    assert runner.calls[0].args == ("tool", "restore")
