"""Tests for the run command: dispatch, exit codes and output streams."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from modctl.cli import cli
from modctl.domain.selection import CANCEL
from tests.conftest import FakeRunner, ScriptedSelector


@pytest.mark.usefixtures("_isolated_repo")
class TestRunCommand:
    def test_build(self, cli_runner: CliRunner, cli_runner_process: FakeRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "build"])
        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("OK  build")
        assert "summary: completed" in result.stdout
        assert cli_runner_process.calls[0].args[0] == "build"

    def test_verb_case_insensitive(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        result = cli_runner.invoke(cli, ["run", "BUILD", "--configuration", "Release"])
        assert result.exit_code == 0
        assert cli_runner_process.calls[0].args[-1] == "Release"

    def test_unknown_verb(self, cli_runner: CliRunner, cli_runner_process: FakeRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "deploy"])
        assert result.exit_code == 2
        assert result.stdout == ""
        assert "Unknown command: 'deploy'" in result.stderr
        assert cli_runner_process.calls == []

    def test_step_failure_exit_code(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        cli_runner_process.fail_on("dotnet build")
        result = cli_runner.invoke(cli, ["run", "build"])
        assert result.exit_code == 10
        assert "ERROR  build - dotnet build: Build of App.sln failed" in result.stderr

    def test_json_output(self, cli_runner: CliRunner, cli_runner_process: FakeRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "run", "ef-list", "-m", "Alpha"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "ef-list"
        assert data["data"]["targets"] == ["Alpha/AlphaDbContext"]

    def test_json_error_on_stderr(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        result = cli_runner.invoke(cli, ["--json", "run", "deploy"])
        assert result.stdout == ""
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "UNKNOWN_TASK"

    def test_best_effort_warning_on_stderr(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        cli_runner_process.fail_on("docker rm -f")
        result = cli_runner.invoke(cli, ["run", "docker-run", "--port", "9000"])
        assert result.exit_code == 0
        assert "completed with 1 error(s)" in result.stdout
        assert "WARNING: remove old container" in result.stderr

    def test_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "--examples"])
        assert result.exit_code == 0
        assert "modctl run ef-add" in result.stdout


@pytest.mark.usefixtures("_isolated_repo")
class TestInteraction:
    def test_cancel_prints_cancelled_and_exits_zero(
        self,
        cli_runner: CliRunner,
        cli_runner_process: FakeRunner,
        use_selector: Callable[[Any], None],
    ) -> None:
        use_selector(ScriptedSelector(CANCEL))
        result = cli_runner.invoke(cli, ["run", "ef-add", "--name", "AddOrders"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "Cancelled."
        assert cli_runner_process.calls == []

    def test_invalid_module_falls_back_to_menu(
        self,
        cli_runner: CliRunner,
        cli_runner_process: FakeRunner,
        use_selector: Callable[[Any], None],
    ) -> None:
        selector = ScriptedSelector("Alpha")
        use_selector(selector)
        result = cli_runner.invoke(cli, ["run", "ef-list", "-m", "Gamma"])
        assert result.exit_code == 0
        assert selector.menus[0][0] == "Select module"
        assert "'Gamma' is not a valid choice" in result.stderr
        assert "Alpha/AlphaDbContext" in result.stdout

    def test_no_interact_fails_fast(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        result = cli_runner.invoke(cli, ["--no-interact", "run", "ef-list"])
        assert result.exit_code == 5
        assert "prompts are disabled" in result.stderr
        assert cli_runner_process.calls == []

    def test_no_interact_rejects_unknown_context(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner
    ) -> None:
        args = ["--no-interact", "run", "ef-reset", "-m", "Alpha", "--context", "Typo", "--force"]
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 5
        assert "Select database context (Alpha)" in result.stderr
        assert cli_runner_process.calls == []

    def test_env_module(
        self,
        cli_runner: CliRunner,
        cli_runner_process: FakeRunner,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("MODCTL_MODULE", "Beta")
        monkeypatch.setenv("MODCTL_DBCONTEXT", "BetaReadDbContext")
        result = cli_runner.invoke(cli, ["--no-interact", "run", "ef-apply"])
        assert result.exit_code == 0, result.output
        assert "Beta/BetaReadDbContext" in result.stdout


@pytest.mark.usefixtures("_isolated_repo")
class TestConfigurationErrors:
    def test_missing_tool_layer(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner, repo: Path
    ) -> None:
        (repo / ".modctl" / "settings.env").unlink()
        result = cli_runner.invoke(cli, ["run", "build"])
        assert result.exit_code == 3
        assert "configuration file not found" in result.stderr

    def test_missing_required_setting(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner, repo: Path
    ) -> None:
        (repo / ".modctl" / "settings.env").write_text("OUTPUT_DIRECTORY=out\n")
        result = cli_runner.invoke(cli, ["run", "docker-run"])
        assert result.exit_code == 3
        assert "DOCKER_IMAGE, DOCKER_CONTAINER" in result.stderr
        assert cli_runner_process.calls == []

    def test_extra_config_layer(
        self, cli_runner: CliRunner, cli_runner_process: FakeRunner, repo: Path
    ) -> None:
        extra = repo / "ci.env"
        extra.write_text("BUILD_CONFIGURATION=Release\n")
        result = cli_runner.invoke(cli, ["-c", str(extra), "run", "build"])
        assert result.exit_code == 0
        assert cli_runner_process.calls[0].args[-1] == "Release"


class TestRootOption:
    def test_explicit_root(
        self,
        cli_runner: CliRunner,
        cli_runner_process: FakeRunner,
        repo: Path,
        tmp_path_factory: pytest.TempPathFactory,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.chdir(tmp_path_factory.mktemp("elsewhere"))
        result = cli_runner.invoke(cli, ["--root", str(repo), "run", "tools-restore"])
        assert result.exit_code == 0
        assert cli_runner_process.calls[0].cwd == repo.resolve()
