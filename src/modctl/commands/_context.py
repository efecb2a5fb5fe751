"""AppContext: shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Settings files are loaded lazily so ``--help``,
``tasks`` and ``modules`` work in a repository that has no settings yet.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from modctl.config.discovery import TOOL_DIR, default_layers, find_root
from modctl.config.layers import LayeredConfig
from modctl.config.logging import configure_logging
from modctl.config.settings import ModctlSettings
from modctl.infrastructure.process import ProcessRunner
from modctl.output.formatters import format_result
from modctl.output.selector import create_selector
from modctl.services.result import TaskResult

if TYPE_CHECKING:
    from modctl.domain.errors import ModctlError
    from modctl.plugins.manager import PluginManager
    from modctl.services.context import TaskContext, TaskOptions
    from modctl.services.dispatch import TaskRegistry


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(
        self,
        *,
        root: Path | None = None,
        config_path: str | None = None,
        json_output: bool = False,
        verbose: bool = False,
        log_json: bool = False,
        no_interact: bool = False,
    ) -> None:
        self.root = root.resolve() if root else find_root()
        self.config_path = Path(config_path) if config_path else None
        self.json_output = json_output
        self.verbose = verbose
        self.log_json = log_json
        self.no_interact = no_interact
        self.runner = ProcessRunner()
        self.selector = create_selector(no_interact=no_interact)
        self._layers: LayeredConfig | None = None
        self._settings: ModctlSettings | None = None
        self._plugins: PluginManager | None = None

        configure_logging(verbose=verbose, log_json=log_json)

    @property
    def layers(self) -> LayeredConfig:
        """The merged settings files (loaded on first access)."""
        if self._layers is None:
            self._layers = LayeredConfig().load(default_layers(self.root, self.config_path))
        return self._layers

    @property
    def settings(self) -> ModctlSettings:
        if self._settings is None:
            self._settings = ModctlSettings.from_layers(
                self.layers,
                root=self.root,
                json_output=self.json_output,
                verbose=self.verbose,
                log_json=self.log_json,
                no_interact=self.no_interact,
            )
        return self._settings

    @property
    def plugins(self) -> PluginManager:
        if self._plugins is None:
            from modctl.plugins.manager import PluginManager

            self._plugins = PluginManager()
            self._plugins.discover_and_load(local_dir=self.root / TOOL_DIR / "plugins")
        return self._plugins

    def registry(self) -> TaskRegistry:
        """Built-in tasks plus whatever plugins register."""
        from modctl.services.dispatch import TaskRegistry
        from modctl.tasks import register_builtin_tasks

        registry = TaskRegistry()
        register_builtin_tasks(registry)
        self.plugins.register_tasks(registry)
        return registry

    def task_context(self, options: TaskOptions) -> TaskContext:
        from modctl.services.context import TaskContext

        return TaskContext(
            settings=self.settings,
            config=self.layers,
            runner=self.runner,
            selector=self.selector,
            options=options,
        )

    def emit(self, result: TaskResult) -> None:
        """Format and output a TaskResult with correct exit semantics.

        * Success (including cancellation): stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: stderr, exits with the result's exit code.
        """
        output = format_result(result, json_output=self.json_output)
        if result.ok:
            click.echo(output)
            if not self.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(result.exit_code or 1)

    def fail(self, op: str, exc: ModctlError) -> None:
        self.emit(TaskResult.from_error(op, exc))
