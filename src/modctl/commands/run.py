"""Command: run one task body by verb."""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import click

from modctl.commands._base import ModCommand

if TYPE_CHECKING:
    from modctl.commands._context import AppContext

_RUN_EXAMPLES = (
    "modctl run build",
    "modctl run build --configuration Release",
    "modctl run test-unit --coverage",
    "modctl run ef-add --module Core --name AddCustomerStatus",
    "modctl run ef-apply --module All",
    "modctl run publish --rid linux-x64",
    "modctl run docker-run --port 5000",
    "modctl run trace --pid 4242",
    "modctl --no-interact run ef-list --module Core --context CoreDbContext",
)


@click.command(cls=ModCommand, examples=_RUN_EXAMPLES)
@click.argument("verb")
@click.option("-m", "--module", default=None, help="Module name, or All where supported.")
@click.option("--context", default=None, help="Database context name.")
@click.option("--name", default=None, help="Name for the created item (e.g. migration).")
@click.option("--rid", default=None, help="Runtime identifier, or framework-dependent.")
@click.option("--pid", type=int, default=None, help="Process id to attach to.")
@click.option("--container", default=None, help="Container name.")
@click.option("--port", type=click.IntRange(1, 65535), default=None, help="Host port.")
@click.option("--configuration", default=None, help="Build configuration (Debug/Release).")
@click.option(
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Override the output directory.",
)
@click.option("--filter", "test_filter", default=None, help="Additional test filter expression.")
@click.option("--force", is_flag=True, help="Skip confirmations / force destructive steps.")
@click.option("--coverage", is_flag=True, help="Collect code coverage when testing.")
@click.pass_obj
def run(
    app: AppContext,
    verb: str,
    module: str | None,
    context: str | None,
    name: str | None,
    rid: str | None,
    pid: int | None,
    container: str | None,
    port: int | None,
    configuration: str | None,
    output: Path | None,
    test_filter: str | None,
    force: bool,
    coverage: bool,
) -> None:
    """Run the task named VERB (see 'modctl tasks')."""
    from modctl.services.context import TaskOptions
    from modctl.services.dispatch import TaskDispatcher

    options = TaskOptions(
        module=module,
        context=context,
        name=name,
        rid=rid,
        pid=pid,
        container=container,
        port=port,
        configuration=configuration,
        output=output,
        filter=test_filter,
        force=force,
        coverage=coverage,
    )
    dispatcher = TaskDispatcher(
        app.registry(),
        partial(app.task_context, options),
        plugins=app.plugins,
    )
    app.emit(dispatcher.dispatch(verb))
