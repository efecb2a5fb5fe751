"""Schema-migration tasks driven through ``dotnet ef``.

Every task targets one module + database context.  ``ef-list`` and
``ef-apply`` also accept the ``All`` wildcard and then run for every
context of every module.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
from typing import Any

from modctl.domain.errors import DiscoveryError, ModctlError, OperationCancelled
from modctl.domain.process import ProcessInvocation
from modctl.infrastructure.artifacts import write_summary
from modctl.infrastructure.discovery import (
    discover_db_contexts,
    discover_modules,
    migrations_subdir,
    module_infrastructure_project,
    module_migrations_dir,
)
from modctl.services.context import TaskContext
from modctl.services.dispatch import TaskSpec
from modctl.services.result import TaskResult

logger = logging.getLogger(__name__)

EF_FAILED = 20
INITIAL_MIGRATION = "Initial"

_MIGRATION_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")
_DATA_PREFIX = "data:"


def _ef(
    ctx: TaskContext,
    module: str,
    context: str,
    *args: str,
    failure: str,
) -> ProcessInvocation:
    project = module_infrastructure_project(ctx.root, module)
    startup = ctx.settings.resolve_path(ctx.settings.startup_project)
    return ctx.dotnet(
        "ef",
        *args,
        "--project",
        str(project),
        "--startup-project",
        str(startup),
        "--context",
        context,
        failure=f"{failure} ({module}/{context})",
        code=EF_FAILED,
    )


def _target(ctx: TaskContext) -> tuple[str, str]:
    module = ctx.targets.module(ctx.root, ctx.options.module)
    return module, ctx.targets.db_context(ctx.root, module, ctx.options.context)


def _targets(ctx: TaskContext) -> list[tuple[str, str]]:
    """One (module, context), or every pair when ``All`` was chosen."""
    resolution = ctx.targets.module_target(ctx.root, ctx.options.module, allow_all=True)
    if not resolution.is_wildcard:
        module = str(resolution.value)
        return [(module, ctx.targets.db_context(ctx.root, module, ctx.options.context))]
    pairs = [
        (entry.name, context.name)
        for entry in discover_modules(ctx.root)
        for context in discover_db_contexts(ctx.root, entry.name)
    ]
    if not pairs:
        raise DiscoveryError("No database contexts found in any module")
    return pairs


def parse_migrations(output: str) -> list[dict[str, Any]]:
    """Parse ``dotnet ef migrations list --json --prefix-output`` output.

    Only ``data:`` lines carry the JSON payload; build chatter is dropped.
    """
    data_lines = [
        line.split(_DATA_PREFIX, 1)[1].strip()
        for line in output.splitlines()
        if line.lstrip().startswith(_DATA_PREFIX)
    ]
    payload = "\n".join(data_lines) if data_lines else output
    start, end = payload.find("["), payload.rfind("]")
    if start == -1 or end < start:
        raise ModctlError("Could not read migration list from dotnet ef output")
    migrations = json.loads(payload[start : end + 1])
    if not isinstance(migrations, list):
        raise ModctlError("Unexpected migration list format from dotnet ef")
    return migrations


def undo_target(migrations: list[dict[str, Any]]) -> str | None:
    """Migration id to roll back to, ``"0"`` for none, None if nothing applied."""
    if any(m.get("applied") is None for m in migrations):
        raise ModctlError("Applied state unknown; is the database reachable?")
    applied = [m for m in migrations if m.get("applied")]
    if not applied:
        return None
    if len(applied) == 1:
        return "0"
    return str(applied[-2]["id"])


def ef_list(ctx: TaskContext) -> TaskResult:
    run = ctx.run("ef-list")
    targets = _targets(ctx)
    for module, context in targets:
        run.must_succeed(
            f"list migrations {module}/{context}",
            _ef(ctx, module, context, "migrations", "list", failure="Listing migrations failed"),
        )
    return run.finish(targets=[f"{m}/{c}" for m, c in targets])


def ef_add(ctx: TaskContext) -> TaskResult:
    module, context = _target(ctx)
    name = ctx.options.name or ctx.selector.ask_text("Migration name")
    if not _MIGRATION_NAME_RE.match(name):
        raise ModctlError(f"Invalid migration name: {name!r}", exit_code=2)
    run = ctx.run("ef-add")
    run.must_succeed(
        f"add migration {name}",
        _ef(
            ctx,
            module,
            context,
            "migrations",
            "add",
            name,
            "--output-dir",
            str(migrations_subdir(ctx.root, module, context)),
            failure=f"Adding migration {name} failed",
        ),
    )
    return run.finish(module=module, context=context, migration=name)


def ef_remove(ctx: TaskContext) -> TaskResult:
    module, context = _target(ctx)
    args = ["migrations", "remove"]
    if ctx.options.force:
        args.append("--force")
    run = ctx.run("ef-remove")
    run.must_succeed(
        "remove last migration",
        _ef(ctx, module, context, *args, failure="Removing the last migration failed"),
    )
    return run.finish(module=module, context=context)


def ef_apply(ctx: TaskContext) -> TaskResult:
    run = ctx.run("ef-apply")
    targets = _targets(ctx)
    for module, context in targets:
        run.must_succeed(
            f"update database {module}/{context}",
            _ef(ctx, module, context, "database", "update", failure="Applying migrations failed"),
        )
    return run.finish(targets=[f"{m}/{c}" for m, c in targets])


def ef_undo(ctx: TaskContext) -> TaskResult:
    """Roll the database back by one applied migration."""
    module, context = _target(ctx)
    output = ctx.runner.capture(
        _ef(
            ctx,
            module,
            context,
            "migrations",
            "list",
            "--json",
            "--prefix-output",
            failure="Listing migrations failed",
        )
    )
    target = undo_target(parse_migrations(output))
    run = ctx.run("ef-undo")
    if target is None:
        logger.warning("No applied migrations to undo for %s/%s", module, context)
        return run.finish(module=module, context=context, target=None)
    run.must_succeed(
        f"update database to {target}",
        _ef(ctx, module, context, "database", "update", target, failure="Undoing migration failed"),
    )
    return run.finish(module=module, context=context, target=target)


def ef_reset(ctx: TaskContext) -> TaskResult:
    """Revert the database, delete the context's migrations and recreate ``Initial``."""
    module, context = _target(ctx)
    migrations_dir = module_migrations_dir(ctx.root, module, context)
    if not ctx.options.force and not ctx.selector.confirm(
        f"Delete all migrations of {module}/{context} and recreate {INITIAL_MIGRATION}?"
    ):
        raise OperationCancelled()
    run = ctx.run("ef-reset")
    run.best_effort(
        "revert database",
        _ef(ctx, module, context, "database", "update", "0", failure="Reverting database failed"),
    )
    if migrations_dir.is_dir():
        shutil.rmtree(migrations_dir)
    run.must_succeed(
        f"add migration {INITIAL_MIGRATION}",
        _ef(
            ctx,
            module,
            context,
            "migrations",
            "add",
            INITIAL_MIGRATION,
            "--output-dir",
            str(migrations_subdir(ctx.root, module, context)),
            failure=f"Adding migration {INITIAL_MIGRATION} failed",
        ),
    )
    return run.finish(module=module, context=context, migration=INITIAL_MIGRATION)


def ef_script(ctx: TaskContext) -> TaskResult:
    """Generate an idempotent SQL script for all migrations."""
    module, context = _target(ctx)
    run_dir = ctx.run_directory("migrations")
    script = run_dir / f"{module}_{context}.sql"
    run = ctx.run("ef-script")
    run.must_succeed(
        "script migrations",
        _ef(
            ctx,
            module,
            context,
            "migrations",
            "script",
            "--idempotent",
            "--output",
            str(script),
            failure="Scripting migrations failed",
        ),
    )
    summary = write_summary(run_dir, "ef-script")
    return run.finish(module=module, context=context, script=str(script), summary_file=str(summary))


TASKS = (
    TaskSpec("ef-list", ef_list, "List migrations (supports All)", "ef"),
    TaskSpec("ef-add", ef_add, "Add a migration", "ef"),
    TaskSpec("ef-remove", ef_remove, "Remove the last migration", "ef"),
    TaskSpec("ef-apply", ef_apply, "Apply migrations to the database (supports All)", "ef"),
    TaskSpec("ef-undo", ef_undo, "Roll back the last applied migration", "ef"),
    TaskSpec("ef-reset", ef_reset, "Delete all migrations and recreate Initial", "ef"),
    TaskSpec("ef-script", ef_script, "Generate an idempotent SQL script", "ef"),
)
