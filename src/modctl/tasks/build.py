"""Build toolchain tasks: build, test, format, publish, pack.

Every step here is must-succeed except the bin/obj cleanup in ``clean``.
"""

from __future__ import annotations

import shutil
from functools import partial
from pathlib import Path

from modctl.domain.errors import DiscoveryError
from modctl.infrastructure.artifacts import write_summary
from modctl.infrastructure.discovery import find_build_output_dirs
from modctl.services.context import TaskContext
from modctl.services.dispatch import TaskSpec
from modctl.services.result import TaskResult

BUILD_FAILED = 10
TEST_FAILED = 11
FORMAT_FAILED = 12
PUBLISH_FAILED = 13
PACK_FAILED = 14


def _solution(ctx: TaskContext) -> Path:
    return ctx.targets.solution(ctx.root, ctx.settings.solution)


def build(ctx: TaskContext) -> TaskResult:
    """Compile the solution."""
    sln = _solution(ctx)
    configuration = ctx.options.configuration or ctx.settings.build_configuration
    run = ctx.run("build")
    run.must_succeed(
        "dotnet build",
        ctx.dotnet(
            "build",
            str(sln),
            "-c",
            configuration,
            failure=f"Build of {sln.name} failed",
            code=BUILD_FAILED,
        ),
    )
    return run.finish(solution=str(sln), configuration=configuration)


def restore(ctx: TaskContext) -> TaskResult:
    sln = _solution(ctx)
    run = ctx.run("restore")
    run.must_succeed(
        "dotnet restore",
        ctx.dotnet("restore", str(sln), failure=f"Restore of {sln.name} failed", code=BUILD_FAILED),
    )
    return run.finish(solution=str(sln))


def clean(ctx: TaskContext) -> TaskResult:
    """``dotnet clean``, then delete bin/obj folders (best-effort)."""
    sln = _solution(ctx)
    run = ctx.run("clean")
    run.must_succeed(
        "dotnet clean",
        ctx.dotnet("clean", str(sln), failure=f"Clean of {sln.name} failed", code=BUILD_FAILED),
    )
    removed = 0
    for folder in find_build_output_dirs(ctx.root):
        if run.best_effort_call(f"remove {folder}", partial(shutil.rmtree, folder)):
            removed += 1
    return run.finish(solution=str(sln), removed=removed)


def _run_tests(ctx: TaskContext, op: str, category: str | None) -> TaskResult:
    sln = _solution(ctx)
    run_dir = ctx.run_directory("test-results")
    args = ["test", str(sln), "--results-directory", str(run_dir), "--logger", "trx"]
    filters = [f"Category={category}"] if category else []
    if ctx.options.filter:
        filters.append(ctx.options.filter)
    if filters:
        args += ["--filter", "&".join(filters)]
    if ctx.options.coverage:
        args += ["--collect", "XPlat Code Coverage"]
    run = ctx.run(op)
    try:
        run.must_succeed(
            "dotnet test",
            ctx.dotnet(*args, failure="Tests failed", code=TEST_FAILED, passthrough=True),
        )
    finally:
        # Partial results are still worth a summary.
        write_summary(run_dir, op)
    return run.finish(solution=str(sln), results_dir=str(run_dir))


def run_all_tests(ctx: TaskContext) -> TaskResult:
    return _run_tests(ctx, "test", None)


def run_unit_tests(ctx: TaskContext) -> TaskResult:
    return _run_tests(ctx, "test-unit", "UnitTest")


def run_integration_tests(ctx: TaskContext) -> TaskResult:
    return _run_tests(ctx, "test-integration", "IntegrationTest")


def _format(ctx: TaskContext, op: str, *extra: str) -> TaskResult:
    sln = _solution(ctx)
    run = ctx.run(op)
    run.must_succeed(
        "dotnet format",
        ctx.dotnet(
            "format",
            str(sln),
            *extra,
            failure=f"Formatting of {sln.name} failed",
            code=FORMAT_FAILED,
        ),
    )
    return run.finish(solution=str(sln))


def format_code(ctx: TaskContext) -> TaskResult:
    return _format(ctx, "format")


def format_check(ctx: TaskContext) -> TaskResult:
    return _format(ctx, "format-check", "--verify-no-changes")


def outdated(ctx: TaskContext) -> TaskResult:
    sln = _solution(ctx)
    run = ctx.run("outdated")
    run.must_succeed(
        "dotnet list package",
        ctx.dotnet(
            "list",
            str(sln),
            "package",
            "--outdated",
            failure="Listing outdated packages failed",
            code=BUILD_FAILED,
        ),
    )
    return run.finish(solution=str(sln))


def publish(ctx: TaskContext) -> TaskResult:
    """Publish the startup project, framework-dependent or for one RID."""
    rid = ctx.targets.rid(ctx.options.rid)
    project = ctx.settings.resolve_path(ctx.settings.startup_project)
    if not project.is_file():
        raise DiscoveryError(f"Startup project not found: {project}")
    out = ctx.artifacts_dir() / "publish" / (rid or "portable")
    args = ["publish", str(project), "-c", "Release", "-o", str(out)]
    if rid:
        args += ["-r", rid, "--self-contained", "true"]
    run = ctx.run("publish")
    run.must_succeed(
        "dotnet publish",
        ctx.dotnet(*args, failure=f"Publish of {project.name} failed", code=PUBLISH_FAILED),
    )
    out.mkdir(parents=True, exist_ok=True)
    summary = write_summary(out, "publish")
    return run.finish(
        project=str(project),
        rid=rid or "portable",
        output_dir=str(out),
        summary_file=str(summary),
    )


def pack(ctx: TaskContext) -> TaskResult:
    sln = _solution(ctx)
    out = ctx.artifacts_dir() / "packages"
    run = ctx.run("pack")
    run.must_succeed(
        "dotnet pack",
        ctx.dotnet(
            "pack",
            str(sln),
            "-c",
            "Release",
            "-o",
            str(out),
            failure=f"Pack of {sln.name} failed",
            code=PACK_FAILED,
        ),
    )
    return run.finish(solution=str(sln), output_dir=str(out))


def tools_restore(ctx: TaskContext) -> TaskResult:
    run = ctx.run("tools-restore")
    run.must_succeed(
        "dotnet tool restore",
        ctx.dotnet("tool", "restore", failure="Restoring local tools failed", code=BUILD_FAILED),
    )
    return run.finish()


TASKS = (
    TaskSpec("build", build, "Build the solution", "build"),
    TaskSpec("restore", restore, "Restore NuGet packages", "build"),
    TaskSpec("clean", clean, "Clean build output and bin/obj folders", "build"),
    TaskSpec("outdated", outdated, "List outdated packages", "build"),
    TaskSpec("tools-restore", tools_restore, "Restore local dotnet tools", "build"),
    TaskSpec("test", run_all_tests, "Run all tests", "test"),
    TaskSpec("test-unit", run_unit_tests, "Run unit tests", "test"),
    TaskSpec("test-integration", run_integration_tests, "Run integration tests", "test"),
    TaskSpec("format", format_code, "Format the code", "lint"),
    TaskSpec("format-check", format_check, "Verify formatting without changes", "lint"),
    TaskSpec("publish", publish, "Publish the app", "package", ("artifacts_directory",)),
    TaskSpec("pack", pack, "Create NuGet packages", "package", ("artifacts_directory",)),
)
