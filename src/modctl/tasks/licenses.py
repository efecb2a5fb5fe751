"""License report task (``dotnet nuget-license``)."""

from __future__ import annotations

from modctl.domain.process import ProcessInvocation
from modctl.infrastructure.artifacts import write_summary
from modctl.services.context import TaskContext
from modctl.services.dispatch import TaskSpec
from modctl.services.result import TaskResult

LICENSES_FAILED = 50
REPORT_FILENAME = "licenses.json"


def licenses(ctx: TaskContext) -> TaskResult:
    sln = ctx.targets.solution(ctx.root, ctx.settings.solution)
    run_dir = ctx.run_directory("licenses")
    report = run_dir / REPORT_FILENAME
    run = ctx.run("licenses")
    run.must_succeed(
        "nuget-license",
        ProcessInvocation(
            ctx.settings.license_executable,
            ("nuget-license", "-i", str(sln), "-o", "JsonPretty", "-fo", str(report)),
            failure_message="License report failed",
            failure_code=LICENSES_FAILED,
            cwd=ctx.root,
        ),
    )
    summary = write_summary(run_dir, "licenses")
    return run.finish(solution=str(sln), report=str(report), summary_file=str(summary))


TASKS = (TaskSpec("licenses", licenses, "Generate a dependency license report", "licenses"),)
