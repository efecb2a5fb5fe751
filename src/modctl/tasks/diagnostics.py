"""Diagnostics tasks: list .NET processes and collect performance traces."""

from __future__ import annotations

import re

from modctl.domain.process import ProcessInvocation
from modctl.domain.targets import ProcessInfo
from modctl.infrastructure.artifacts import write_summary
from modctl.services.context import TaskContext
from modctl.services.dispatch import TaskSpec
from modctl.services.result import TaskResult

TRACE_FAILED = 40
TRACE_FILENAME = "trace.nettrace"

_PS_LINE_RE = re.compile(r"^\s*(\d+)\s+(\S+)\s*(.*)$")


def parse_processes(output: str) -> list[ProcessInfo]:
    """Parse ``dotnet-trace ps`` lines (``<pid> <name> <path> ...``)."""
    processes = []
    for line in output.splitlines():
        match = _PS_LINE_RE.match(line)
        if match:
            pid, name, command = match.groups()
            processes.append(ProcessInfo(pid=int(pid), name=name, command=command.strip()))
    return processes


def _trace(ctx: TaskContext, *args: str, failure: str) -> ProcessInvocation:
    return ProcessInvocation(
        ctx.settings.trace_executable,
        args,
        failure_message=failure,
        failure_code=TRACE_FAILED,
        cwd=ctx.root,
    )


def trace_ps(ctx: TaskContext) -> TaskResult:
    run = ctx.run("trace-ps")
    run.must_succeed("dotnet-trace ps", _trace(ctx, "ps", failure="Listing processes failed"))
    return run.finish()


def trace(ctx: TaskContext) -> TaskResult:
    """Collect a trace from a picked process, then convert it to Speedscope."""
    listing = ctx.runner.capture(_trace(ctx, "ps", failure="Listing processes failed"))
    process = ctx.targets.process(parse_processes(listing), ctx.options.pid)
    run_dir = ctx.run_directory("traces")
    trace_file = run_dir / TRACE_FILENAME

    run = ctx.run("trace")
    run.must_succeed(
        "collect trace",
        _trace(
            ctx,
            "collect",
            "--process-id",
            str(process.pid),
            "--duration",
            ctx.settings.trace_duration,
            "-o",
            str(trace_file),
            failure=f"Collecting a trace from {process.label} failed",
        ),
    )
    run.best_effort(
        "convert trace",
        _trace(
            ctx,
            "convert",
            str(trace_file),
            "--format",
            "Speedscope",
            "-o",
            str(run_dir / "trace"),
            failure="Converting the trace failed",
        ),
    )
    summary = write_summary(run_dir, "trace")
    return run.finish(
        pid=process.pid,
        process=process.name,
        trace_file=str(trace_file),
        summary_file=str(summary),
    )


TASKS = (
    TaskSpec("trace-ps", trace_ps, "List traceable .NET processes", "diagnostics"),
    TaskSpec("trace", trace, "Collect a performance trace", "diagnostics"),
)
