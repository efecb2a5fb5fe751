"""Timestamped output folders and their ``summary.json`` record."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

SUMMARY_FILENAME = "summary.json"


class RunSummary(BaseModel):
    """Machine-readable record of what a task produced."""

    name: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    files: list[str] = Field(default_factory=list)


def timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now(UTC)).strftime("%Y%m%d_%H%M%S")


def create_run_directory(base: Path, category: str, *, now: datetime | None = None) -> Path:
    """Create and return ``<base>/<category>/<timestamp>``."""
    run_dir = base / category / timestamp(now)
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def write_summary(run_dir: Path, name: str) -> Path:
    """Write ``summary.json`` listing every file under *run_dir*."""
    files = sorted(
        p.relative_to(run_dir).as_posix()
        for p in run_dir.rglob("*")
        if p.is_file() and p.name != SUMMARY_FILENAME
    )
    summary = RunSummary(name=name, files=files)
    path = run_dir / SUMMARY_FILENAME
    path.write_text(summary.model_dump_json(indent=2), encoding="utf-8")
    return path
