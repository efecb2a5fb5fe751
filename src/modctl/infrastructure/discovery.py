"""Filesystem discovery of modules, database contexts and solutions.

Results are computed fresh on every call and sorted so interactive menus
are reproducible.  A missing directory yields an empty list, not an error.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath

from modctl.domain.errors import DiscoveryError
from modctl.domain.targets import (
    DBCONTEXT_SUFFIX,
    MODULE_DENYLIST,
    MODULES_DIR,
    DatabaseContext,
    Module,
)

_SKIPPED_DIRS = frozenset({"bin", "obj", "migrations"})
SOLUTION_PATTERNS = ("*.sln", "*.slnx")
MIGRATIONS_DIR = ("EntityFramework", "Migrations")


def modules_root(root: Path) -> Path:
    return root.joinpath(*MODULES_DIR)


def discover_modules(root: Path) -> list[Module]:
    """List module directories under ``src/Modules`` minus the denylist."""
    base = modules_root(root)
    if not base.is_dir():
        return []
    return sorted(
        Module(entry.name)
        for entry in base.iterdir()
        if entry.is_dir() and entry.name.lower() not in MODULE_DENYLIST
    )


def module_infrastructure_dir(root: Path, module: str) -> Path:
    return modules_root(root) / module / f"{module}.Infrastructure"


def discover_db_contexts(root: Path, module: str) -> list[DatabaseContext]:
    """List ``*DbContext.cs`` definitions in the module's infrastructure tree."""
    base = module_infrastructure_dir(root, module)
    if not base.is_dir():
        return []
    names: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = [d for d in dirnames if d.lower() not in _SKIPPED_DIRS]
        for filename in filenames:
            if filename.endswith(DBCONTEXT_SUFFIX) and filename != DBCONTEXT_SUFFIX:
                names.add(filename.removesuffix(".cs"))
    return [DatabaseContext(module=module, name=name) for name in sorted(names)]


def module_infrastructure_project(root: Path, module: str) -> Path:
    """Return the module's ``<module>.Infrastructure.csproj``."""
    project = module_infrastructure_dir(root, module) / f"{module}.Infrastructure.csproj"
    if not project.is_file():
        raise DiscoveryError(f"Infrastructure project not found for module {module}: {project}")
    return project


def migrations_subdir(root: Path, module: str, context: str) -> PurePosixPath:
    """Migrations folder of *context*, relative to the infrastructure project.

    A module with several contexts keeps one folder per context.
    """
    path = PurePosixPath(*MIGRATIONS_DIR)
    if len(discover_db_contexts(root, module)) > 1:
        path /= context
    return path


def module_migrations_dir(root: Path, module: str, context: str) -> Path:
    subdir = migrations_subdir(root, module, context)
    return module_infrastructure_dir(root, module).joinpath(*subdir.parts)


def discover_solutions(root: Path) -> list[Path]:
    """List solution files directly inside *root*."""
    if not root.is_dir():
        return []
    found: set[Path] = set()
    for pattern in SOLUTION_PATTERNS:
        found.update(p for p in root.glob(pattern) if p.is_file())
    return sorted(found)


def find_build_output_dirs(root: Path) -> list[Path]:
    """``bin`` and ``obj`` folders below ``src`` and ``tests``."""
    found: list[Path] = []
    for top in ("src", "tests"):
        base = root / top
        if not base.is_dir():
            continue
        for dirpath, dirnames, _filenames in os.walk(base):
            for name in list(dirnames):
                if name in ("bin", "obj"):
                    found.append(Path(dirpath) / name)
                    dirnames.remove(name)
    return sorted(found)
