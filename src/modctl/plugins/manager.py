"""Plugin discovery and loading.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus local directory discovery from ``.modctl/plugins/``.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

import pluggy

from modctl.plugins.hookspecs import ModctlHookSpec

if TYPE_CHECKING:
    from modctl.services.dispatch import TaskRegistry

PROJECT_NAME = "modctl"
ENTRY_POINT_GROUP = "modctl.plugins"
LOCAL_MODULE_PREFIX = "modctl_local_plugin_"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook dispatch."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ModctlHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Discover plugins from entry points and an optional local directory.

        Returns a list of loaded plugin names.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        if local_dir is not None:
            self._load_local(local_dir)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly.

        Raises:
            pluggy.PluginValidationError: A hook is not a modctl hook.
        """
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        unknown = [c.name for c in self._pm.get_hookcallers(plugin) or [] if c.spec is None]
        if unknown:
            self._pm.unregister(plugin)
            raise pluggy.PluginValidationError(plugin, f"unknown hook(s): {', '.join(unknown)}")
        logger.debug("Registered plugin: %s", resolved_name)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        """Access the hook relay for dispatching events."""
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def register_tasks(self, registry: TaskRegistry) -> None:
        """Let every plugin add tasks. A failing plugin is skipped with a warning."""
        for impl in self._pm.hook.register_tasks.get_hookimpls():
            try:
                impl.function(registry=registry)
            except Exception:
                logger.warning(
                    "Plugin %s failed to register tasks", impl.plugin_name, exc_info=True
                )

    # ------------------------------------------------------------------
    # .modctl/plugins/*.py
    # ------------------------------------------------------------------

    def _load_local(self, local_dir: Path) -> None:
        """Register plugins found in the ``*.py`` files of *local_dir*.

        A file may define hook functions at module level, classes whose
        methods are hooks, or both.  Files starting with ``_`` are helpers
        and never imported.  A file that fails to import or register is
        logged and skipped.
        """
        if not local_dir.is_dir():
            return
        for path in sorted(local_dir.glob("[!_]*.py")):
            module = _import_file(path)
            if module is None:
                continue
            candidates: list[tuple[str, object]] = []
            if _defines_hooks(module):
                candidates.append((module.__name__, module))
            for cls in _plugin_classes(module):
                try:
                    candidates.append((f"{module.__name__}.{cls.__name__}", cls()))
                except Exception:
                    logger.warning("Could not create plugin %s from %s", cls.__name__, path)
            for name, plugin in candidates:
                try:
                    self.register_plugin(plugin, name=name)
                except Exception:
                    logger.warning("Rejected local plugin %s", name, exc_info=True)


def _is_hook(obj: object) -> bool:
    return getattr(obj, f"{PROJECT_NAME}_impl", None) is not None


def _defines_hooks(namespace: object) -> bool:
    return any(
        _is_hook(getattr(namespace, attr, None))
        for attr in dir(namespace)
        if not attr.startswith("_")
    )


def _plugin_classes(module: ModuleType) -> list[type]:
    return [
        obj
        for _name, obj in inspect.getmembers(module, inspect.isclass)
        if obj.__module__ == module.__name__ and _defines_hooks(obj)
    ]


def _import_file(path: Path) -> ModuleType | None:
    module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        logger.warning("Skipping local plugin %s: not importable", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        logger.warning("Skipping local plugin %s: import failed", path, exc_info=True)
        return None
    return module
