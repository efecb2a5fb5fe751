"""Repository root discovery and settings layer locations.

Walk-up finder locates the ``.modctl/`` directory, similar to how git
finds ``.git/``.  Supports the MODCTL_ROOT env var and the ``--root`` CLI
flag as overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

TOOL_DIR = ".modctl"
ROOT_ENV_VAR = "MODCTL_ROOT"
REPOSITORY_LAYER = "modctl.env"
TOOL_LAYER = "settings.env"


def find_root(start: Path | None = None) -> Path:
    """Walk up from *start* (default: cwd) looking for a ``.modctl/`` directory.

    Checks MODCTL_ROOT first.  Falls back to *start* when no marker exists.
    """
    env_root = os.environ.get(ROOT_ENV_VAR)
    if env_root:
        return Path(env_root).resolve()

    origin = (start or Path.cwd()).resolve()
    current = origin
    while True:
        if (current / TOOL_DIR).is_dir():
            return current
        parent = current.parent
        if parent == current:
            break
        current = parent
    return origin


def default_layers(root: Path, config_path: Path | None = None) -> list[Path]:
    """Ordered settings layers for *root*.

    The repository-level file is optional; the tool-level file is the
    mandatory last layer unless an explicit *config_path* is appended.
    """
    layers = [root / REPOSITORY_LAYER, root / TOOL_DIR / TOOL_LAYER]
    if config_path is not None:
        layers.append(config_path)
    return layers
