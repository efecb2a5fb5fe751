"""Layered ``KEY=VALUE`` settings files.

Layers are applied in the order given; later layers overwrite earlier ones
key by key.  Every layer is optional except the last, which is the
tool-default layer and must exist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from modctl.domain.errors import ConfigError

logger = logging.getLogger(__name__)

_QUOTES = "\"'"


def _strip(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == token[-1] and token[0] in _QUOTES:
        return token[1:-1].strip()
    return token


def parse_line(line: str) -> tuple[str, str] | None:
    """Parse one settings line, returning ``(key, value)`` or None to skip."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None
    parts = stripped.split("=", 1)
    if len(parts) != 2:
        return None
    key = _strip(parts[0])
    if not key:
        return None
    return key, _strip(parts[1])


class LayeredConfig:
    """Key/value settings merged from an ordered list of layer files.

    Constructed once at process entry and passed to whoever needs it.
    Read-only after :meth:`load`.
    """

    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._sources: list[Path] = []
        self._consulted: list[Path] = []
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def values(self) -> Mapping[str, str]:
        return MappingProxyType(self._values)

    @property
    def sources(self) -> list[Path]:
        """Layer files that existed and were applied, in order."""
        return list(self._sources)

    def load(self, paths: Iterable[Path]) -> LayeredConfig:
        """Apply *paths* in order. A second call is a no-op."""
        if self._loaded:
            return self
        layers = [Path(p) for p in paths]
        if not layers:
            raise ConfigError("configuration file not found: no layers given")
        self._consulted = layers
        last = len(layers) - 1
        for index, path in enumerate(layers):
            if not path.is_file():
                if index == last:
                    raise ConfigError(f"configuration file not found: {path}")
                logger.debug("Skipping missing optional settings layer %s", path)
                continue
            self._apply(path)
        self._loaded = True
        return self

    def _apply(self, path: Path) -> None:
        for line in path.read_text(encoding="utf-8-sig").splitlines():
            parsed = parse_line(line)
            if parsed is None:
                continue
            key, value = parsed
            self._values[key] = value
        self._sources.append(path)
        logger.debug("Applied settings layer %s", path)

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the effective value of *key*.

        A missing key is a soft failure: a warning is logged and *default*
        (possibly None) is returned.
        """
        if key in self._values:
            return self._values[key]
        if default is not None:
            logger.warning("Setting %s not configured, using default %r", key, default)
        else:
            logger.warning("Setting %s not configured", key)
        return default

    def get_required(self, key: str) -> str:
        """Return the value of *key* or raise :class:`ConfigError`."""
        value = self._values.get(key)
        if value:
            return value
        location = self._consulted[-1] if self._consulted else "the settings file"
        raise ConfigError(f"Required setting {key} is not configured (expected in {location})")
