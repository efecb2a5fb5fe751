"""Unified settings: CLI flags, env vars and layered settings files.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``MODCTL_*`` prefix
  3. Settings files: ``modctl.env`` then ``.modctl/settings.env``
  4. Code defaults

Uses Pydantic Settings v2 with a custom :class:`LayeredSettingsSource`
fed by :class:`~modctl.config.layers.LayeredConfig`.  File keys are matched
case-insensitively against field names (``OUTPUT_DIRECTORY`` ->
``output_directory``).
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from modctl.config.discovery import default_layers, find_root
from modctl.config.layers import LayeredConfig
from modctl.domain.errors import ConfigError


class LayeredSettingsSource(PydanticBaseSettingsSource):
    """Expose the merged settings-file values as a pydantic source."""

    def __init__(self, settings_cls: type[BaseSettings], layers: LayeredConfig | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if layers is None:
            return
        fields = settings_cls.model_fields
        for key, value in layers.values.items():
            name = key.lower()
            if name in fields and value != "":
                self._data[name] = value

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the loaded layers during construction.
_tls = threading.local()


class ModctlSettings(BaseSettings):
    """Typed settings for every task body.

    Frozen after construction.  Optional operational paths are validated per
    task via :meth:`require`, which reports every missing field at once.

    Attributes:
        root: Repository root all relative paths resolve against.
        settings_files: Layer files that were applied, in order.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MODCTL_",
        "extra": "ignore",
    }

    root: Path = Field(default_factory=Path.cwd)
    settings_files: tuple[Path, ...] = ()

    # --- CLI flags ---
    verbose: bool = False
    log_json: bool = False
    json_output: bool = False
    no_interact: bool = False

    # --- Operational paths ---
    output_directory: Path | None = None
    artifacts_directory: Path | None = None
    solution: Path | None = None
    startup_project: Path = Path("src/Presentation.Web.Server/Presentation.Web.Server.csproj")

    # --- External tools ---
    dotnet_executable: str = "dotnet"
    docker_executable: str = "docker"
    trace_executable: str = "dotnet-trace"
    license_executable: str = "dotnet"

    # --- Build ---
    build_configuration: str = "Debug"

    # --- Containers ---
    docker_image: str | None = None
    docker_tag: str = "latest"
    docker_file: Path = Path("Dockerfile")
    docker_network: str | None = None
    docker_container: str | None = None
    compose_file: Path = Path("docker-compose.yml")

    # --- Diagnostics ---
    trace_duration: str = "00:00:00:30"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the settings-file source between env vars and defaults."""
        layers = getattr(_tls, "layers", None)
        return (
            init_settings,
            env_settings,
            LayeredSettingsSource(settings_cls, layers),
        )

    @classmethod
    def from_layers(cls, layers: LayeredConfig, *, root: Path, **cli_flags: Any) -> ModctlSettings:
        """Construct settings from already-loaded *layers*."""
        _tls.layers = layers
        try:
            return cls(root=root, settings_files=tuple(layers.sources), **cli_flags)
        finally:
            _tls.layers = None

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> ModctlSettings:
        """Discover the root, load its layers and merge CLI flags on top."""
        resolved_root = root or find_root()
        explicit = Path(config_path) if config_path else None
        layers = LayeredConfig().load(default_layers(resolved_root, explicit))
        return cls.from_layers(layers, root=resolved_root, **cli_flags)

    def resolve_path(self, value: Path) -> Path:
        """Resolve *value* against :attr:`root` unless it is absolute."""
        return value if value.is_absolute() else self.root / value

    def require(self, *fields: str) -> None:
        """Raise one :class:`ConfigError` naming every unset field in *fields*."""
        missing = [name for name in fields if getattr(self, name) in (None, "")]
        if not missing:
            return
        keys = ", ".join(name.upper() for name in missing)
        location = self.settings_files[-1] if self.settings_files else "the settings file"
        raise ConfigError(f"Required setting(s) {keys} not configured (expected in {location})")
