"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``EDGECRM_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``edgecrm.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from edgecrm.config.discovery import find_config
from edgecrm.config.models import Environment, PaginationConfig, SearchConfig, StorageConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``edgecrm.toml`` file."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                raise click.ClickException(f"Invalid TOML in {toml_path}: {exc}") from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# TOML path handed to settings_customise_sources during construction.
_tls = threading.local()


class EdgeSettings(BaseSettings):
    """Settings for the data layer and its admin CLI.

    Attributes:
        project_root: Directory holding ``edgecrm.toml`` (or CWD when no
            config was found). Relative storage paths resolve against it.
        config_path: The TOML file that was loaded, if any.
        environment: ``production`` turns statement syntax errors into
            error results instead of raising.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "EDGECRM_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    environment: Environment = Environment.DEVELOPMENT

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    storage: StorageConfig = Field(default_factory=StorageConfig)
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    @property
    def database_path(self) -> Path:
        path = Path(self.storage.database_path).expanduser()
        return path if path.is_absolute() else self.project_root / path

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> EdgeSettings:
        """Construct settings from a CLI invocation.

        Discovers ``edgecrm.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides. Flags passed as
        ``None`` are treated as not given.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if not p.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
            toml_path = p
        else:
            toml_path = find_config(project_root)

        root = project_root
        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        flags = {k: v for k, v in cli_flags.items() if v is not None}
        _tls.toml_path = toml_path
        try:
            return cls(project_root=root, config_path=toml_path, **flags)
        finally:
            _tls.toml_path = None
