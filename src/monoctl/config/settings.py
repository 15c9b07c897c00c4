"""Settings for one monoctl invocation.

Sources, strongest first: CLI flags, ``MONOCTL_*`` environment variables
(``MONOCTL_ORDERING__LOOP_SAFETY`` reaches into a section), the
``monoctl.toml`` that governs the working directory, then model defaults.
The directory holding the config file becomes the workspace root that
``path_root`` and every project ``path`` resolve against.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from monoctl.config.discovery import find_config, read_toml
from monoctl.config.models import NpmConfig, OrderingConfig, ProjectConfig, WorkspaceConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """The parsed ``monoctl.toml``, or nothing when no file governs the workspace."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._tables = read_toml(toml_path) if toml_path and toml_path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._tables.get(field_name), field_name, field_name in self._tables

    def __call__(self) -> dict[str, Any]:
        return self._tables


# Config file chosen by from_cli, read back while the sources are assembled.
_toml_path: ContextVar[Path | None] = ContextVar("monoctl_toml_path", default=None)


class MonoSettings(BaseSettings):
    """Frozen settings shared by every command through ``AppContext``.

    ``workspace_root`` and ``config_path`` come from discovery, never from
    the TOML itself. The remaining top-level fields mirror the tables of
    ``monoctl.toml``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MONOCTL_",
        "env_nested_delimiter": "__",
    }

    # --- Discovery ---
    workspace_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML content ---
    path_root: str = ""
    scripts: dict[str, str] = Field(default_factory=dict)
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)
    ordering: OrderingConfig = Field(default_factory=OrderingConfig)
    npm: NpmConfig = Field(default_factory=NpmConfig)

    @property
    def build_root(self) -> Path:
        """Absolute directory every project ``path`` is relative to."""
        return (self.workspace_root / self.path_root).resolve()

    @property
    def workspace(self) -> WorkspaceConfig:
        """The TOML-backed part of the settings as a plain config model."""
        return WorkspaceConfig(
            path_root=self.path_root,
            scripts=self.scripts,
            projects=self.projects,
            ordering=self.ordering,
            npm=self.npm,
        )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, TomlSettingsSource(settings_cls, _toml_path.get())

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        workspace_root: Path | None = None,
        **cli_flags: Any,
    ) -> MonoSettings:
        """Build settings for a CLI invocation.

        Without an explicit *workspace_root* the root is the config file's
        directory, or the working directory when no config file is found.
        """
        toml_path = find_config(workspace_root, explicit=config_path)

        resolved_root = workspace_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        token = _toml_path.set(toml_path)
        try:
            return cls(workspace_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _toml_path.reset(token)
