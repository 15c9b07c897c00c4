"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, monoctl.toml only contains
overrides. A minimal workspace needs only a ``[projects.<alias>]`` table
per project.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- monoctl.toml sections ---


class ProjectConfig(BaseModel):
    """[projects.<alias>] section."""

    model_config = {"frozen": True}

    path: str = ""
    scripts: dict[str, str] = Field(default_factory=dict)


class OrderingConfig(BaseModel):
    """[ordering] section."""

    model_config = {"frozen": True}

    loop_safety: int = Field(default=20, ge=1)


class NpmConfig(BaseModel):
    """[npm] section."""

    model_config = {"frozen": True}

    executable: str = "npm"


class WorkspaceConfig(BaseModel):
    """Root configuration composing all sections.

    ``path_root`` is prepended to every project ``path``; ``scripts`` are
    workspace-wide script definitions that project sections may override.
    """

    model_config = {"frozen": True}

    path_root: str = ""
    scripts: dict[str, str] = Field(default_factory=dict)
    projects: dict[str, ProjectConfig] = Field(default_factory=dict)
    ordering: OrderingConfig = Field(default_factory=OrderingConfig)
    npm: NpmConfig = Field(default_factory=NpmConfig)
