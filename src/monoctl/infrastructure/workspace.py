"""Workspace — the single dependency injected into every service.

Owns the resolved settings and builds the project graph lazily, so
``--help`` and ``--version`` never touch the filesystem. The graph is built
once per invocation and is read-only afterwards.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from monoctl.infrastructure.graph.engine import ProjectGraph, build_graph

if TYPE_CHECKING:
    from monoctl.config.models import WorkspaceConfig
    from monoctl.config.settings import MonoSettings


class Workspace:
    """A monorepo described by ``monoctl.toml``."""

    def __init__(self, settings: MonoSettings) -> None:
        self._settings = settings
        self._graph: ProjectGraph | None = None

    @property
    def settings(self) -> MonoSettings:
        return self._settings

    @property
    def config(self) -> WorkspaceConfig:
        return self._settings.workspace

    @property
    def root(self) -> Path:
        return self._settings.workspace_root

    @property
    def graph(self) -> ProjectGraph:
        """Return the project graph, reading manifests on first access."""
        if self._graph is None:
            self._graph = build_graph(self.config, self._settings.build_root)
        return self._graph
