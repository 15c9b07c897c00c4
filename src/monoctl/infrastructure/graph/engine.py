"""ProjectGraph — immutable NetworkX graph of workspace projects.

Built per invocation from ``monoctl.toml`` plus each project's
``package.json``; no cross-invocation cache. Edges point from a dependency
to its consumer, so ``dependencies`` are predecessors and ``consumers`` are
successors of one edge set. The underlying DiGraph is frozen after
construction.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

import networkx as nx

from monoctl.domain.projects import Project, validate_project_name
from monoctl.infrastructure.manifests import WorkspaceError, read_manifest

if TYPE_CHECKING:
    from monoctl.config.models import WorkspaceConfig

logger = logging.getLogger(__name__)

_Graph: TypeAlias = nx.DiGraph


class ProjectGraph:
    """Read-only dependency graph keyed by project alias.

    Iteration follows configuration order. Neighbour order follows edge
    insertion order, which the builder makes deterministic.
    """

    def __init__(self, projects: Iterable[Project], edges: Iterable[tuple[str, str]]) -> None:
        g: _Graph = nx.DiGraph()
        for project in projects:
            g.add_node(project.name, project=project)
        for dependency, consumer in edges:
            g.add_edge(dependency, consumer)
        self._graph: _Graph = nx.freeze(g)

    @property
    def graph(self) -> _Graph:
        """The frozen DiGraph (edges run dependency -> consumer)."""
        return self._graph

    def __contains__(self, key: object) -> bool:
        return key in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __iter__(self) -> Iterator[Project]:
        return iter(self.all_projects())

    def _project(self, key: str) -> Project:
        project: Project = self._graph.nodes[key]["project"]
        return project

    def lookup(self, key: str) -> Project | None:
        if key not in self._graph:
            return None
        return self._project(key)

    def is_valid(self, key: str) -> bool:
        return " " not in key and key in self._graph

    def all_projects(self) -> list[Project]:
        return [self._project(key) for key in self._graph.nodes]

    def dependencies(self, node: Project) -> list[Project]:
        """Projects *node* directly requires."""
        return [self._project(key) for key in self._graph.predecessors(node.name)]

    def consumers(self, node: Project) -> list[Project]:
        """Projects that directly require *node*."""
        return [self._project(key) for key in self._graph.successors(node.name)]


def build_graph(config: WorkspaceConfig, build_root: Path) -> ProjectGraph:
    """Read every project's manifest and link projects by package name.

    For each project (in configuration order), its manifest dependency
    names are checked in sorted order; every name matching another
    project's package name adds a ``dependency -> consumer`` edge.

    Raises:
        WorkspaceError: no projects, an invalid alias, a duplicate package
            name, or a manifest without name or version.
        ManifestError: a manifest cannot be read.
    """
    if not config.projects:
        raise WorkspaceError("No projects defined")

    projects: list[Project] = []
    package_to_project: dict[str, str] = {}

    for alias, project_config in config.projects.items():
        if not validate_project_name(alias):
            raise WorkspaceError(f"Project name '{alias}' is invalid")

        location = (build_root / project_config.path).resolve()
        manifest = read_manifest(location)
        if not manifest.name:
            raise WorkspaceError(f"No project name defined in package.json for '{alias}'")
        if not manifest.version:
            raise WorkspaceError(f"No project version defined in package.json for '{alias}'")

        previous = package_to_project.get(manifest.name)
        if previous is not None:
            raise WorkspaceError(
                f"Package '{manifest.name}' is declared by both '{previous}' and '{alias}'"
            )
        package_to_project[manifest.name] = alias
        projects.append(
            Project(
                name=alias,
                location=location,
                package=manifest,
                scripts=dict(project_config.scripts),
            )
        )

    edges: list[tuple[str, str]] = []
    for project in projects:
        for dependency_name in sorted(project.package.all_dependencies):
            matched = package_to_project.get(dependency_name)
            if matched is not None:
                edges.append((matched, project.name))

    logger.debug("Built project graph: %d projects, %d edges", len(projects), len(edges))
    return ProjectGraph(projects, edges)
