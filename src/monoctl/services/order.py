"""OrderService — project selection and dependency ordering.

Turns a command's ``[modifier] [projects...]`` into an ordered list of
projects. A modifier anchors the selection on one project (single-anchor
ordering); a bare list of projects is ordered as given, and nothing at all
(or ``all`` alone) selects every project in the workspace.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from monoctl.domain.errors import OrderingError, SelectionError, UnknownProjectError
from monoctl.domain.ordering import order, order_multiple
from monoctl.domain.projects import MODIFIER_DIRECTIONS, Modifier
from monoctl.infrastructure.manifests import WorkspaceError
from monoctl.services.base import BaseService
from monoctl.services.result import ServiceResult
from monoctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from monoctl.domain.projects import Project
    from monoctl.infrastructure.graph.engine import ProjectGraph


def project_item(project: Project, graph: ProjectGraph) -> dict[str, Any]:
    """Serialize a project for a ServiceResult payload."""
    return {
        "id": project.name,
        "package": project.package.name,
        "version": project.package.version,
        "path": str(project.location),
        "dependencies": [d.name for d in graph.dependencies(project)],
    }


def _mode(ids: Sequence[str], modifier: Modifier | None) -> str:
    if not ids:
        return "all"
    return "explicit" if modifier is None else "anchor"


class OrderService(BaseService):
    """Handles project listing and selection."""

    @traced
    def list_projects(self) -> ServiceResult:
        """List every project in configuration order with its direct dependencies."""
        try:
            graph = self._graph()
        except WorkspaceError as exc:
            return self._failure("list", exc)

        items = [project_item(p, graph) for p in graph.all_projects()]
        return ServiceResult(
            ok=True,
            op="list",
            data={"mode": "workspace", "count": len(items), "items": items},
        )

    @traced
    def select(self, ids: Sequence[str], modifier: Modifier | None = None) -> ServiceResult:
        """Resolve and order a selection, returning it as a result payload."""
        try:
            graph = self._graph()
            projects, description = self.resolve(ids, modifier)
        except (OrderingError, WorkspaceError) as exc:
            return self._failure("select", exc)

        items = [project_item(p, graph) for p in projects]
        return ServiceResult(
            ok=True,
            op="select",
            data={
                "mode": _mode(ids, modifier),
                "selection": description,
                "count": len(items),
                "items": items,
            },
        )

    def resolve(
        self,
        ids: Sequence[str],
        modifier: Modifier | None = None,
    ) -> tuple[list[Project], str]:
        """Order the projects named by *ids* and *modifier*.

        Returns the ordered projects and a human description of the
        selection.

        Raises:
            SelectionError: a modifier without exactly one project.
            UnknownProjectError: any id is not a project.
            OrderingError: any ordering failure.
            WorkspaceError: the graph cannot be built.
        """
        graph = self._graph()
        loop_safety = self._workspace.config.ordering.loop_safety

        if not ids:
            if modifier not in (None, Modifier.ALL):
                raise SelectionError("No project(s) provided")
            with trace_span("order_all") as span:
                # Harvesting takes one round per disconnected project.
                names = [p.name for p in graph.all_projects()]
                projects = order_multiple(
                    graph, names, loop_safety=max(loop_safety, len(names))
                )
                if span:
                    span.annotate("projects", len(projects))
            return projects, "all projects, in dependency order"

        invalid = [i for i in ids if not graph.is_valid(i)]
        if invalid:
            raise UnknownProjectError(invalid)

        if modifier is None:
            with trace_span("order_multiple") as span:
                projects = order_multiple(graph, ids, loop_safety=max(loop_safety, len(ids)))
                if span:
                    span.annotate("projects", len(projects))
            return projects, f"{len(projects)} project(s) only, in dependency order"

        if len(ids) > 1:
            raise SelectionError("A modifier can only be used with a single project")

        direction = MODIFIER_DIRECTIONS[modifier]
        with trace_span("order") as span:
            projects = order(
                graph,
                ids[0],
                direction.include_anchor,
                direction.include_ancestors,
                direction.include_descendants,
            )
            if span:
                span.annotate("projects", len(projects))
        return projects, direction.describe(ids[0])
