"""BaseService — abstract foundation for all monoctl services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides the settings and the lazily-built project graph.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from monoctl.domain.errors import (
    CycleDetectedError,
    GraphContradictionError,
    OrderingError,
    SafetyLimitExceededError,
    UnknownProjectError,
)
from monoctl.infrastructure.manifests import ManifestError, WorkspaceError
from monoctl.services.result import ServiceResult

if TYPE_CHECKING:
    from monoctl.infrastructure.graph.engine import ProjectGraph
    from monoctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class OrderService(BaseService):
            def list_projects(self) -> ServiceResult:
                try:
                    graph = self._graph()
                except WorkspaceError as exc:
                    return self._failure("list", exc)
                ...
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    def _graph(self) -> ProjectGraph:
        return self._workspace.graph

    @staticmethod
    def _failure(
        op: str,
        exc: OrderingError | WorkspaceError,
        *,
        data: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Translate an ordering or workspace error into a failed result."""
        detail: dict[str, Any] = {}
        if isinstance(exc, UnknownProjectError):
            detail["projects"] = exc.project_ids
        elif isinstance(exc, CycleDetectedError):
            detail["project"] = exc.project
            detail["cycle"] = exc.path
        elif isinstance(exc, GraphContradictionError):
            detail["project"] = exc.project
        elif isinstance(exc, SafetyLimitExceededError):
            detail["limit"] = exc.limit
            detail["stage"] = exc.stage
        elif isinstance(exc, ManifestError):
            detail["path"] = str(exc.path)

        logger.debug("%s failed: %s", op, exc)
        return ServiceResult.failure(op, exc.code, str(exc), detail=detail, data=data)
