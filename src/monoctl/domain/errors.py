"""Ordering error kinds.

All of these are fatal for the current command. Ordering is a pure
computation over a static graph, so retrying can never change the outcome.
Services translate them into a failed ServiceResult with a stable code.
"""

from __future__ import annotations

from collections.abc import Iterable


class OrderingError(Exception):
    """Base class for every error raised by the ordering engine."""

    code = "ORDERING_ERROR"


class UnknownProjectError(OrderingError):
    """One or more project identifiers do not resolve in the graph."""

    code = "UNKNOWN_PROJECT"

    def __init__(self, project_ids: str | Iterable[str]) -> None:
        if isinstance(project_ids, str):
            project_ids = [project_ids]
        self.project_ids: list[str] = list(project_ids)
        super().__init__(f"Project(s) do not exist: {', '.join(self.project_ids)}")


class GraphContradictionError(OrderingError):
    """A project is reachable as both ancestor and descendant of one anchor."""

    code = "GRAPH_CONTRADICTION"

    def __init__(self, project: str, message: str | None = None) -> None:
        self.project = project
        super().__init__(message or f"Project {project} is both a consumer and dependency")


class CycleDetectedError(GraphContradictionError):
    """A dependency cycle was found within a single traversal direction."""

    code = "CYCLE_DETECTED"

    def __init__(self, project: str, path: Iterable[str]) -> None:
        self.path: list[str] = list(path)
        super().__init__(
            project,
            f"Dependency cycle through project {project}: {' -> '.join(self.path)}",
        )


class SafetyLimitExceededError(OrderingError):
    """An iteration bound was exceeded (indicates a logic defect, not bad input)."""

    code = "SAFETY_LIMIT_EXCEEDED"
    stage = "ordering"

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Looped more than {limit} times during {self.stage} without a result")


class TraversalSafetyExceededError(SafetyLimitExceededError):
    stage = "slice harvesting"


class MergeSafetyExceededError(SafetyLimitExceededError):
    stage = "slice merging"


class SelectionError(OrderingError):
    """The requested combination of modifier and projects is not meaningful."""

    code = "INVALID_SELECTION"
