"""Dependency ordering — single-anchor layering and multi-anchor merging.

Pure functions over any graph satisfying :class:`NodeGraph`. Nothing here
mutates the graph; the same graph may be ordered many times per command.

Single-anchor ordering (:func:`order`) assigns every reachable project a
signed level: positive for consumers (longest consumer-only path from the
anchor), negative for dependencies (longest dependency-only path). Sorting
by level yields an order where each project follows all of its transitive
dependencies. With both directions on, the whole weakly connected component
is returned instead, layered by each project's longest dependency chain.

Multi-anchor ordering (:func:`order_multiple`) harvests one ordered slice per
component touched by the requested projects, then merges any slices that
share projects (:func:`merge_slices`), using the shared projects as
synchronization barriers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from monoctl.domain.errors import (
    CycleDetectedError,
    GraphContradictionError,
    MergeSafetyExceededError,
    TraversalSafetyExceededError,
    UnknownProjectError,
)

logger = logging.getLogger(__name__)

DEFAULT_LOOP_SAFETY = 20


class Node(Protocol):
    """Anything hashable whose ``name`` is its lookup key in the graph."""

    @property
    def name(self) -> str: ...


N = TypeVar("N", bound=Node)


class NodeGraph(Protocol[N]):
    """Read-only view of a dependency graph.

    ``dependencies(x)`` and ``consumers(x)`` must be two views of one edge
    set: ``a in consumers(b)`` exactly when ``b in dependencies(a)``.
    Iteration order must be deterministic.
    """

    def lookup(self, key: str) -> N | None: ...

    def dependencies(self, node: N) -> Sequence[N]: ...

    def consumers(self, node: N) -> Sequence[N]: ...


# ── Single anchor ────────────────────────────────────────────────────


def order(
    graph: NodeGraph[N],
    anchor_id: str,
    include_anchor: bool,
    include_ancestors: bool,
    include_descendants: bool,
) -> list[N]:
    """Order the projects around *anchor_id*.

    With both directions on, the result is the anchor's whole weakly
    connected component: siblings that only share a dependency or a
    consumer with the anchor are included too, layered by their longest
    dependency chain.

    Args:
        graph: The dependency graph.
        anchor_id: Key of the project the ordering is centered on.
        include_anchor: Keep the anchor itself in the result.
        include_ancestors: Include every project that transitively consumes
            the anchor.
        include_descendants: Include every project the anchor transitively
            depends on.

    Raises:
        UnknownProjectError: *anchor_id* is not in the graph.
        GraphContradictionError: a project is both consumer and dependency
            of the anchor.
        CycleDetectedError: a cycle exists within one traversal direction,
            or anywhere in the component when both directions are on.
    """
    anchor = graph.lookup(anchor_id)
    if anchor is None:
        raise UnknownProjectError(anchor_id)

    levels: dict[N, int] = {anchor: 0}

    if include_ancestors:
        _relax(anchor, levels, graph.consumers, step=1)
    if include_descendants:
        _relax(anchor, levels, graph.dependencies, step=-1)

    if include_ancestors and include_descendants:
        result = _layer_component(graph, anchor)
    else:
        by_level: dict[int, list[N]] = {}
        for node, level in levels.items():
            by_level.setdefault(level, []).append(node)
        result = [node for level in sorted(by_level) for node in by_level[level]]

    if not include_anchor:
        result.remove(anchor)
    return result


def _relax(
    anchor: N,
    levels: dict[N, int],
    neighbours: Callable[[N], Sequence[N]],
    *,
    step: int,
) -> None:
    """Longest-path relaxation walk from *anchor* in one direction.

    Depth-first over an explicit stack so visiting order matches the
    natural recursive walk. A node is re-entered only when the current path
    to it is strictly longer than the one recorded; otherwise that branch
    is already correctly placed and is not followed again.
    """
    stack: list[tuple[N, int, Iterator[N]]] = [(anchor, 0, iter(neighbours(anchor)))]
    on_path: dict[N, None] = {anchor: None}

    while stack:
        parent, parent_level, children = stack[-1]
        child = next(children, None)
        if child is None:
            stack.pop()
            del on_path[parent]
            continue

        if child == anchor:
            # The parent leads back to the anchor, so it sits on both sides.
            raise GraphContradictionError(parent.name)
        if child in on_path:
            path = [n.name for n in on_path]
            cycle = path[path.index(child.name) :] + [child.name]
            raise CycleDetectedError(child.name, cycle)

        level = parent_level + step
        existing = levels.get(child)
        if existing is not None:
            if existing * step < 0:
                raise GraphContradictionError(child.name)
            if abs(existing) >= abs(level):
                continue

        levels[child] = level
        on_path[child] = None
        stack.append((child, level, iter(neighbours(child))))


def _component(graph: NodeGraph[N], anchor: N) -> list[N]:
    """Every node linked to *anchor* by edges in either direction, in discovery order."""
    found: list[N] = [anchor]
    seen: set[N] = {anchor}
    index = 0
    while index < len(found):
        node = found[index]
        index += 1
        for neighbour in (*graph.dependencies(node), *graph.consumers(node)):
            if neighbour not in seen:
                seen.add(neighbour)
                found.append(neighbour)
    return found


def _layer_component(graph: NodeGraph[N], anchor: N) -> list[N]:
    """Sort *anchor*'s component by longest dependency chain, ties in discovery order."""
    component = _component(graph, anchor)
    depth: dict[N, int] = {}

    for root in component:
        if root in depth:
            continue
        stack: list[tuple[N, Iterator[N]]] = [(root, iter(graph.dependencies(root)))]
        on_path: dict[N, None] = {root: None}
        while stack:
            node, pending = stack[-1]
            dep = next(pending, None)
            if dep is None:
                stack.pop()
                del on_path[node]
                depth[node] = 1 + max((depth[d] for d in graph.dependencies(node)), default=-1)
                continue
            if dep in depth:
                continue
            if dep in on_path:
                path = [n.name for n in on_path]
                raise CycleDetectedError(dep.name, path[path.index(dep.name) :] + [dep.name])
            on_path[dep] = None
            stack.append((dep, iter(graph.dependencies(dep))))

    return sorted(component, key=depth.__getitem__)


# ── Multiple anchors ─────────────────────────────────────────────────


def order_multiple(
    graph: NodeGraph[N],
    ids: Iterable[str],
    *,
    loop_safety: int = DEFAULT_LOOP_SAFETY,
) -> list[N]:
    """Order an arbitrary, possibly disconnected, set of projects.

    Only the requested projects appear in the result. Projects that do not
    constrain each other (different components) keep a stable order driven
    by the order of *ids*.

    Raises:
        UnknownProjectError: any of *ids* is not in the graph.
        TraversalSafetyExceededError: slice harvesting did not converge.
        MergeSafetyExceededError: slice merging did not converge.
    """
    requested: dict[N, None] = {}
    unknown: list[str] = []
    for project_id in ids:
        node = graph.lookup(project_id)
        if node is None:
            unknown.append(project_id)
        else:
            requested[node] = None
    if unknown:
        raise UnknownProjectError(unknown)
    if not requested:
        logger.info("No projects provided")
        return []

    slices = _harvest_slices(graph, requested, loop_safety)
    return merge_slices(slices, loop_safety=loop_safety)


def merge_slices(slices: Sequence[list[N]], *, loop_safety: int = DEFAULT_LOOP_SAFETY) -> list[N]:
    """Merge overlapping ordered slices until none share a project.

    Each round folds every slice containing the first shared project into
    one. The union of the remaining disjoint slices is returned.

    Raises:
        MergeSafetyExceededError: more than *loop_safety* merges were needed.
    """
    pending = list(slices)
    rounds = 0
    found = find_any_intersection(pending)
    while found.intersecting is not None:
        if rounds >= loop_safety:
            raise MergeSafetyExceededError(loop_safety)
        rounds += 1

        merged = merge_intersecting(found.items, found.intersecting)
        logger.debug(
            "Merged %d slices around %d shared projects into %d projects",
            len(found.intersecting),
            len(found.items),
            len(merged),
        )
        pending = [s for s in pending if not any(s is m for m in found.intersecting)]
        pending.append(merged)
        found = find_any_intersection(pending)

    return found.items


def _harvest_slices(
    graph: NodeGraph[N],
    requested: dict[N, None],
    loop_safety: int,
) -> list[list[N]]:
    """Collect one ordered slice per component touched by *requested*.

    Full closures are whole components, so the slices never overlap and
    their concatenation keeps every dependency ahead of its consumers.
    """
    slices: list[list[N]] = []
    missing = dict(requested)

    rounds = 0
    while missing:
        anchor = next(iter(missing))
        closure = order(graph, anchor.name, True, True, True)
        found = intersect(closure, requested)
        if len(found) == len(requested):
            # This closure already holds every requested project, in order.
            return [found]

        slices.append(found)
        for node in found:
            missing.pop(node, None)
        logger.debug("Slice from %s covers %d project(s)", anchor.name, len(found))

        rounds += 1
        if rounds > loop_safety:
            raise TraversalSafetyExceededError(loop_safety)
    return slices


def intersect(ordered: Iterable[N], keep: Iterable[N]) -> list[N]:
    """Return the items of *ordered* that are also in *keep*, in *ordered*'s order."""
    wanted = keep if isinstance(keep, (set, frozenset, dict)) else set(keep)
    return [item for item in ordered if item in wanted]


@dataclass(frozen=True)
class Intersection(Generic[N]):
    """Result of :func:`find_any_intersection`.

    ``items`` is the exact intersection of every slice in ``intersecting``,
    or the union of all slices when ``intersecting`` is None.
    """

    items: list[N]
    intersecting: list[list[N]] | None


def find_any_intersection(slices: Sequence[list[N]]) -> Intersection[N]:
    """Find the first project shared by two slices.

    Returns every slice containing that pivot together with the projects
    common to all of them (in the first such slice's order). If no slices
    share anything, returns the union of all slices and ``None``.
    """
    union: dict[N, None] = {}
    pivot: N | None = None
    for current in slices:
        for node in current:
            if node in union:
                pivot = node
                break
            union[node] = None
        if pivot is not None:
            break

    if pivot is None:
        return Intersection(list(union), None)

    intersecting = [s for s in slices if pivot in s]
    common = set(intersecting[0])
    for other in intersecting[1:]:
        common.intersection_update(other)
    return Intersection([n for n in intersecting[0] if n in common], intersecting)


_END = object()


def merge_intersecting(intersection: list[N], intersecting: Sequence[list[N]]) -> list[N]:
    """Merge slices that share *intersection* into one consistent slice.

    Walks the shared projects in order. Before emitting each one, every
    slice contributes (in its own order) whatever precedes that project in
    it; tails after the last shared project are flushed at the end.
    """
    if all(len(s) == len(intersection) for s in intersecting):
        return list(intersection)

    merged: dict[N, None] = {}
    iterators = [iter(s) for s in intersecting]
    for barrier in [*intersection, _END]:
        for iterator in iterators:
            for item in iterator:
                if item == barrier:
                    break
                merged.setdefault(item, None)
        if barrier is not _END:
            merged.setdefault(barrier, None)  # type: ignore[arg-type]
    return list(merged)
