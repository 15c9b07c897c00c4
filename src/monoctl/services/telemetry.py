"""Timing spans for ``--verbose`` runs.

A service method decorated with :func:`traced` opens the root span, and the
ordering and build steps inside it open child spans with :func:`trace_span`.
When the method returns, the finished tree is attached to
``ServiceResult.meta["telemetry"]``, with the root annotated by the number of
projects the result covers.

Outside a verbose run every helper here costs one ContextVar read.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, TypeVar, cast

import structlog

from monoctl.services.result import ServiceResult

log = structlog.get_logger("monoctl.telemetry")

_enabled: ContextVar[bool] = ContextVar("monoctl_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("monoctl_span", default=None)


@dataclass
class Span:
    """One timed step. ``elapsed_ms`` stays None until the span is closed."""

    name: str
    annotations: dict[str, Any] = field(default_factory=dict)
    children: list[Span] = field(default_factory=list)
    elapsed_ms: float | None = None
    _started: float = field(default_factory=time.perf_counter, repr=False)

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name)
        self.children.append(span)
        return span

    def close(self) -> None:
        self.elapsed_ms = round((time.perf_counter() - self._started) * 1000, 2)

    def to_dict(self) -> dict[str, Any]:
        """Shape read by the verbose renderer. Empty sections are left out."""
        data: dict[str, Any] = {"name": self.name, "duration_ms": self.elapsed_ms or 0.0}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _opened(span: Span) -> Generator[Span]:
    token = _active.set(span)
    try:
        yield span
    finally:
        span.close()
        _active.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a step under the running service call.

    Yields None when telemetry is off or no :func:`traced` call is running,
    so callers guard annotations with ``if span:``.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    with _opened(parent.child(name)) as span:
        yield span


_F = TypeVar("_F", bound=Callable[..., Any])


def traced(method: _F) -> _F:
    """Time a service method and attach its span tree to the returned result."""

    @functools.wraps(method)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not _enabled.get():
            return method(*args, **kwargs)

        root = Span(method.__qualname__)
        ok = False
        try:
            with _opened(root):
                result = method(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            log.debug(
                "span.complete",
                span=root.name,
                duration_ms=root.elapsed_ms,
                ok=ok,
                children=len(root.children),
            )

        if not isinstance(result, ServiceResult):
            return result
        if "count" in result.data:
            root.annotate("projects", result.data["count"])
        return result.with_meta(telemetry=root.to_dict())

    return cast(_F, wrapper)


def enable_telemetry() -> None:
    """Collect spans for the rest of this context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
