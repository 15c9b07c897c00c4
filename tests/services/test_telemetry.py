"""Tests for verbose span collection around service calls."""

from __future__ import annotations

import pytest

from monoctl.services.result import ServiceResult
from monoctl.services.telemetry import Span, enable_telemetry, trace_span, traced


@traced
def _build(count: int) -> ServiceResult:
    with trace_span("order") as span:
        if span:
            span.annotate("projects", count)
    with trace_span("process_projects"):
        with trace_span("install"):
            pass
    return ServiceResult(ok=True, op="run", data={"count": count}, meta={"dry_run": True})


@traced
def _broken() -> ServiceResult:
    with trace_span("order"):
        raise RuntimeError("npm exploded")


class TestSpan:
    def test_open_span_reports_zero(self) -> None:
        assert Span("order").to_dict() == {"name": "order", "duration_ms": 0.0}

    def test_close_records_elapsed(self) -> None:
        span = Span("order")
        span.close()
        assert span.elapsed_ms is not None
        assert span.elapsed_ms >= 0.0

    def test_child_is_attached(self) -> None:
        root = Span("run")
        child = root.child("install")
        child.annotate("project", "iso")
        assert root.to_dict()["children"] == [
            {"name": "install", "duration_ms": 0.0, "annotations": {"project": "iso"}}
        ]


class TestDisabled:
    def test_result_untouched(self) -> None:
        result = _build(2)
        assert result.meta == {"dry_run": True}

    def test_trace_span_yields_none(self) -> None:
        with trace_span("order") as span:
            assert span is None


class TestEnabled:
    @pytest.fixture(autouse=True)
    def _verbose(self) -> None:
        enable_telemetry()

    def test_span_tree_in_meta(self) -> None:
        result = _build(3)
        assert result.meta is not None
        assert result.meta["dry_run"] is True
        tree = result.meta["telemetry"]
        assert tree["name"] == "_build"
        assert [c["name"] for c in tree["children"]] == ["order", "process_projects"]
        assert tree["children"][0]["annotations"] == {"projects": 3}
        assert tree["children"][1]["children"][0]["name"] == "install"

    def test_root_counts_projects(self) -> None:
        tree = _build(4).meta["telemetry"]  # type: ignore[index]
        assert tree["annotations"] == {"projects": 4}

    def test_outside_service_call_yields_none(self) -> None:
        with trace_span("order") as span:
            assert span is None

    def test_error_propagates_and_spans_unwind(self) -> None:
        with pytest.raises(RuntimeError, match="npm exploded"):
            _broken()
        # The next call starts from a fresh root rather than under the broken one.
        assert _build(1).meta["telemetry"]["name"] == "_build"  # type: ignore[index]

    def test_plain_return_values_pass_through(self) -> None:
        @traced
        def names() -> list[str]:
            return ["iso", "server"]

        assert names() == ["iso", "server"]
