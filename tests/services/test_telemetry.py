"""Tests for telemetry spans and the @traced decorator."""

from __future__ import annotations

import pytest

from tracectl.services.result import ServiceResult
from tracectl.services.telemetry import (
    Span,
    annotate,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)


class _Service:
    @traced
    def run(self) -> ServiceResult:
        with trace_span("step") as span:
            if span is not None:
                span.annotate("items", 3)
        annotate("done", True)
        return ServiceResult(ok=True, op="run")

    @traced
    def explode(self) -> ServiceResult:
        raise RuntimeError("boom")

    @traced
    def plain(self) -> int:
        return 7


class TestSpan:
    def test_duration_zero_until_ended(self) -> None:
        span = Span(name="x")
        assert span.duration_ms == 0.0
        span.end()
        assert span.duration_ms >= 0.0

    def test_to_dict_omits_empty_parts(self) -> None:
        span = Span(name="x")
        span.end()
        assert set(span.to_dict()) == {"name", "duration_ms"}


class TestTraced:
    def test_disabled_leaves_result_untouched(self) -> None:
        assert _Service().run().meta is None
        assert get_current_span() is None

    def test_trace_span_yields_none_when_disabled(self) -> None:
        with trace_span("x") as span:
            assert span is None

    def test_enabled_builds_span_tree(self) -> None:
        enable_telemetry()
        result = _Service().run()
        assert result.meta is not None
        tree = result.meta["telemetry"]
        assert tree["name"] == "_Service.run"
        assert tree["annotations"] == {"done": True}
        assert tree["children"][0]["name"] == "step"
        assert tree["children"][0]["annotations"] == {"items": 3}

    def test_span_reset_after_call(self) -> None:
        enable_telemetry()
        _Service().run()
        assert get_current_span() is None

    def test_exception_propagates_and_resets(self) -> None:
        enable_telemetry()
        with pytest.raises(RuntimeError, match="boom"):
            _Service().explode()
        assert get_current_span() is None

    def test_non_result_return_passes_through(self) -> None:
        enable_telemetry()
        assert _Service().plain() == 7
