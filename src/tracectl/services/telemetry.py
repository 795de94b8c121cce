"""Timing spans for service operations, shown with ``-v``.

A :func:`traced` service method opens a root span; code inside it opens
child spans with :func:`trace_span` around the expensive steps (one
expansion, one layout pass). The finished tree lands in
``ServiceResult.meta["telemetry"]``. While telemetry is off every entry
point costs one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from tracectl.services.result import ServiceResult

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)

log = structlog.get_logger("tracectl.telemetry")

# Keyword arguments of a traced operation copied onto its span.
_SCOPE_KWARGS = ("session", "node_id", "edge_id")


@dataclass
class Span:
    """One timed step and the steps nested in it."""

    name: str
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        return 0.0 if self.finished is None else (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def walk(self) -> Iterator[Span]:
        """This span followed by all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a step inside the current traced operation.

    Yields None when telemetry is off or no traced operation is running,
    so callers guard their annotations with ``if span is not None``.
    """
    parent = _current_span.get() if _verbose_enabled.get() else None
    if parent is None:
        yield None
        return
    child = Span(name=name)
    parent.children.append(child)
    with _activate(child):
        yield child


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service operation and attach its span tree to the result."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _verbose_enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        for key in _SCOPE_KWARGS:
            if kwargs.get(key) is not None:
                root.annotate(key, kwargs[key])
        ok = False
        try:
            with _activate(root):
                result = func(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            log.debug(
                "span.complete",
                span_name=root.name,
                duration_ms=round(root.duration_ms, 2),
                ok=ok,
                steps=sum(1 for _ in root.walk()) - 1,
            )

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": root.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on (``-v``)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, or None when telemetry is off."""
    return _current_span.get() if _verbose_enabled.get() else None


def annotate(key: str, value: Any) -> None:
    """Annotate the innermost open span, if any."""
    span = get_current_span()
    if span is not None:
        span.annotate(key, value)
