"""Per-call telemetry for service methods.

``@traced`` marks a service method as one pmgraph operation. The method
name is always bound as ``op`` in the log context for the duration of
the call. With ``--verbose`` the call is also timed: ``trace_span``
blocks inside it (validate, traverse, join, ...) become child spans, and
the finished tree lands in ``ServiceResult.meta["telemetry"]``.

When telemetry is off, ``trace_span`` yields None and costs one
ContextVar lookup.
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

from pmgraph.config.logging import operation_context
from pmgraph.services.result import ServiceResult

logger = logging.getLogger(__name__)

_enabled: ContextVar[bool] = ContextVar("_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("_active", default=None)


@dataclass
class Span:
    """One timed step of an operation."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        tree: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            tree["annotations"] = self.annotations
        if self.children:
            tree["children"] = [c.to_dict() for c in self.children]
        return tree


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a step of the running operation as a child span.

    Yields None when telemetry is off or no ``@traced`` call is running,
    so callers guard annotations with ``if span:``.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    span = Span(name=name, parent=parent)
    parent.children.append(span)
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def _timed(func: Callable[_P, _R], *args: _P.args, **kwargs: _P.kwargs) -> _R:
    span = Span(name=func.__qualname__)
    token = _active.set(span)
    try:
        result = func(*args, **kwargs)
    finally:
        span.end()
        _active.reset(token)

    ok = True
    if isinstance(result, ServiceResult):
        ok = result.ok
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        result = result.model_copy(update={"meta": meta})  # type: ignore[assignment]
    logger.debug(
        "%s finished",
        span.name,
        extra={"ok": ok, "duration_ms": round(span.duration_ms, 2), "spans": len(span.children)},
    )
    return result


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run a service method as a named operation (see module docstring)."""
    op = func.__name__

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        with operation_context(op):
            if not _enabled.get():
                return func(*args, **kwargs)
            return _timed(func, *args, **kwargs)

    return wrapper


def enable_telemetry() -> None:
    """Turn on span timing (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
