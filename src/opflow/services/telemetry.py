"""Telemetry primitives — Span, @traced, trace_span.

Near-zero overhead when disabled (single ContextVar.get per call).
When enabled, builds hierarchical span trees with timing around each
pipeline step and injects them into ExecutionResult.meta.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

import structlog

from opflow.domain.results import ExecutionResult

# ── Context variables ────────────────────────────────────────────────

_telemetry_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


# ── Span ─────────────────────────────────────────────────────────────


@dataclass
class Span:
    """Hierarchical timing span."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.annotations:
            result["annotations"] = self.annotations
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


# ── trace_span context manager ───────────────────────────────────────


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Create a child span under the current span.

    Yields None when telemetry is disabled or no root span is active.
    """
    if not _telemetry_enabled.get():
        yield None
        return

    parent = _current_span.get()
    if parent is None:
        yield None
        return

    child = Span(name=name, parent=parent)
    parent.children.append(child)

    token = _current_span.set(child)
    try:
        yield child
    finally:
        child.end()
        _current_span.reset(token)


# ── @traced decorator ────────────────────────────────────────────────


def _inject_meta(result: ExecutionResult[Any], span: Span) -> ExecutionResult[Any]:
    """Return a copy of *result* with span data merged into meta (results are frozen)."""
    existing_meta = result.meta or {}
    merged_meta = {**existing_meta, "telemetry": span.to_dict()}
    return result.model_copy(update={"meta": merged_meta})


def _log_span(span: Span, *, ok: bool) -> None:
    log = structlog.get_logger("opflow.telemetry")
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
    )


def _start_root(name: str) -> tuple[Span, Any]:
    span = Span(name=name)
    return span, _current_span.set(span)


def _finish_root(span: Span, token: Any, result: Any, *, ok: bool) -> Any:
    span.end()
    _current_span.reset(token)
    _log_span(span, ok=ok)
    if ok and isinstance(result, ExecutionResult):
        return _inject_meta(result, span)
    return result


def traced[F: Callable[..., Any]](func: F) -> F:
    """Decorator: time a call and inject span data into ExecutionResult.meta.

    Works on plain and ``async def`` functions. No-op when telemetry is
    disabled.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _telemetry_enabled.get():
                return await func(*args, **kwargs)
            span, token = _start_root(func.__qualname__)
            try:
                result = await func(*args, **kwargs)
            except BaseException:
                _finish_root(span, token, None, ok=False)
                raise
            return _finish_root(span, token, result, ok=True)

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if not _telemetry_enabled.get():
            return func(*args, **kwargs)
        span, token = _start_root(func.__qualname__)
        try:
            result = func(*args, **kwargs)
        except BaseException:
            _finish_root(span, token, None, ok=False)
            raise
        return _finish_root(span, token, result, ok=True)

    return wrapper  # type: ignore[return-value]


# ── Public helpers ───────────────────────────────────────────────────


def enable_telemetry() -> None:
    """Enable telemetry (called by AppContext when configured)."""
    _telemetry_enabled.set(True)


def disable_telemetry() -> None:
    """Disable telemetry."""
    _telemetry_enabled.set(False)


def get_current_span() -> Span | None:
    """Get the current active span (for manual annotation)."""
    if not _telemetry_enabled.get():
        return None
    return _current_span.get()
