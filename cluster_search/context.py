"""Utilities for timing backend calls with nested trace labels."""

from collections import defaultdict
import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

__all__ = [
    "TraceCollector",
    "trace_context",
    "get_trace_collector",
]


@dataclass
class TraceCollector:
    """Accumulated durations and call counts for each trace label."""

    timings: dict[str, float] = field(default_factory=lambda: defaultdict(float))
    counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def add(self, name: str, duration: float) -> None:
        """Record a single timed call for the label."""
        self.timings[name] += duration
        self.counts[name] += 1


_TRACE: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")
_COLLECTOR: contextvars.ContextVar[TraceCollector | None] = contextvars.ContextVar(
    "trace_collector", default=None
)


@contextmanager
def get_trace_collector() -> Generator[TraceCollector, None, None]:
    """Collect the timings of every trace context entered in this block."""
    collector = TraceCollector()
    token = _COLLECTOR.set(collector)
    try:
        yield collector
    finally:
        _COLLECTOR.reset(token)


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    stack = _TRACE.get([])
    token = _TRACE.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        t2 = perf_counter()
        _TRACE.reset(token)
        if (collector := _COLLECTOR.get()) is not None:
            collector.add(name, t2 - t1)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, (t2 - t1))
