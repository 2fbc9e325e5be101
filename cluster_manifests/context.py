"""Utilities for tracing nested asset fetches."""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


trace: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "trace", default=()
)


def current_trace() -> tuple[str, ...]:
    """Return the names of the assets currently being fetched, outermost first."""
    return trace.get()


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    """Log entry and exit of a named step along with its duration."""
    stack = trace.get() + (name,)
    token = trace.set(stack)
    label = " > ".join(stack)
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        trace.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.3fs)", label, perf_counter() - t1)
