"""Trace context management for correlating fetches within one snapshot."""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

# Context variable for storing the current trace ID
_trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)


def create_trace() -> str:
    """
    Generate a new unique trace ID and set it in the current context.

    Returns:
        A unique trace ID string (UUID4 format)
    """
    trace_id = str(uuid.uuid4())
    set_trace(trace_id)
    return trace_id


def get_current_trace() -> Optional[str]:
    """Get the current trace ID from the context, or None if unset."""
    return _trace_id_context.get()


def set_trace(trace_id: str) -> None:
    """Set the trace ID in the current context."""
    _trace_id_context.set(trace_id)


def clear_trace() -> None:
    """Clear the trace ID from the current context."""
    _trace_id_context.set(None)


@contextmanager
def trace_scope(trace_id: str | None = None) -> Iterator[str]:
    """
    Run a block under a trace ID and restore the previous one afterwards.

    Tasks spawned inside the block copy the context, so concurrent fetches
    started from a snapshot share its trace ID.

    Args:
        trace_id: Trace ID to use; a new UUID4 is generated when omitted

    Yields:
        The active trace ID
    """
    token = _trace_id_context.set(trace_id or str(uuid.uuid4()))
    try:
        yield _trace_id_context.get()
    finally:
        _trace_id_context.reset(token)
