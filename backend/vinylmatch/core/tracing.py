"""Per-request trace ids, kept in structlog's context variables.

Every log line emitted while a trace id is bound carries it, and error
responses echo it back so a client report can be matched to the logs.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog.contextvars as contextvars

TRACE_ID_KEY = "trace_id"


def generate_trace_id() -> str:
    """New 32-character hex trace id."""
    return uuid.uuid4().hex


def get_trace_id() -> str | None:
    return contextvars.get_contextvars().get(TRACE_ID_KEY)


def set_trace_id(trace_id: str) -> None:
    contextvars.bind_contextvars(**{TRACE_ID_KEY: trace_id})


def clear_trace_id() -> None:
    """Drop the trace id along with any other bound context."""
    contextvars.clear_contextvars()


@contextmanager
def trace_context(trace_id: str | None = None) -> Iterator[str]:
    """Bind a trace id (generated when not given) for the duration of the block.

    On exit the previous context, including an outer trace id, is restored.
    """
    trace_id = trace_id or generate_trace_id()
    with contextvars.bound_contextvars(**{TRACE_ID_KEY: trace_id}):
        yield trace_id
