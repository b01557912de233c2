"""Per-event trace context for correlating log lines.

Each inbound chat event is handled inside its own trace context, so every log
record emitted while handling it (including the adapters it calls) carries the
same trace_id. The id lives in a contextvar and therefore follows asyncio
tasks and ``asyncio.to_thread`` calls.

Usage:
    from smart_apply.config.trace_context import trace_context

    with trace_context() as tid:
        logger.info("Handled with trace_id")
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Generator, Optional

from loguru import logger

_trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "trace_id", default=""
)


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set trace_id for current execution context.

    Args:
        trace_id: Trace ID. If None, generates a new UUID.

    Returns:
        The trace_id that was set.
    """
    tid = trace_id or str(uuid.uuid4())
    _trace_id_var.set(tid)
    return tid


def get_trace_id() -> str:
    """Return the current trace_id, or "no-trace" if not set."""
    return _trace_id_var.get() or "no-trace"


@contextmanager
def trace_context(trace_id: Optional[str] = None) -> Generator[str, None, None]:
    """Context manager for scoped trace_id.

    Sets trace_id on entry and restores the previous value on exit.
    """
    previous = _trace_id_var.get()
    tid = set_trace_id(trace_id)
    try:
        yield tid
    finally:
        _trace_id_var.set(previous)


def _inject_trace_id(record: dict) -> None:
    """Loguru patcher that injects trace_id from context into every log record."""
    record["extra"]["trace_id"] = get_trace_id()


def configure_trace_logging() -> None:
    """Make loguru include the contextual trace_id in all records.

    Call this once at application startup, before any logging.
    """
    logger.configure(patcher=_inject_trace_id)
