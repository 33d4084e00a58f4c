"""Correlation ID logging context for tracing resolution cycles.

Provides a cycle_id-aware logger that attaches the active resolution
cycle to every log message, so interleaved output from a superseded
cycle and its replacement can be told apart.

Usage:
    from assignment_engine.logging_context import get_cycle_logger, set_cycle_id

    set_cycle_id("cycle-7")
    logger = get_cycle_logger(__name__)
    logger.info("Fetching availability")  # record.cycle_id == "cycle-7"
"""

import logging
from contextvars import ContextVar

_cycle_id: ContextVar[str] = ContextVar("cycle_id", default="NO_CYCLE")


def set_cycle_id(cycle_id: str) -> None:
    """Set the correlation ID for the current async context."""
    _cycle_id.set(cycle_id)


def get_cycle_id() -> str:
    """Retrieve the current correlation ID."""
    return _cycle_id.get()


class CycleIdFilter(logging.Filter):
    """Injects cycle_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = _cycle_id.get()  # type: ignore[attr-defined]
        return True


def get_cycle_logger(name: str) -> logging.Logger:
    """Return a logger with the CycleIdFilter attached.

    The filter adds ``cycle_id`` to each record so formatters can
    include ``%(cycle_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, CycleIdFilter) for f in logger.filters):
        logger.addFilter(CycleIdFilter())
    return logger
