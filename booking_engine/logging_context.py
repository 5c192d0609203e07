"""Correlation ID logging context for tracing a booking across modules.

Provides a booking_id-aware logger that attaches a correlation ID to every
log record, making it easy to follow one booking from validation through
dispatch to its follow-up timers.

Usage:
    from booking_engine.logging_context import booking_scope, get_booking_logger

    logger = get_booking_logger(__name__)
    with booking_scope("BK-3F9A1C"):
        logger.info("Assigning worker")  # record.booking_id == "BK-3F9A1C"

Timers armed inside the scope keep the id: asyncio copies the current
context when a callback is scheduled.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Iterator

NO_BOOKING_ID = "NO_BOOKING_ID"

_booking_id: ContextVar[str] = ContextVar("booking_id", default=NO_BOOKING_ID)


def set_booking_id(booking_id: str) -> Token:
    """Set the correlation ID for the current async context.

    Returns the token needed to restore the previous ID.
    """
    return _booking_id.set(booking_id)


def reset_booking_id(token: Token) -> None:
    _booking_id.reset(token)


def get_booking_id() -> str:
    """Retrieve the current correlation ID."""
    return _booking_id.get()


@contextmanager
def booking_scope(booking_id: str) -> Iterator[str]:
    """Tag every log record with ``booking_id`` until the block exits."""
    token = set_booking_id(booking_id)
    try:
        yield booking_id
    finally:
        reset_booking_id(token)


class BookingIdFilter(logging.Filter):
    """Injects booking_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.booking_id = _booking_id.get()  # type: ignore[attr-defined]
        return True


def get_booking_logger(name: str) -> logging.Logger:
    """Return a logger with the BookingIdFilter attached.

    The filter adds ``booking_id`` to each record so formatters can
    include ``%(booking_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, BookingIdFilter) for f in logger.filters):
        logger.addFilter(BookingIdFilter())
    return logger
