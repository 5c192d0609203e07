"""
Bounded in-memory records: dispatched alert log and emergency bookings.

In production both would be database tables; here they keep the most
recent entries only, oldest dropped first.
"""

import logging
from collections import deque
from typing import Optional

from booking_engine.schemas.booking_schema import EmergencyBooking
from booking_engine.schemas.notification_schema import AlertLogEntry

logger = logging.getLogger(__name__)


class AlertLog:
    """Most recent booking alert dispatches."""

    def __init__(self, max_entries: int = 100) -> None:
        self._entries: deque[AlertLogEntry] = deque(maxlen=max_entries)

    def record(self, entry: AlertLogEntry) -> None:
        self._entries.append(entry)
        logger.info(
            "Alert logged: booking %s, %d worker(s), status %s",
            entry.booking_id, len(entry.workers_notified), entry.status,
        )

    def entries(self) -> list[AlertLogEntry]:
        return list(self._entries)


class EmergencyBookingStore:
    """Requests saved aside when scheduling failed unexpectedly."""

    def __init__(self, max_entries: int = 500) -> None:
        self._bookings: deque[EmergencyBooking] = deque(maxlen=max_entries)

    def save(self, booking: EmergencyBooking) -> None:
        self._bookings.append(booking)
        logger.warning("Emergency booking saved: %s (%s)", booking.booking_id, booking.error)

    def get(self, booking_id: str) -> Optional[EmergencyBooking]:
        for booking in self._bookings:
            if booking.booking_id == booking_id:
                return booking
        return None

    def all(self) -> list[EmergencyBooking]:
        return list(self._bookings)
