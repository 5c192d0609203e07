"""
Worker schedule storage and per-worker assignment locks.

In production, this would sit on the bookings table of the main database
with a conditional insert. The in-memory repository keeps the same
contract: ``commit_interval`` never stores an interval that overlaps an
existing one for the same worker.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date
from enum import Enum

from booking_engine.errors import IntervalConflictError
from booking_engine.schemas.booking_schema import ScheduledInterval

logger = logging.getLogger(__name__)


class CommitStatus(str, Enum):
    OK = "ok"
    CONFLICT = "conflict"


class ScheduleRepository(ABC):
    """Per-worker list of booked intervals."""

    @abstractmethod
    async def get_intervals_for_worker_on_date(
        self, worker_id: str, day: date
    ) -> list[ScheduledInterval]:
        ...

    @abstractmethod
    async def commit_interval(self, interval: ScheduledInterval) -> CommitStatus:
        """Insert the interval unless it overlaps one already stored."""

    @abstractmethod
    async def remove_interval(self, booking_id: str) -> bool:
        """Drop the interval of a cancelled booking. Returns False if unknown."""


class InMemoryScheduleRepository(ScheduleRepository):
    def __init__(self) -> None:
        self._intervals: dict[str, list[ScheduledInterval]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def get_intervals_for_worker_on_date(
        self, worker_id: str, day: date
    ) -> list[ScheduledInterval]:
        return [i for i in self._intervals.get(worker_id, []) if i.day == day]

    async def commit_interval(self, interval: ScheduledInterval) -> CommitStatus:
        async with self._lock:
            for existing in self._intervals.get(interval.worker_id, []):
                if interval.start < existing.end and interval.end > existing.start:
                    logger.warning(
                        "Commit conflict for worker %s: %s-%s overlaps booking %s",
                        interval.worker_id, interval.start, interval.end, existing.booking_id,
                    )
                    return CommitStatus.CONFLICT
            self._intervals[interval.worker_id].append(interval)
            self._intervals[interval.worker_id].sort(key=lambda i: i.start)
        logger.info(
            "Interval committed: worker %s %s-%s (booking %s)",
            interval.worker_id, interval.start, interval.end, interval.booking_id,
        )
        return CommitStatus.OK

    async def remove_interval(self, booking_id: str) -> bool:
        async with self._lock:
            for worker_id, intervals in self._intervals.items():
                for interval in intervals:
                    if interval.booking_id == booking_id:
                        intervals.remove(interval)
                        logger.info("Interval removed: booking %s (worker %s)", booking_id, worker_id)
                        return True
        return False

    def add(self, interval: ScheduledInterval) -> None:
        """Seed an interval synchronously, raising on raw overlap."""
        for existing in self._intervals.get(interval.worker_id, []):
            if interval.start < existing.end and interval.end > existing.start:
                raise IntervalConflictError(
                    f"Interval for booking {interval.booking_id} overlaps {existing.booking_id}"
                )
        self._intervals[interval.worker_id].append(interval)
        self._intervals[interval.worker_id].sort(key=lambda i: i.start)

    def all_intervals(self) -> list[ScheduledInterval]:
        return [i for intervals in self._intervals.values() for i in intervals]


class WorkerLocks:
    """One asyncio.Lock per worker id, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def for_worker(self, worker_id: str) -> asyncio.Lock:
        lock = self._locks.get(worker_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[worker_id] = lock
        return lock
