"""
Availability finder — buffered interval-overlap checks and daily workload cap.

Every existing appointment is widened by the buffer on both sides before
the half-open overlap test, so travel and setup time is guaranteed
before and after each job.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from booking_engine.config import SchedulingConfig, settings
from booking_engine.schemas.booking_schema import BookingRequest, ScheduledInterval, Worker
from booking_engine.tools.distance import DistanceProvider
from booking_engine.tools.schedule import ScheduleRepository
from booking_engine.tools.services import get_service_duration
from booking_engine.tools.workers import WorkerDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A worker free for the requested slot, with ranking inputs."""
    worker: Worker
    workload: int
    distance_miles: float


def overlaps_with_buffer(
    start: datetime, end: datetime, existing: ScheduledInterval, buffer_minutes: int
) -> bool:
    """Half-open overlap of ``[start, end)`` against the buffer-expanded interval."""
    buffer = timedelta(minutes=buffer_minutes)
    expanded_start = existing.start - buffer
    expanded_end = existing.end + buffer
    return start < expanded_end and end > expanded_start


class AvailabilityFinder:
    """Computes which eligible workers are free for a requested interval."""

    def __init__(
        self,
        directory: WorkerDirectory,
        schedule: ScheduleRepository,
        distance: DistanceProvider,
        rules: Optional[SchedulingConfig] = None,
    ) -> None:
        self._directory = directory
        self._schedule = schedule
        self._distance = distance
        self.rules = rules or settings.scheduling

    async def check_worker(
        self, worker: Worker, start: datetime, end: datetime
    ) -> tuple[bool, int]:
        """Return (available, workload on the start date) for one worker."""
        intervals = await self._schedule.get_intervals_for_worker_on_date(worker.id, start.date())
        workload = len(intervals)

        if workload >= self.rules.max_daily_bookings:
            logger.debug("Worker %s at daily cap (%d)", worker.id, workload)
            return False, workload

        for existing in intervals:
            if overlaps_with_buffer(start, end, existing, self.rules.buffer_minutes):
                logger.debug(
                    "Worker %s conflicts with booking %s", worker.id, existing.booking_id
                )
                return False, workload

        return True, workload

    async def is_worker_available(self, worker: Worker, start: datetime, end: datetime) -> bool:
        available, _ = await self.check_worker(worker, start, end)
        return available

    async def find_available_workers(self, request: BookingRequest) -> list[Candidate]:
        """Candidates free for the request's slot, in directory order."""
        start, end = request.service_window(get_service_duration(request.service_type))
        workers = await self._directory.find_workers_by_capability_and_zone(
            request.service_type, request.address
        )
        if not workers:
            return []

        checks = await asyncio.gather(
            *(self.check_worker(worker, start, end) for worker in workers)
        )

        candidates = [
            Candidate(
                worker=worker,
                workload=workload,
                distance_miles=self._distance.distance_miles(worker, request.address),
            )
            for worker, (available, workload) in zip(workers, checks)
            if available
        ]
        logger.debug(
            "%d of %d eligible worker(s) free for %s %s",
            len(candidates), len(workers), request.requested_date, request.requested_time,
        )
        return candidates
