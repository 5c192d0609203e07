"""
Alternative slot finder — brute-force search of nearby days and times.

Runs only after the requested slot had no free worker. Walks the next
N days after the requested date and every slot of the working day,
re-running validation, availability, and selection for each, and keeps
the first few hits in chronological order. The grid is small
(days x half-hour slots x workers), so no free-time index is kept.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from booking_engine.config import SchedulingConfig, settings
from booking_engine.scheduling.availability import AvailabilityFinder
from booking_engine.scheduling.selector import WorkerSelector
from booking_engine.scheduling.validator import BookingValidator
from booking_engine.schemas.booking_schema import AlternativeSlot, BookingRequest
from booking_engine.utils import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


def generate_time_slots(rules: SchedulingConfig) -> list[str]:
    """Start times across the working-hours window at the configured granularity."""
    start = time_to_minutes(rules.working_hours_start)
    end = time_to_minutes(rules.working_hours_end)
    return [
        minutes_to_time(minute)
        for minute in range(start, end, rules.slot_granularity_minutes)
    ]


class AlternativeSlotFinder:
    """Pure search: returns alternatives, sends nothing."""

    def __init__(
        self,
        validator: BookingValidator,
        finder: AvailabilityFinder,
        selector: WorkerSelector,
        rules: Optional[SchedulingConfig] = None,
    ) -> None:
        self._validator = validator
        self._finder = finder
        self._selector = selector
        self.rules = rules or settings.scheduling

    async def find_alternatives(
        self, request: BookingRequest, now: datetime, days: Optional[int] = None
    ) -> list[AlternativeSlot]:
        if days is None:
            days = self.rules.alternative_search_days
        limit = self.rules.max_alternatives
        slots = generate_time_slots(self.rules)
        alternatives: list[AlternativeSlot] = []

        for offset in range(1, days + 1):
            day = request.day + timedelta(days=offset)
            for slot in slots:
                candidate_request = request.with_slot(day.isoformat(), slot)
                if not self._validator.validate(candidate_request, now).valid:
                    continue

                candidates = await self._finder.find_available_workers(candidate_request)
                if not candidates:
                    continue

                best = self._selector.rank(candidates)[0]
                worker = best.candidate.worker
                alternatives.append(AlternativeSlot(
                    date=day.isoformat(),
                    time=slot,
                    day_name=day.strftime("%A"),
                    worker_id=worker.id,
                    worker_name=worker.name,
                    worker_rating=worker.rating,
                    score=round(best.total, 2),
                ))
                if len(alternatives) >= limit:
                    logger.info("Found %d alternative slot(s)", len(alternatives))
                    return alternatives

        logger.info("Found %d alternative slot(s)", len(alternatives))
        return alternatives
