"""
Worker selector — weighted scoring of available candidates.

Score components (max 40):
- workload:    (max_daily - workload) * 10 / max_daily   up to 10
- distance:    max(0, (horizon - miles) * 15 / horizon)  up to 15
- experience:  min(5, years)                             up to 5
- rating:      rating * 2 (unset rating uses the default) up to 10

Ties keep input order (stable sort).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from booking_engine.config import SchedulingConfig, settings
from booking_engine.scheduling.availability import Candidate

logger = logging.getLogger(__name__)

WORKLOAD_POINTS = 10.0
DISTANCE_POINTS = 15.0
EXPERIENCE_CAP = 5.0
RATING_MULTIPLIER = 2.0


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    workload_score: float
    distance_score: float
    experience_score: float
    rating_score: float

    @property
    def total(self) -> float:
        return self.workload_score + self.distance_score + self.experience_score + self.rating_score


class WorkerSelector:
    """Ranks candidates and picks the best one."""

    def __init__(self, rules: Optional[SchedulingConfig] = None) -> None:
        self.rules = rules or settings.scheduling

    def score(self, candidate: Candidate) -> ScoredCandidate:
        max_daily = self.rules.max_daily_bookings
        horizon = self.rules.max_distance_miles
        worker = candidate.worker
        rating = worker.rating if worker.rating is not None else self.rules.default_worker_rating

        return ScoredCandidate(
            candidate=candidate,
            workload_score=(max_daily - candidate.workload) * WORKLOAD_POINTS / max_daily,
            distance_score=max(0.0, (horizon - candidate.distance_miles) * DISTANCE_POINTS / horizon),
            experience_score=min(EXPERIENCE_CAP, worker.experience_years),
            rating_score=rating * RATING_MULTIPLIER,
        )

    def rank(self, candidates: list[Candidate]) -> list[ScoredCandidate]:
        """Highest score first; equal scores keep their input order."""
        scored = [self.score(c) for c in candidates]
        return sorted(scored, key=lambda s: s.total, reverse=True)

    def select(self, candidates: list[Candidate]) -> Candidate:
        """Return the top candidate. Callers must not pass an empty list."""
        if not candidates:
            raise ValueError("select() requires at least one candidate")
        best = self.rank(candidates)[0]
        logger.debug(
            "Selected worker %s with score %.2f", best.candidate.worker.id, best.total
        )
        return best.candidate
