"""
Distance estimates between a worker and a service address.

In production, this would call a distance-matrix API. The zone-based
estimate is deterministic so that worker ranking is reproducible.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from booking_engine.schemas.booking_schema import Worker, Zone
from booking_engine.tools.workers import ZONE_KEYWORDS

logger = logging.getLogger(__name__)

SAME_ZONE_MILES = 5.0
CENTRAL_HOP_MILES = 10.0
ADJACENT_ZONE_MILES = 18.0
OPPOSITE_ZONE_MILES = 25.0
UNKNOWN_ZONE_MILES = 20.0

_OPPOSITES = {
    frozenset((Zone.NORTH, Zone.SOUTH)),
    frozenset((Zone.EAST, Zone.WEST)),
}


class DistanceProvider(ABC):
    @abstractmethod
    def distance_miles(self, worker: Worker, address: str) -> float:
        """Travel distance from the worker's base to the address, in miles."""


def zone_for_address(address: str) -> Optional[Zone]:
    """First zone whose keywords appear in the address, if any."""
    lower = address.lower()
    for zone, keywords in ZONE_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return zone
    return None


class ZoneDistanceProvider(DistanceProvider):
    """Coarse zone-to-zone distance table."""

    def distance_miles(self, worker: Worker, address: str) -> float:
        target = zone_for_address(address)
        if target is None:
            return UNKNOWN_ZONE_MILES
        if target == worker.zone:
            return SAME_ZONE_MILES
        if Zone.CENTRAL in (target, worker.zone):
            return CENTRAL_HOP_MILES
        if frozenset((target, worker.zone)) in _OPPOSITES:
            return OPPOSITE_ZONE_MILES
        return ADJACENT_ZONE_MILES
