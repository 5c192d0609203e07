"""Service catalog with durations and descriptions."""

import logging
from typing import Optional

from booking_engine.schemas.booking_schema import ServiceType

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 120

SERVICE_CATALOG: dict[str, dict] = {
    ServiceType.HOUSE_WASHING.value: {
        "name": "House Washing",
        "description": "Soft-wash exterior siding, trim, and entryways.",
        "duration_minutes": 180,
    },
    ServiceType.MOBILE_DETAILING.value: {
        "name": "Mobile Detailing",
        "description": "On-site interior and exterior vehicle detailing.",
        "duration_minutes": 90,
    },
    ServiceType.GUTTER_CLEANING.value: {
        "name": "Gutter Cleaning",
        "description": "Debris removal and downspout flushing.",
        "duration_minutes": 120,
    },
    ServiceType.COMMERCIAL_WASHING.value: {
        "name": "Commercial Washing",
        "description": "Storefronts, lots, and building facades.",
        "duration_minutes": 240,
    },
    ServiceType.DRIVEWAY_CLEANING.value: {
        "name": "Driveway Cleaning",
        "description": "Pressure washing of driveways and walkways.",
        "duration_minutes": 60,
    },
    ServiceType.DECK_CLEANING.value: {
        "name": "Deck Cleaning",
        "description": "Deck and patio washing, ready for sealing.",
        "duration_minutes": 150,
    },
}

SERVICE_ALIASES: dict[str, str] = {
    "siding": "house-washing", "house wash": "house-washing", "soft wash": "house-washing",
    "detailing": "mobile-detailing", "car wash": "mobile-detailing", "auto": "mobile-detailing",
    "gutter": "gutter-cleaning", "downspout": "gutter-cleaning",
    "commercial": "commercial-washing", "storefront": "commercial-washing",
    "driveway": "driveway-cleaning", "walkway": "driveway-cleaning",
    "deck": "deck-cleaning", "patio": "deck-cleaning",
}


def get_service_duration(service_type: str) -> int:
    """Return the fixed duration in minutes; unknown types get the default."""
    info = SERVICE_CATALOG.get(service_type.lower().strip())
    if info is None:
        logger.debug("Unknown service '%s', using default duration", service_type)
        return DEFAULT_DURATION_MINUTES
    return info["duration_minutes"]


def get_service_name(service_type: str) -> str:
    info = SERVICE_CATALOG.get(service_type.lower().strip())
    return info["name"] if info else service_type


def get_all_services() -> list[dict]:
    """Return all services with basic info."""
    return [
        {"id": sid, "name": info["name"], "duration_minutes": info["duration_minutes"]}
        for sid, info in SERVICE_CATALOG.items()
    ]


def match_service(query: str) -> Optional[str]:
    """Match a free-text query to a service ID. Returns None if no match."""
    normalized = query.lower().strip()
    for sid in SERVICE_CATALOG:
        if sid == normalized or sid.replace("-", " ") == normalized:
            return sid
    for alias, service_id in SERVICE_ALIASES.items():
        if alias in normalized:
            return service_id
    return None
