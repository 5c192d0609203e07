"""Shared utilities used across the booking engine."""

import re
from datetime import datetime


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("(555) 010-1234")
        '5550101234'
        >>> normalize_phone("+1 555 010 1234")
        '+15550101234'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def time_to_minutes(value: str) -> int:
    """Convert an ``HH:MM`` time-of-day to minutes past midnight."""
    parsed = datetime.strptime(value.strip(), "%H:%M")
    return parsed.hour * 60 + parsed.minute


def minutes_to_time(minutes: int) -> str:
    """Convert minutes past midnight back to ``HH:MM``."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
