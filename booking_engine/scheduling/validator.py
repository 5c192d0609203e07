"""
Booking validator — business time-window rules.

Checks run in a fixed order and stop at the first failure, so the same
request always produces the same error message:
1. minimum advance notice
2. maximum advance window
3. working hours
4. weekends
5. holidays
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from booking_engine.config import SchedulingConfig, settings
from booking_engine.errors import ValidationErrorKind
from booking_engine.schemas.booking_schema import BookingRequest
from booking_engine.utils import time_to_minutes

logger = logging.getLogger(__name__)

SATURDAY = 5


@dataclass
class ValidationResult:
    """Outcome of validating one request."""
    valid: bool
    error_kind: Optional[ValidationErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, kind: ValidationErrorKind, message: str) -> "ValidationResult":
        return cls(valid=False, error_kind=kind, message=message)


class BookingValidator:
    """Applies the configured RuleSet to booking requests."""

    def __init__(self, rules: Optional[SchedulingConfig] = None) -> None:
        self.rules = rules or settings.scheduling

    def validate(self, request: BookingRequest, now: datetime) -> ValidationResult:
        rules = self.rules
        requested = request.requested_start
        hours_ahead = (requested - now).total_seconds() / 3600

        if hours_ahead < rules.min_advance_hours:
            return ValidationResult.fail(
                ValidationErrorKind.TOO_SOON,
                f"Booking must be at least {rules.min_advance_hours:g} hours in advance",
            )

        if hours_ahead / 24 > rules.max_advance_days:
            return ValidationResult.fail(
                ValidationErrorKind.TOO_FAR_OUT,
                f"Booking cannot be more than {rules.max_advance_days:g} days in advance",
            )

        minutes = time_to_minutes(request.requested_time)
        if not (
            time_to_minutes(rules.working_hours_start)
            <= minutes
            < time_to_minutes(rules.working_hours_end)
        ):
            return ValidationResult.fail(
                ValidationErrorKind.OUTSIDE_WORKING_HOURS,
                f"Service hours are {rules.working_hours_start} - {rules.working_hours_end}",
            )

        if not rules.allow_weekends and requested.weekday() >= SATURDAY:
            return ValidationResult.fail(
                ValidationErrorKind.WEEKEND_NOT_ALLOWED,
                "Weekend bookings are not available",
            )

        if not rules.allow_holidays and request.requested_date in rules.holidays:
            return ValidationResult.fail(
                ValidationErrorKind.HOLIDAY_NOT_ALLOWED,
                "Holiday bookings are not available",
            )

        return ValidationResult.ok()
