"""Error kinds and exception types shared across the booking engine."""

from enum import Enum


class ValidationErrorKind(str, Enum):
    """Business time-rule violations reported by the booking validator."""
    TOO_SOON = "too_soon"
    TOO_FAR_OUT = "too_far_out"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    WEEKEND_NOT_ALLOWED = "weekend_not_allowed"
    HOLIDAY_NOT_ALLOWED = "holiday_not_allowed"


class SchedulingErrorKind(str, Enum):
    """Every non-success outcome a scheduling attempt can report."""
    TOO_SOON = "too_soon"
    TOO_FAR_OUT = "too_far_out"
    OUTSIDE_WORKING_HOURS = "outside_working_hours"
    WEEKEND_NOT_ALLOWED = "weekend_not_allowed"
    HOLIDAY_NOT_ALLOWED = "holiday_not_allowed"
    NO_AVAILABILITY = "no_availability"
    DISPATCH_PARTIAL_FAILURE = "dispatch_partial_failure"
    SCHEDULING_FAILURE = "scheduling_failure"

    @classmethod
    def from_validation(cls, kind: ValidationErrorKind) -> "SchedulingErrorKind":
        return cls(kind.value)


class BookingEngineError(Exception):
    """Base class for booking engine exceptions."""


class IntervalConflictError(BookingEngineError):
    """Raised when an interval cannot be inserted without overlapping another."""


class NotificationError(BookingEngineError):
    """Raised by a notification transport that could not deliver a message."""
