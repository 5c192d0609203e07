from booking_engine.scheduling.alternatives import AlternativeSlotFinder
from booking_engine.scheduling.availability import AvailabilityFinder, Candidate
from booking_engine.scheduling.orchestrator import SchedulingOrchestrator
from booking_engine.scheduling.selector import WorkerSelector
from booking_engine.scheduling.state_machine import (
    SchedulingState,
    SchedulingStateMachine,
    SchedulingTrigger,
)
from booking_engine.scheduling.validator import BookingValidator, ValidationResult

__all__ = [
    "BookingValidator", "ValidationResult",
    "AvailabilityFinder", "Candidate",
    "WorkerSelector", "AlternativeSlotFinder",
    "SchedulingStateMachine", "SchedulingState", "SchedulingTrigger",
    "SchedulingOrchestrator",
]
