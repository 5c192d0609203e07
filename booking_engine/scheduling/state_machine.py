"""
Finite state machine for one booking transaction.

Every scheduling attempt follows an explicit path through the state graph:

    received -> validating -> finding_workers -> assigning -> notifying
             -> follow_up_scheduled

with ``no_availability`` and ``failed`` as the other terminal states.

Usage:
    sm = SchedulingStateMachine()
    sm.transition(SchedulingTrigger.START)
    assert sm.current_state == SchedulingState.VALIDATING
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from booking_engine.errors import BookingEngineError

logger = logging.getLogger(__name__)


class SchedulingState(str, Enum):
    """All possible states of a booking transaction."""
    RECEIVED = "received"
    VALIDATING = "validating"
    FINDING_WORKERS = "finding_workers"
    ASSIGNING = "assigning"
    NO_AVAILABILITY = "no_availability"
    NOTIFYING = "notifying"
    FOLLOW_UP_SCHEDULED = "follow_up_scheduled"
    FAILED = "failed"


class SchedulingTrigger(str, Enum):
    """Events that cause state transitions."""
    START = "start"
    VALIDATION_PASSED = "validation_passed"
    VALIDATION_FAILED = "validation_failed"
    WORKERS_FOUND = "workers_found"
    NO_WORKERS_FOUND = "no_workers_found"
    WORKER_ASSIGNED = "worker_assigned"
    ASSIGNMENT_LOST = "assignment_lost"
    FOLLOW_UPS_REGISTERED = "follow_ups_registered"
    UNEXPECTED_ERROR = "unexpected_error"


TERMINAL_STATES = frozenset({
    SchedulingState.FOLLOW_UP_SCHEDULED,
    SchedulingState.NO_AVAILABILITY,
    SchedulingState.FAILED,
})


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: SchedulingState
    to_state: SchedulingState
    trigger: SchedulingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: SchedulingState
    entered_at: datetime
    trigger: Optional[SchedulingTrigger] = None


class InvalidTransitionError(BookingEngineError):
    """Raised when a transition is not valid from the current state."""


class SchedulingStateMachine:
    """
    Deterministic state machine for a scheduling attempt.

    Every transition must be explicitly defined; anything else is
    rejected with the list of triggers valid from the current state.
    """

    TRANSITIONS: list[Transition] = [
        Transition(SchedulingState.RECEIVED, SchedulingState.VALIDATING,
                   SchedulingTrigger.START),

        # --- Validation fails closed ---
        Transition(SchedulingState.VALIDATING, SchedulingState.FINDING_WORKERS,
                   SchedulingTrigger.VALIDATION_PASSED),
        Transition(SchedulingState.VALIDATING, SchedulingState.FAILED,
                   SchedulingTrigger.VALIDATION_FAILED),

        # --- Worker search ---
        Transition(SchedulingState.FINDING_WORKERS, SchedulingState.ASSIGNING,
                   SchedulingTrigger.WORKERS_FOUND),
        Transition(SchedulingState.FINDING_WORKERS, SchedulingState.NO_AVAILABILITY,
                   SchedulingTrigger.NO_WORKERS_FOUND),

        # --- Assignment ---
        Transition(SchedulingState.ASSIGNING, SchedulingState.NOTIFYING,
                   SchedulingTrigger.WORKER_ASSIGNED),
        Transition(SchedulingState.ASSIGNING, SchedulingState.NO_AVAILABILITY,
                   SchedulingTrigger.ASSIGNMENT_LOST),

        # --- Notifications and follow-ups ---
        Transition(SchedulingState.NOTIFYING, SchedulingState.FOLLOW_UP_SCHEDULED,
                   SchedulingTrigger.FOLLOW_UPS_REGISTERED),

        # --- Unexpected failures after validation ---
        Transition(SchedulingState.FINDING_WORKERS, SchedulingState.FAILED,
                   SchedulingTrigger.UNEXPECTED_ERROR),
        Transition(SchedulingState.ASSIGNING, SchedulingState.FAILED,
                   SchedulingTrigger.UNEXPECTED_ERROR),
        Transition(SchedulingState.NO_AVAILABILITY, SchedulingState.FAILED,
                   SchedulingTrigger.UNEXPECTED_ERROR),
        Transition(SchedulingState.NOTIFYING, SchedulingState.FAILED,
                   SchedulingTrigger.UNEXPECTED_ERROR),
    ]

    def __init__(self) -> None:
        self._current_state = SchedulingState.RECEIVED
        self._history: list[StateEntry] = [
            StateEntry(state=SchedulingState.RECEIVED, entered_at=datetime.now(timezone.utc))
        ]

    @property
    def current_state(self) -> SchedulingState:
        return self._current_state

    def transition(self, trigger: SchedulingTrigger) -> SchedulingState:
        """
        Execute a state transition.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state
                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))
                logger.debug(
                    "State transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def can_transition(self, trigger: SchedulingTrigger) -> bool:
        return trigger in self.get_valid_triggers()

    def get_valid_triggers(self) -> list[SchedulingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in TERMINAL_STATES
