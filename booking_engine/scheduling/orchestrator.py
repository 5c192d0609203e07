"""
Scheduling orchestrator — the single entry point for a booking transaction.

Sequences validation, worker search, assignment, notification, and
follow-up registration, recording each step on a SchedulingStateMachine.

Outcomes:
- validation rejections and no-availability are returned, never raised
- notification failures degrade the result but never undo an assignment
- any unexpected exception after validation alerts the admin, saves the
  request to the emergency store, and returns a scheduling_failure result
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Optional

from booking_engine.errors import SchedulingErrorKind
from booking_engine.logging_context import booking_scope, get_booking_logger
from booking_engine.notifications.alert_dispatcher import AlertDispatcher
from booking_engine.notifications.follow_ups import FollowUpScheduler
from booking_engine.scheduling.alternatives import AlternativeSlotFinder
from booking_engine.scheduling.availability import AvailabilityFinder, Candidate
from booking_engine.scheduling.selector import WorkerSelector
from booking_engine.scheduling.state_machine import (
    SchedulingState,
    SchedulingStateMachine,
    SchedulingTrigger,
)
from booking_engine.scheduling.validator import BookingValidator
from booking_engine.schemas.booking_schema import (
    AssignedBooking,
    BookingRequest,
    EmergencyBooking,
    ScheduledInterval,
)
from booking_engine.schemas.notification_schema import DispatchReport
from booking_engine.schemas.result_schema import SchedulingResult
from booking_engine.tools.clock import TimerService
from booking_engine.tools.records import EmergencyBookingStore
from booking_engine.tools.schedule import CommitStatus, ScheduleRepository, WorkerLocks
from booking_engine.tools.services import get_service_duration

logger = get_booking_logger(__name__)

NO_AVAILABILITY_REASON = "no_availability"


def new_booking_id() -> str:
    return f"BK-{uuid.uuid4().hex[:8].upper()}"


class SchedulingOrchestrator:
    """Runs one booking request through the full scheduling pipeline."""

    def __init__(
        self,
        validator: BookingValidator,
        finder: AvailabilityFinder,
        selector: WorkerSelector,
        alternatives: AlternativeSlotFinder,
        dispatcher: AlertDispatcher,
        follow_ups: FollowUpScheduler,
        schedule: ScheduleRepository,
        timer: TimerService,
        locks: Optional[WorkerLocks] = None,
        emergency_store: Optional[EmergencyBookingStore] = None,
    ) -> None:
        self._validator = validator
        self._finder = finder
        self._selector = selector
        self._alternatives = alternatives
        self._dispatcher = dispatcher
        self._follow_ups = follow_ups
        self._schedule = schedule
        self._timer = timer
        self._locks = locks or WorkerLocks()
        self._emergency_store = emergency_store or EmergencyBookingStore()

    @property
    def emergency_store(self) -> EmergencyBookingStore:
        return self._emergency_store

    async def schedule_booking(self, request: BookingRequest) -> SchedulingResult:
        """Validate, assign, notify, and arm follow-ups for one request."""
        booking_id = new_booking_id()
        with booking_scope(booking_id):
            return await self._process(booking_id, request)

    async def _process(self, booking_id: str, request: BookingRequest) -> SchedulingResult:
        sm = SchedulingStateMachine()
        sm.transition(SchedulingTrigger.START)
        now = self._timer.now()

        logger.info(
            "Processing booking %s: %s for %s on %s at %s",
            booking_id, request.service_type, request.customer_name,
            request.requested_date, request.requested_time,
        )

        validation = self._validator.validate(request, now)
        if not validation.valid:
            sm.transition(SchedulingTrigger.VALIDATION_FAILED)
            logger.info("Booking %s rejected: %s", booking_id, validation.message)
            return SchedulingResult(
                success=False,
                booking_id=booking_id,
                state=sm.current_state.value,
                error_kind=SchedulingErrorKind.from_validation(validation.error_kind),
                reason=validation.error_kind.value,
                message=validation.message or "",
                state_trace=sm.get_state_trace(),
            )
        sm.transition(SchedulingTrigger.VALIDATION_PASSED)

        booking: Optional[AssignedBooking] = None
        try:
            candidates = await self._finder.find_available_workers(request)
            if not candidates:
                sm.transition(SchedulingTrigger.NO_WORKERS_FOUND)
                return await self._handle_no_availability(booking_id, request, now, sm)

            sm.transition(SchedulingTrigger.WORKERS_FOUND)
            booking = await self._assign(booking_id, request, candidates)
            if booking is None:
                sm.transition(SchedulingTrigger.ASSIGNMENT_LOST)
                return await self._handle_no_availability(booking_id, request, now, sm)

            sm.transition(SchedulingTrigger.WORKER_ASSIGNED)
            dispatch, warnings = await self._notify(booking)

            follow_ups = self._follow_ups.schedule_follow_ups(booking)
            sm.transition(SchedulingTrigger.FOLLOW_UPS_REGISTERED)

            logger.info(
                "Booking %s confirmed with %s (%d follow-up(s))",
                booking_id, booking.worker.name, len(follow_ups),
            )
            return SchedulingResult(
                success=True,
                booking_id=booking_id,
                state=sm.current_state.value,
                message=f"Booking confirmed with {booking.worker.name}",
                worker=booking.worker,
                booking=booking,
                dispatch=dispatch,
                follow_ups=follow_ups,
                warnings=warnings,
                state_trace=sm.get_state_trace(),
            )

        except Exception as exc:
            return await self._handle_failure(booking_id, request, booking, exc, sm)

    def cancel_follow_ups(self, booking_id: str) -> int:
        """Hook for a booking-cancellation flow: disarm pending follow-ups."""
        return self._follow_ups.cancel_for_booking(booking_id)

    # ------------------------------------------------------------------ #
    # Assignment
    # ------------------------------------------------------------------ #

    async def _assign(
        self, booking_id: str, request: BookingRequest, candidates: list[Candidate]
    ) -> Optional[AssignedBooking]:
        """Commit the best still-free candidate, one worker lock at a time."""
        start, end = request.service_window(get_service_duration(request.service_type))

        for scored in self._selector.rank(candidates):
            worker = scored.candidate.worker
            async with self._locks.for_worker(worker.id):
                if not await self._finder.is_worker_available(worker, start, end):
                    logger.info("Worker %s no longer free, trying next candidate", worker.id)
                    continue
                status = await self._schedule.commit_interval(ScheduledInterval(
                    worker_id=worker.id, start=start, end=end, booking_id=booking_id,
                ))

            if status == CommitStatus.OK:
                logger.info(
                    "Assigned %s (score %.2f) to booking %s", worker.name, scored.total, booking_id
                )
                return AssignedBooking(
                    booking_id=booking_id,
                    request=request,
                    worker=worker,
                    start=start,
                    end=end,
                    created_at=datetime.now(timezone.utc),
                )
            logger.warning("Commit for worker %s rejected, trying next candidate", worker.id)

        logger.warning("Every candidate was taken before booking %s could commit", booking_id)
        return None

    # ------------------------------------------------------------------ #
    # Notifying
    # ------------------------------------------------------------------ #

    async def _notify(
        self, booking: AssignedBooking
    ) -> tuple[Optional[DispatchReport], list[SchedulingErrorKind]]:
        """Best-effort notifications; the assignment stands whatever happens."""
        dispatch_result, confirmation = await asyncio.gather(
            self._dispatcher.dispatch_booking_alert(booking),
            self._dispatcher.send_customer_confirmation(booking),
            return_exceptions=True,
        )

        degraded = False
        dispatch: Optional[DispatchReport] = None
        if isinstance(dispatch_result, BaseException):
            logger.error(
                "Dispatch failed for %s, booking stays confirmed: %s",
                booking.booking_id, dispatch_result,
            )
            degraded = True
        else:
            dispatch = dispatch_result
            degraded = dispatch.status != "sent"

        if isinstance(confirmation, BaseException):
            logger.error("Customer confirmation failed for %s: %s", booking.booking_id, confirmation)
            degraded = True
        elif not all(outcome.success for outcome in confirmation):
            degraded = True

        if degraded:
            logger.warning("Booking %s confirmed with partial notification failure", booking.booking_id)
            return dispatch, [SchedulingErrorKind.DISPATCH_PARTIAL_FAILURE]
        return dispatch, []

    # ------------------------------------------------------------------ #
    # No availability and failure paths
    # ------------------------------------------------------------------ #

    async def _handle_no_availability(
        self,
        booking_id: str,
        request: BookingRequest,
        now: datetime,
        sm: SchedulingStateMachine,
    ) -> SchedulingResult:
        logger.warning("No workers available for %s, finding alternatives", booking_id)
        alternatives = await self._alternatives.find_alternatives(request, now)

        results = await asyncio.gather(
            self._dispatcher.notify_customer_alternatives(request, alternatives),
            self._dispatcher.alert_admin_no_availability(booking_id, request, alternatives),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.error("No-availability notification failed for %s: %s", booking_id, result)

        return SchedulingResult(
            success=False,
            booking_id=booking_id,
            state=sm.current_state.value,
            error_kind=SchedulingErrorKind.NO_AVAILABILITY,
            reason=NO_AVAILABILITY_REASON,
            message=f"No workers available; {len(alternatives)} alternative slot(s) found",
            alternatives=alternatives,
            state_trace=sm.get_state_trace(),
        )

    async def _handle_failure(
        self,
        booking_id: str,
        request: BookingRequest,
        booking: Optional[AssignedBooking],
        exc: Exception,
        sm: SchedulingStateMachine,
    ) -> SchedulingResult:
        logger.exception("Scheduling failed for %s", booking_id)
        if sm.can_transition(SchedulingTrigger.UNEXPECTED_ERROR):
            sm.transition(SchedulingTrigger.UNEXPECTED_ERROR)

        await self._dispatcher.send_error_alert(booking_id, request, exc)

        emergency_saved = False
        try:
            self._emergency_store.save(EmergencyBooking(
                booking_id=booking_id,
                request=request,
                error=str(exc) or type(exc).__name__,
                saved_at=datetime.now(timezone.utc),
            ))
            emergency_saved = True
        except Exception:
            logger.critical("Emergency save also failed for %s", booking_id, exc_info=True)

        return SchedulingResult(
            success=False,
            booking_id=booking_id,
            state=SchedulingState.FAILED.value,
            error_kind=SchedulingErrorKind.SCHEDULING_FAILURE,
            reason=SchedulingErrorKind.SCHEDULING_FAILURE.value,
            message=str(exc) or type(exc).__name__,
            worker=booking.worker if booking else None,
            booking=booking,
            state_trace=sm.get_state_trace(),
            emergency_saved=emergency_saved,
        )
