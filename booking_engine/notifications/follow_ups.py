"""
Follow-up scheduler — reminders, satisfaction survey, and review request.

Four one-shot tasks per booking, each armed on its own timer relative to
the service start. Tasks whose fire time has already passed at
registration are skipped, never caught up. A task fires at most once and
a failure while sending one task never affects its siblings.

Usage:
    scheduler = FollowUpScheduler(gateway, AsyncioTimerService())
    tasks = scheduler.schedule_follow_ups(booking)
    scheduler.cancel_for_booking(booking.booking_id)  # cancellation hook
"""

import asyncio
import functools
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from booking_engine.config import FollowUpConfig, NotificationConfig, settings
from booking_engine.logging_context import get_booking_logger
from booking_engine.messages.message_templates import (
    build_reminder_2h_sms,
    build_reminder_24h_email,
    build_reminder_24h_sms,
    build_review_email,
    build_review_sms,
    build_survey_email,
)
from booking_engine.notifications.gateway import NotificationGateway
from booking_engine.schemas.booking_schema import AssignedBooking
from booking_engine.schemas.notification_schema import (
    FollowUpKind,
    FollowUpTask,
    NotificationChannel,
)
from booking_engine.tools.clock import TimerHandle, TimerService

logger = get_booking_logger(__name__)


@dataclass(frozen=True)
class FollowUpStep:
    """Static definition of one step in the follow-up sequence."""
    kind: FollowUpKind
    offset: Callable[[FollowUpConfig], timedelta]
    channel: NotificationChannel
    email_builder: Optional[Callable] = None
    sms_builder: Optional[Callable] = None


FOLLOW_UP_SEQUENCE: list[FollowUpStep] = [
    FollowUpStep(
        FollowUpKind.REMINDER_24H,
        lambda cfg: -timedelta(hours=cfg.reminder_24h_before_hours),
        NotificationChannel.BOTH,
        email_builder=build_reminder_24h_email,
        sms_builder=build_reminder_24h_sms,
    ),
    FollowUpStep(
        FollowUpKind.REMINDER_2H,
        lambda cfg: -timedelta(hours=cfg.reminder_2h_before_hours),
        NotificationChannel.SMS,
        sms_builder=build_reminder_2h_sms,
    ),
    FollowUpStep(
        FollowUpKind.SATISFACTION_SURVEY,
        lambda cfg: timedelta(hours=cfg.survey_after_hours),
        NotificationChannel.EMAIL,
        email_builder=build_survey_email,
    ),
    FollowUpStep(
        FollowUpKind.REVIEW_REQUEST,
        lambda cfg: timedelta(hours=cfg.review_after_hours),
        NotificationChannel.BOTH,
        email_builder=build_review_email,
        sms_builder=build_review_sms,
    ),
]

_STEPS_BY_KIND = {step.kind: step for step in FOLLOW_UP_SEQUENCE}


@dataclass
class ArmedFollowUp:
    task: FollowUpTask
    handle: TimerHandle


class FollowUpScheduler:
    """Arms and fires the post-booking customer follow-up sequence."""

    def __init__(
        self,
        gateway: NotificationGateway,
        timer: TimerService,
        config: Optional[FollowUpConfig] = None,
        notification_config: Optional[NotificationConfig] = None,
    ) -> None:
        self._gateway = gateway
        self._timer = timer
        self._config = config or settings.follow_ups
        self._notification_config = notification_config or settings.notifications
        self._armed: dict[str, dict[FollowUpKind, ArmedFollowUp]] = {}

    def plan(self, booking: AssignedBooking) -> list[FollowUpTask]:
        """All four tasks for a booking, regardless of the current time."""
        return [
            FollowUpTask(
                booking_id=booking.booking_id,
                kind=step.kind,
                fire_at=booking.start + step.offset(self._config),
                channel=step.channel,
            )
            for step in FOLLOW_UP_SEQUENCE
        ]

    def schedule_follow_ups(self, booking: AssignedBooking) -> list[FollowUpTask]:
        """Arm every task whose fire time is still in the future."""
        now = self._timer.now()
        scheduled: list[FollowUpTask] = []

        for task in self.plan(booking):
            if task.fire_at <= now:
                logger.info(
                    "Skipping %s for %s: fire time %s already passed",
                    task.kind.value, booking.booking_id, task.fire_at.isoformat(),
                )
                continue
            handle = self._timer.schedule_at(
                task.fire_at, functools.partial(self._fire, task, booking)
            )
            self._armed.setdefault(booking.booking_id, {})[task.kind] = ArmedFollowUp(task, handle)
            scheduled.append(task)

        logger.info("Scheduled %d follow-up(s) for booking %s", len(scheduled), booking.booking_id)
        return scheduled

    def pending_for(self, booking_id: str) -> list[FollowUpTask]:
        armed = self._armed.get(booking_id, {})
        return [entry.task for entry in armed.values() if entry.handle.pending]

    def cancel_for_booking(self, booking_id: str) -> int:
        """Disarm all pending follow-ups of a booking. Returns how many were cancelled."""
        armed = self._armed.pop(booking_id, {})
        cancelled = sum(1 for entry in armed.values() if entry.handle.cancel())
        logger.info("Cancelled %d follow-up(s) for booking %s", cancelled, booking_id)
        return cancelled

    async def _fire(self, task: FollowUpTask, booking: AssignedBooking) -> None:
        armed = self._armed.get(task.booking_id)
        if armed is not None:
            armed.pop(task.kind, None)
            if not armed:
                self._armed.pop(task.booking_id, None)

        try:
            logger.info("Executing follow-up %s for booking %s", task.kind.value, task.booking_id)
            await self._send(task, booking)
        except Exception:
            logger.exception(
                "Follow-up execution failed for %s (booking %s)", task.kind.value, task.booking_id
            )

    async def _send(self, task: FollowUpTask, booking: AssignedBooking) -> None:
        step = _STEPS_BY_KIND[task.kind]
        request = booking.request
        cfg = self._notification_config
        sends = []
        if task.channel.uses_email and step.email_builder is not None:
            subject, body = step.email_builder(booking, cfg)
            sends.append(self._gateway.send_email(request.customer_email, subject, body))
        if task.channel.uses_sms and step.sms_builder is not None:
            sends.append(self._gateway.send_sms(request.customer_phone, step.sms_builder(booking, cfg)))

        results = await asyncio.gather(*sends, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                logger.error("Follow-up %s send raised: %s", task.kind.value, result)
            elif not result.success:
                logger.error(
                    "Follow-up %s %s to %s failed: %s",
                    task.kind.value, result.channel.value, result.recipient, result.error,
                )
