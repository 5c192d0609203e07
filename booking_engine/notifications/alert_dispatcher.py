"""
Alert dispatcher — fans out booking notifications to workers, admin, and customer.

Every send is independent: one worker's failed email never delays or
fails another worker's SMS. All sends for a booking are awaited together
and failures are collected into the DispatchReport instead of aborting
the batch. Any unexpected error while orchestrating a dispatch triggers
a best-effort admin error alert before it propagates.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from booking_engine.config import NotificationConfig, settings
from booking_engine.logging_context import get_booking_logger
from booking_engine.messages.message_templates import (
    build_admin_summary_email,
    build_alternatives_email,
    build_alternatives_sms,
    build_customer_confirmation_email,
    build_customer_confirmation_sms,
    build_error_alert_email,
    build_error_alert_sms,
    build_no_availability_admin_email,
    build_no_coverage_email,
    build_no_coverage_sms,
    build_worker_alert_email,
    build_worker_alert_sms,
)
from booking_engine.notifications.gateway import NotificationGateway
from booking_engine.schemas.booking_schema import (
    AlternativeSlot,
    AssignedBooking,
    BookingRequest,
    Worker,
)
from booking_engine.schemas.notification_schema import (
    AlertLogEntry,
    DispatchReport,
    NotificationChannel,
    SendOutcome,
    WorkerAlertOutcome,
)
from booking_engine.tools.records import AlertLog
from booking_engine.tools.workers import WorkerDirectory

logger = get_booking_logger(__name__)


def _as_outcome(result, channel: NotificationChannel, recipient: str) -> SendOutcome:
    """Turn a gather() result (outcome or exception) into a SendOutcome."""
    if isinstance(result, BaseException):
        return SendOutcome(
            channel=channel,
            recipient=recipient,
            success=False,
            error=str(result) or type(result).__name__,
        )
    return result


class AlertDispatcher:
    """Multi-channel notification fan-out with partial-failure tolerance."""

    def __init__(
        self,
        gateway: NotificationGateway,
        directory: WorkerDirectory,
        config: Optional[NotificationConfig] = None,
        alert_log: Optional[AlertLog] = None,
    ) -> None:
        self._gateway = gateway
        self._directory = directory
        self._config = config or settings.notifications
        self._alert_log = alert_log or AlertLog(self._config.alert_log_size)

    @property
    def alert_log(self) -> AlertLog:
        return self._alert_log

    # ------------------------------------------------------------------ #
    # Booking alert
    # ------------------------------------------------------------------ #

    async def dispatch_booking_alert(self, booking: AssignedBooking) -> DispatchReport:
        """Alert every eligible worker and the admin about a confirmed booking."""
        try:
            request = booking.request
            eligible = await self._directory.find_workers_by_capability_and_zone(
                request.service_type, request.address
            )

            if not eligible:
                logger.warning("No eligible workers for booking %s", booking.booking_id)
                await self.send_no_coverage_alert(booking)
                report = DispatchReport(booking_id=booking.booking_id, no_coverage=True)
                self._record(booking, [], report.status)
                return report

            worker_results, admin_result = await asyncio.gather(
                self._alert_workers(eligible, booking),
                self._send_admin_summary(booking, eligible),
            )

            report = DispatchReport(
                booking_id=booking.booking_id,
                workers_notified=len(eligible),
                worker_results=worker_results,
                admin_result=admin_result,
            )
            if report.partial_failures or report.admin_failed:
                logger.warning(
                    "Dispatch for %s finished with %d failed worker alert(s), admin failed: %s",
                    booking.booking_id, report.partial_failures, report.admin_failed,
                )
            else:
                logger.info(
                    "Dispatch for %s sent to %d worker(s)", booking.booking_id, len(eligible)
                )
            self._record(booking, eligible, report.status)
            return report

        except Exception as exc:
            logger.exception("Alert dispatch failed for %s", booking.booking_id)
            await self.send_error_alert(booking.booking_id, booking.request, exc)
            raise

    async def _alert_workers(
        self, workers: list[Worker], booking: AssignedBooking
    ) -> list[WorkerAlertOutcome]:
        results = await asyncio.gather(
            *(self._alert_worker(worker, booking) for worker in workers),
            return_exceptions=True,
        )
        outcomes: list[WorkerAlertOutcome] = []
        for worker, result in zip(workers, results):
            if isinstance(result, BaseException):
                logger.error("Failed to alert %s: %s", worker.name, result)
                outcomes.append(WorkerAlertOutcome(
                    worker_id=worker.id,
                    worker_name=worker.name,
                    status="failed",
                    assigned=worker.id == booking.worker.id,
                    error=str(result) or type(result).__name__,
                ))
            else:
                outcomes.append(result)
        return outcomes

    async def _alert_worker(self, worker: Worker, booking: AssignedBooking) -> WorkerAlertOutcome:
        assigned = worker.id == booking.worker.id
        subject, body = build_worker_alert_email(worker, booking, assigned, self._config)
        sms_body = build_worker_alert_sms(worker, booking, assigned, self._config)

        email_result, sms_result = await asyncio.gather(
            self._gateway.send_email(worker.email, subject, body),
            self._gateway.send_sms(worker.phone, sms_body),
            return_exceptions=True,
        )
        email = _as_outcome(email_result, NotificationChannel.EMAIL, worker.email)
        sms = _as_outcome(sms_result, NotificationChannel.SMS, worker.phone)

        errors = [f"{o.channel.value}: {o.error or 'not delivered'}" for o in (email, sms) if not o.success]
        if errors:
            logger.error("Failed to alert %s: %s", worker.name, "; ".join(errors))
            return WorkerAlertOutcome(
                worker_id=worker.id,
                worker_name=worker.name,
                status="failed",
                assigned=assigned,
                email=email,
                sms=sms,
                error="; ".join(errors),
            )

        logger.info("Alert sent to %s", worker.name)
        return WorkerAlertOutcome(
            worker_id=worker.id,
            worker_name=worker.name,
            status="success",
            assigned=assigned,
            email=email,
            sms=sms,
        )

    async def _send_admin_summary(
        self, booking: AssignedBooking, eligible: list[Worker]
    ) -> SendOutcome:
        subject, body = build_admin_summary_email(booking, eligible, self._config)
        try:
            outcome = await self._gateway.send_email(self._config.admin_email, subject, body)
        except Exception as exc:
            logger.error("Failed to send admin alert: %s", exc)
            return _as_outcome(exc, NotificationChannel.EMAIL, self._config.admin_email)
        if outcome.success:
            logger.info("Admin notification sent")
        else:
            logger.error("Failed to send admin alert: %s", outcome.error)
        return outcome

    def _record(self, booking: AssignedBooking, workers: list[Worker], status: str) -> None:
        self._alert_log.record(AlertLogEntry(
            timestamp=datetime.now(timezone.utc),
            booking_id=booking.booking_id,
            service_type=booking.request.service_type,
            customer_name=booking.request.customer_name,
            workers_notified=[w.name for w in workers],
            status=status,
        ))

    # ------------------------------------------------------------------ #
    # Admin escalations
    # ------------------------------------------------------------------ #

    async def send_no_coverage_alert(self, booking: AssignedBooking) -> list[SendOutcome]:
        """Urgent admin alert on both channels when nobody covers a booking."""
        subject, body = build_no_coverage_email(booking, self._config)
        return await self._send_pair(
            "no-coverage alert",
            self._config.admin_email, subject, body,
            self._config.admin_phone, build_no_coverage_sms(booking, self._config),
        )

    async def send_error_alert(
        self, booking_id: str, request: Optional[BookingRequest], error: BaseException
    ) -> list[SendOutcome]:
        """Best-effort admin alert about a failure. Never raises."""
        try:
            description = str(error) or type(error).__name__
            subject, body = build_error_alert_email(booking_id, request, description, self._config)
            sms_body = build_error_alert_sms(booking_id, request, description, self._config)
            return await self._send_pair(
                "error alert",
                self._config.admin_email, subject, body,
                self._config.admin_phone, sms_body,
            )
        except Exception:
            logger.critical("Failed to send error alerts for %s", booking_id, exc_info=True)
            return []

    async def alert_admin_no_availability(
        self, booking_id: str, request: BookingRequest, alternatives: list[AlternativeSlot]
    ) -> list[SendOutcome]:
        subject, body = build_no_availability_admin_email(
            booking_id, request, alternatives, self._config
        )
        sms_body = (
            f"No availability for {request.service_type} on {request.requested_date} "
            f"{request.requested_time} ({request.customer_name}). "
            f"{len(alternatives)} alternative(s) offered."
        )
        return await self._send_pair(
            "no-availability escalation",
            self._config.admin_email, subject, body,
            self._config.admin_phone, sms_body,
        )

    # ------------------------------------------------------------------ #
    # Customer messages
    # ------------------------------------------------------------------ #

    async def send_customer_confirmation(self, booking: AssignedBooking) -> list[SendOutcome]:
        request = booking.request
        subject, body = build_customer_confirmation_email(booking, self._config)
        return await self._send_pair(
            "customer confirmation",
            request.customer_email, subject, body,
            request.customer_phone, build_customer_confirmation_sms(booking, self._config),
        )

    async def notify_customer_alternatives(
        self, request: BookingRequest, alternatives: list[AlternativeSlot]
    ) -> list[SendOutcome]:
        subject, body = build_alternatives_email(request, alternatives, self._config)
        return await self._send_pair(
            "alternative slots",
            request.customer_email, subject, body,
            request.customer_phone, build_alternatives_sms(request, alternatives, self._config),
        )

    async def _send_pair(
        self,
        label: str,
        email_to: str,
        subject: str,
        body: str,
        sms_to: str,
        sms_body: str,
    ) -> list[SendOutcome]:
        """Send one email and one SMS concurrently; failures are logged, not raised."""
        email_result, sms_result = await asyncio.gather(
            self._gateway.send_email(email_to, subject, body),
            self._gateway.send_sms(sms_to, sms_body),
            return_exceptions=True,
        )
        outcomes = [
            _as_outcome(email_result, NotificationChannel.EMAIL, email_to),
            _as_outcome(sms_result, NotificationChannel.SMS, sms_to),
        ]
        for outcome in outcomes:
            if not outcome.success:
                logger.error(
                    "Failed to send %s %s to %s: %s",
                    label, outcome.channel.value, outcome.recipient, outcome.error,
                )
        return outcomes
