"""Notification outcome and follow-up task models."""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"

    @property
    def uses_email(self) -> bool:
        return self in (NotificationChannel.EMAIL, NotificationChannel.BOTH)

    @property
    def uses_sms(self) -> bool:
        return self in (NotificationChannel.SMS, NotificationChannel.BOTH)


class FollowUpKind(str, Enum):
    REMINDER_24H = "reminder-24h"
    REMINDER_2H = "reminder-2h"
    SATISFACTION_SURVEY = "satisfaction-survey"
    REVIEW_REQUEST = "review-request"


class FollowUpTask(BaseModel):
    """A one-shot customer message armed for a future instant."""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    kind: FollowUpKind
    fire_at: datetime
    channel: NotificationChannel


class SendOutcome(BaseModel):
    """Result of a single email or SMS send attempt."""

    channel: NotificationChannel
    recipient: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class WorkerAlertOutcome(BaseModel):
    """Per-worker result of a booking alert fan-out."""

    worker_id: str
    worker_name: str
    status: Literal["success", "failed"]
    assigned: bool = False
    email: Optional[SendOutcome] = None
    sms: Optional[SendOutcome] = None
    error: Optional[str] = None


class DispatchReport(BaseModel):
    """Aggregate outcome of one booking's alert dispatch."""

    booking_id: str
    workers_notified: int = 0
    worker_results: list[WorkerAlertOutcome] = Field(default_factory=list)
    admin_result: Optional[SendOutcome] = None
    no_coverage: bool = False

    @property
    def failed_workers(self) -> list[WorkerAlertOutcome]:
        return [r for r in self.worker_results if r.status == "failed"]

    @property
    def partial_failures(self) -> int:
        return len(self.failed_workers)

    @property
    def admin_failed(self) -> bool:
        return self.admin_result is not None and not self.admin_result.success

    @property
    def status(self) -> str:
        if self.no_coverage:
            return "no_coverage"
        if self.worker_results and self.partial_failures == len(self.worker_results):
            return "failed"
        if self.partial_failures or self.admin_failed:
            return "partial_failure"
        return "sent"


class AlertLogEntry(BaseModel):
    """Audit record of a dispatched booking alert."""

    timestamp: datetime
    booking_id: str
    service_type: str
    customer_name: str
    workers_notified: list[str] = Field(default_factory=list)
    status: str
