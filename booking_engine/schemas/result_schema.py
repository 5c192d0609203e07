"""Scheduling outcome returned to the caller of the orchestrator."""

from typing import Optional

from pydantic import BaseModel, Field

from booking_engine.errors import SchedulingErrorKind
from booking_engine.schemas.booking_schema import AlternativeSlot, AssignedBooking, Worker
from booking_engine.schemas.notification_schema import DispatchReport, FollowUpTask


class SchedulingResult(BaseModel):
    """Final outcome of one ``schedule_booking`` call."""

    success: bool
    booking_id: str
    state: str
    message: str = ""
    worker: Optional[Worker] = None
    booking: Optional[AssignedBooking] = None
    error_kind: Optional[SchedulingErrorKind] = None
    reason: Optional[str] = None
    alternatives: list[AlternativeSlot] = Field(default_factory=list)
    dispatch: Optional[DispatchReport] = None
    follow_ups: list[FollowUpTask] = Field(default_factory=list)
    warnings: list[SchedulingErrorKind] = Field(default_factory=list)
    state_trace: list[str] = Field(default_factory=list)
    emergency_saved: bool = False
