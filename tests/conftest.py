"""Shared test fixtures, builders and test doubles."""

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Optional

import pytest

from booking_engine.config import AppConfig, FollowUpConfig, NotificationConfig, SchedulingConfig
from booking_engine.engine import build_engine
from booking_engine.errors import NotificationError
from booking_engine.notifications.gateway import NotificationGateway
from booking_engine.schemas.booking_schema import AssignedBooking, BookingRequest, Worker, Zone
from booking_engine.schemas.notification_schema import NotificationChannel, SendOutcome
from booking_engine.tools.clock import TimerHandle, TimerService
from booking_engine.tools.distance import DistanceProvider, ZoneDistanceProvider
from booking_engine.tools.schedule import InMemoryScheduleRepository
from booking_engine.tools.services import get_service_duration
from booking_engine.tools.workers import DEFAULT_WORKERS, InMemoryWorkerDirectory

# Monday morning; 2025-12-10 is the Wednesday used by most requests.
FIXED_NOW = datetime(2025, 12, 8, 9, 0)


class RecordingGateway(NotificationGateway):
    """Records every delivered message; chosen recipients fail or raise."""

    def __init__(
        self,
        fail_email_to: Iterable[str] = (),
        fail_sms_to: Iterable[str] = (),
        raise_email_to: Iterable[str] = (),
        raise_sms_to: Iterable[str] = (),
    ) -> None:
        self.fail_email_to = set(fail_email_to)
        self.fail_sms_to = set(fail_sms_to)
        self.raise_email_to = set(raise_email_to)
        self.raise_sms_to = set(raise_sms_to)
        self.emails: list[tuple[str, str, str]] = []
        self.sms: list[tuple[str, str]] = []

    async def send_email(self, to: str, subject: str, body: str) -> SendOutcome:
        await asyncio.sleep(0)
        if to in self.raise_email_to:
            raise NotificationError(f"SMTP refused {to}")
        if to in self.fail_email_to:
            return SendOutcome(
                channel=NotificationChannel.EMAIL, recipient=to, success=False, error="bounced"
            )
        self.emails.append((to, subject, body))
        return SendOutcome(
            channel=NotificationChannel.EMAIL,
            recipient=to,
            success=True,
            message_id=f"msg_{len(self.emails)}",
        )

    async def send_sms(self, to: str, body: str) -> SendOutcome:
        await asyncio.sleep(0)
        if to in self.raise_sms_to:
            raise NotificationError(f"SMS carrier rejected {to}")
        if to in self.fail_sms_to:
            return SendOutcome(
                channel=NotificationChannel.SMS, recipient=to, success=False, error="undeliverable"
            )
        self.sms.append((to, body))
        return SendOutcome(
            channel=NotificationChannel.SMS,
            recipient=to,
            success=True,
            message_id=f"sms_{len(self.sms)}",
        )

    def emails_to(self, to: str) -> list[tuple[str, str, str]]:
        return [e for e in self.emails if e[0] == to]

    def sms_to(self, to: str) -> list[tuple[str, str]]:
        return [s for s in self.sms if s[0] == to]

    def subjects_to(self, to: str) -> list[str]:
        return [subject for _, subject, _ in self.emails_to(to)]


class ManualTimerService(TimerService):
    """Fixed clock; armed callbacks run only when the test advances time."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.current = now
        self.armed: list[tuple[TimerHandle, object]] = []

    def now(self) -> datetime:
        return self.current

    def schedule_at(self, instant: datetime, callback) -> TimerHandle:
        handle = TimerHandle(instant)
        self.armed.append((handle, callback))
        return handle

    @property
    def pending(self) -> list[TimerHandle]:
        return [handle for handle, _ in self.armed if handle.pending]

    async def advance_to(self, instant: datetime) -> int:
        """Move the clock and run every pending callback now due, oldest first."""
        self.current = instant
        due = sorted(
            ((h, cb) for h, cb in self.armed if h.pending and h.when <= instant),
            key=lambda pair: pair[0].when,
        )
        for handle, callback in due:
            handle.fired = True
            await callback()
        return len(due)


class FixedDistanceProvider(DistanceProvider):
    """Per-worker distances set by the test; everyone else gets the default."""

    def __init__(self, miles: Optional[dict[str, float]] = None, default: float = 10.0) -> None:
        self.miles = miles or {}
        self.default = default

    def distance_miles(self, worker: Worker, address: str) -> float:
        return self.miles.get(worker.id, self.default)


def make_worker(
    worker_id: str = "W-100",
    name: str = "Test Worker",
    zone: Zone = Zone.CENTRAL,
    services: tuple[str, ...] = ("house-washing",),
    experience_years: float = 3,
    rating: Optional[float] = 4.5,
    is_active: bool = True,
) -> Worker:
    slug = worker_id.lower().replace("-", "")
    digits = "".join(ch for ch in worker_id if ch.isdigit())
    return Worker(
        id=worker_id,
        name=name,
        email=f"{slug}@example.com",
        phone=f"+1666{digits.rjust(4, '0')}",
        zone=zone,
        services=services,
        experience_years=experience_years,
        rating=rating,
        is_active=is_active,
    )


def make_request(**overrides) -> BookingRequest:
    fields = {
        "customer_name": "Jane Doe",
        "customer_email": "jane.doe@example.com",
        "customer_phone": "(555) 010-4477",
        "address": "12 Oakwood Drive, North Hills",
        "service_type": "house-washing",
        "requested_date": "2025-12-10",
        "requested_time": "10:00",
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def make_booking(
    request: Optional[BookingRequest] = None,
    worker: Optional[Worker] = None,
    booking_id: str = "BK-TEST01",
) -> AssignedBooking:
    request = request or make_request()
    worker = worker or DEFAULT_WORKERS[0]
    start, end = request.service_window(get_service_duration(request.service_type))
    return AssignedBooking(
        booking_id=booking_id,
        request=request,
        worker=worker,
        start=start,
        end=end,
        created_at=datetime(2025, 12, 8, 9, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def rules():
    return SchedulingConfig()


@pytest.fixture
def notification_config():
    return NotificationConfig()


@pytest.fixture
def follow_up_config():
    return FollowUpConfig()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def timer():
    return ManualTimerService()


@pytest.fixture
def directory():
    return InMemoryWorkerDirectory(DEFAULT_WORKERS)


@pytest.fixture
def schedule():
    return InMemoryScheduleRepository()


@pytest.fixture
def engine(directory, schedule, gateway, timer):
    return build_engine(
        config=AppConfig(),
        directory=directory,
        schedule=schedule,
        gateway=gateway,
        timer=timer,
        distance=ZoneDistanceProvider(),
    )
