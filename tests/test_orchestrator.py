"""End-to-end tests for the scheduling orchestrator."""

import asyncio
import re
from datetime import date, datetime

import pytest

from booking_engine.config import AppConfig
from booking_engine.engine import build_engine
from booking_engine.errors import SchedulingErrorKind
from booking_engine.logging_context import NO_BOOKING_ID, get_booking_id
from booking_engine.schemas.booking_schema import ScheduledInterval
from booking_engine.tools.distance import ZoneDistanceProvider
from booking_engine.tools.schedule import InMemoryScheduleRepository
from booking_engine.tools.workers import WorkerDirectory
from tests.conftest import ManualTimerService, RecordingGateway, make_request

CUSTOMER_EMAIL = "jane.doe@example.com"


class YieldingScheduleRepository(InMemoryScheduleRepository):
    """Yields to the event loop on every read so concurrent requests interleave."""

    async def get_intervals_for_worker_on_date(self, worker_id: str, day: date):
        await asyncio.sleep(0)
        return await super().get_intervals_for_worker_on_date(worker_id, day)


class BrokenDirectory(WorkerDirectory):
    async def find_workers_by_capability_and_zone(self, service_type, address):
        raise RuntimeError("directory offline")

    async def get_worker(self, worker_id):
        return None

    async def list_workers(self):
        return []


def _block_day(schedule, worker_id: str, day: str = "2025-12-10"):
    schedule.add(ScheduledInterval(
        worker_id=worker_id,
        start=datetime.strptime(f"{day} 07:00", "%Y-%m-%d %H:%M"),
        end=datetime.strptime(f"{day} 19:00", "%Y-%m-%d %H:%M"),
        booking_id=f"SEED-{worker_id}",
    ))


def _engine(**overrides):
    parts = {
        "config": AppConfig(),
        "schedule": InMemoryScheduleRepository(),
        "gateway": RecordingGateway(),
        "timer": ManualTimerService(),
        "distance": ZoneDistanceProvider(),
    }
    parts.update(overrides)
    return build_engine(**parts)


class TestSuccessfulBooking:
    @pytest.mark.asyncio
    async def test_best_worker_assigned_and_committed(self, engine, schedule):
        result = await engine.orchestrator.schedule_booking(make_request())

        assert result.success
        assert re.fullmatch(r"BK-[0-9A-F]{8}", result.booking_id)
        assert result.state == "follow_up_scheduled"
        assert result.worker.id == "W-001"
        assert result.booking.start == datetime(2025, 12, 10, 10, 0)
        assert result.booking.end == datetime(2025, 12, 10, 13, 0)
        assert [i.booking_id for i in schedule.all_intervals()] == [result.booking_id]
        assert result.warnings == []

    @pytest.mark.asyncio
    async def test_state_trace(self, engine):
        result = await engine.orchestrator.schedule_booking(make_request())
        assert result.state_trace == [
            "received", "validating", "finding_workers", "assigning",
            "notifying", "follow_up_scheduled",
        ]

    @pytest.mark.asyncio
    async def test_notifications_sent(self, engine, gateway):
        result = await engine.orchestrator.schedule_booking(make_request())
        assert result.dispatch.status == "sent"
        assert result.dispatch.workers_notified == 2
        assert gateway.subjects_to(CUSTOMER_EMAIL) == [
            "Booking Confirmed: House Washing on 2025-12-10"
        ]
        assert gateway.subjects_to("mike@gohampro.com")[0].startswith("New job assigned")

    @pytest.mark.asyncio
    async def test_follow_ups_armed(self, engine, timer):
        result = await engine.orchestrator.schedule_booking(make_request())
        assert len(result.follow_ups) == 4
        assert len(timer.pending) == 4

    @pytest.mark.asyncio
    async def test_cancel_hook_disarms_follow_ups(self, engine, timer):
        result = await engine.orchestrator.schedule_booking(make_request())
        assert engine.orchestrator.cancel_follow_ups(result.booking_id) == 4
        assert timer.pending == []

    @pytest.mark.asyncio
    async def test_booking_id_tags_the_pipeline_then_resets(self, engine, monkeypatch):
        seen = []
        register = engine.follow_ups.schedule_follow_ups

        def recording_register(booking):
            seen.append(get_booking_id())
            return register(booking)

        monkeypatch.setattr(engine.follow_ups, "schedule_follow_ups", recording_register)
        result = await engine.orchestrator.schedule_booking(make_request())

        assert seen == [result.booking_id]
        assert get_booking_id() == NO_BOOKING_ID

    @pytest.mark.asyncio
    async def test_unpadded_date_is_booked(self, engine):
        result = await engine.orchestrator.schedule_booking(make_request(requested_date="2025-12-9"))
        assert result.success
        assert result.booking.start == datetime(2025, 12, 9, 10, 0)

    @pytest.mark.asyncio
    async def test_second_booking_goes_to_next_worker(self, engine, schedule):
        first = await engine.orchestrator.schedule_booking(make_request())
        second = await engine.orchestrator.schedule_booking(make_request())
        assert first.worker.id == "W-001"
        assert second.worker.id == "W-003"
        assert len(schedule.all_intervals()) == 2


class TestValidationRejection:
    @pytest.mark.asyncio
    async def test_too_soon_has_no_side_effects(self, engine, gateway, schedule, timer):
        result = await engine.orchestrator.schedule_booking(
            make_request(requested_date="2025-12-08", requested_time="11:00")
        )
        assert not result.success
        assert result.error_kind == SchedulingErrorKind.TOO_SOON
        assert result.reason == "too_soon"
        assert result.state == "failed"
        assert result.state_trace == ["received", "validating", "failed"]
        assert gateway.emails == [] and gateway.sms == []
        assert schedule.all_intervals() == []
        assert timer.armed == []

    @pytest.mark.asyncio
    async def test_holiday_rejected(self, engine):
        result = await engine.orchestrator.schedule_booking(
            make_request(requested_date="2025-12-25")
        )
        assert result.error_kind == SchedulingErrorKind.HOLIDAY_NOT_ALLOWED
        assert result.message == "Holiday bookings are not available"


class TestNoAvailability:
    @pytest.mark.asyncio
    async def test_returns_alternatives_when_day_is_full(self, engine, schedule, gateway, timer):
        _block_day(schedule, "W-001")
        _block_day(schedule, "W-003")

        result = await engine.orchestrator.schedule_booking(make_request())

        assert not result.success
        assert result.reason == "no_availability"
        assert result.error_kind == SchedulingErrorKind.NO_AVAILABILITY
        assert result.state == "no_availability"
        assert result.alternatives
        assert (result.alternatives[0].date, result.alternatives[0].time) == ("2025-12-11", "07:00")
        assert result.alternatives[0].worker_id == "W-001"
        assert len(schedule.all_intervals()) == 2
        assert timer.armed == []

    @pytest.mark.asyncio
    async def test_customer_and_admin_told(self, engine, schedule, gateway, notification_config):
        _block_day(schedule, "W-001")
        _block_day(schedule, "W-003")

        await engine.orchestrator.schedule_booking(make_request())

        assert gateway.subjects_to(CUSTOMER_EMAIL)[0].startswith("Alternative Time Slots Available")
        assert gateway.subjects_to(notification_config.admin_email) == [
            "No availability: house-washing - Jane Doe"
        ]

    @pytest.mark.asyncio
    async def test_unserved_service_escalates_without_alternatives(
        self, engine, gateway, notification_config
    ):
        result = await engine.orchestrator.schedule_booking(
            make_request(service_type="deck-cleaning")
        )
        assert result.reason == "no_availability"
        assert result.alternatives == []
        admin_body = gateway.emails_to(notification_config.admin_email)[0][2]
        assert "None found" in admin_body


class TestConcurrentBookings:
    @pytest.mark.asyncio
    async def test_overlapping_requests_never_double_book(self):
        schedule = YieldingScheduleRepository()
        engine = _engine(schedule=schedule)

        results = await asyncio.gather(*(
            engine.orchestrator.schedule_booking(make_request()) for _ in range(3)
        ))

        booked = [r for r in results if r.success]
        assert sorted(r.worker.id for r in booked) == ["W-001", "W-003"]
        assert [r.reason for r in results if not r.success] == ["no_availability"]

        intervals = schedule.all_intervals()
        assert len(intervals) == 2
        assert len({i.worker_id for i in intervals}) == 2

    @pytest.mark.asyncio
    async def test_lost_race_falls_through_to_next_candidate(self):
        schedule = YieldingScheduleRepository()
        engine = _engine(schedule=schedule)

        first, second = await asyncio.gather(
            engine.orchestrator.schedule_booking(make_request()),
            engine.orchestrator.schedule_booking(make_request()),
        )
        assert first.success and second.success
        assert {first.worker.id, second.worker.id} == {"W-001", "W-003"}


class TestUnexpectedFailure:
    @pytest.mark.asyncio
    async def test_failure_alerts_admin_and_saves_request(self, notification_config):
        gateway = RecordingGateway()
        engine = _engine(directory=BrokenDirectory(), gateway=gateway)
        request = make_request()

        result = await engine.orchestrator.schedule_booking(request)

        assert not result.success
        assert result.error_kind == SchedulingErrorKind.SCHEDULING_FAILURE
        assert result.reason == "scheduling_failure"
        assert result.state == "failed"
        assert result.state_trace == ["received", "validating", "finding_workers", "failed"]
        assert result.message == "directory offline"
        assert result.emergency_saved

        saved = engine.orchestrator.emergency_store.get(result.booking_id)
        assert saved.status == "emergency"
        assert saved.request == request
        assert gateway.subjects_to(notification_config.admin_email) == [
            "Booking Engine Error - Immediate Attention Required"
        ]

    @pytest.mark.asyncio
    async def test_failure_after_assignment_keeps_booking_details(
        self, engine, gateway, notification_config, monkeypatch
    ):
        def explode(booking):
            raise RuntimeError("timer service down")

        monkeypatch.setattr(engine.follow_ups, "schedule_follow_ups", explode)
        result = await engine.orchestrator.schedule_booking(make_request())

        assert not result.success
        assert result.state_trace[-2:] == ["notifying", "failed"]
        assert result.booking is not None
        assert result.emergency_saved
        assert "Booking Engine Error - Immediate Attention Required" in gateway.subjects_to(
            notification_config.admin_email
        )


class TestDegradedNotifications:
    @pytest.mark.asyncio
    async def test_dispatch_crash_keeps_booking_confirmed(self, engine, schedule, monkeypatch):
        async def crash(booking):
            raise RuntimeError("template store unavailable")

        monkeypatch.setattr(engine.dispatcher, "dispatch_booking_alert", crash)
        result = await engine.orchestrator.schedule_booking(make_request())

        assert result.success
        assert result.state == "follow_up_scheduled"
        assert result.dispatch is None
        assert result.warnings == [SchedulingErrorKind.DISPATCH_PARTIAL_FAILURE]
        assert len(schedule.all_intervals()) == 1
        assert len(result.follow_ups) == 4

    @pytest.mark.asyncio
    async def test_failed_admin_alert_is_a_warning(self, notification_config):
        gateway = RecordingGateway(raise_email_to={notification_config.admin_email})
        engine = _engine(gateway=gateway)

        result = await engine.orchestrator.schedule_booking(make_request())

        assert result.success
        assert result.dispatch.status == "partial_failure"
        assert result.warnings == [SchedulingErrorKind.DISPATCH_PARTIAL_FAILURE]

    @pytest.mark.asyncio
    async def test_failed_customer_confirmation_is_a_warning(self):
        gateway = RecordingGateway(fail_sms_to={"5550104477"})
        engine = _engine(gateway=gateway)

        result = await engine.orchestrator.schedule_booking(make_request())

        assert result.success
        assert result.dispatch.status == "sent"
        assert result.warnings == [SchedulingErrorKind.DISPATCH_PARTIAL_FAILURE]
