"""Tests for the multi-channel alert dispatcher."""

import pytest

from booking_engine.notifications.alert_dispatcher import AlertDispatcher
from booking_engine.schemas.booking_schema import AlternativeSlot
from booking_engine.tools.records import AlertLog
from booking_engine.tools.workers import InMemoryWorkerDirectory, WorkerDirectory
from tests.conftest import RecordingGateway, make_booking, make_request, make_worker

CREW = [
    make_worker("W-101", "Ana Ortiz"),
    make_worker("W-102", "Ben Kowalski"),
    make_worker("W-103", "Chloe Park"),
]


class BrokenDirectory(WorkerDirectory):
    async def find_workers_by_capability_and_zone(self, service_type, address):
        raise RuntimeError("directory offline")

    async def get_worker(self, worker_id):
        return None

    async def list_workers(self):
        return []


@pytest.fixture
def crew_directory():
    return InMemoryWorkerDirectory(CREW)


def _dispatcher(gateway, directory, notification_config, alert_log=None):
    return AlertDispatcher(gateway, directory, notification_config, alert_log)


class TestBookingAlert:
    @pytest.mark.asyncio
    async def test_every_eligible_worker_gets_both_channels(
        self, gateway, crew_directory, notification_config
    ):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))

        assert report.status == "sent"
        assert report.workers_notified == 3
        for worker in CREW:
            assert len(gateway.emails_to(worker.email)) == 1
            assert len(gateway.sms_to(worker.phone)) == 1

    @pytest.mark.asyncio
    async def test_assigned_worker_flagged(self, gateway, crew_directory, notification_config):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[1]))
        assigned = [r.worker_id for r in report.worker_results if r.assigned]
        assert assigned == ["W-102"]
        assert gateway.subjects_to(CREW[1].email)[0].startswith("New job assigned")

    @pytest.mark.asyncio
    async def test_admin_summary_sent(self, gateway, crew_directory, notification_config):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))
        assert gateway.subjects_to(notification_config.admin_email) == [
            "New Booking: house-washing - Jane Doe"
        ]

    @pytest.mark.asyncio
    async def test_one_throwing_email_is_a_partial_failure(
        self, crew_directory, notification_config
    ):
        gateway = RecordingGateway(raise_email_to={CREW[1].email})
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))

        assert report.partial_failures == 1
        assert report.status == "partial_failure"
        assert report.failed_workers[0].worker_id == "W-102"
        assert "SMTP refused" in report.failed_workers[0].error
        for worker in (CREW[0], CREW[2]):
            assert len(gateway.emails_to(worker.email)) == 1
            assert len(gateway.sms_to(worker.phone)) == 1
        # the failing worker's SMS is still attempted
        assert len(gateway.sms_to(CREW[1].phone)) == 1

    @pytest.mark.asyncio
    async def test_unsuccessful_outcome_counts_as_failure(
        self, crew_directory, notification_config
    ):
        gateway = RecordingGateway(fail_sms_to={CREW[2].phone})
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))
        assert [r.worker_id for r in report.failed_workers] == ["W-103"]
        assert report.failed_workers[0].email.success

    @pytest.mark.asyncio
    async def test_all_workers_failing_is_total_failure(
        self, crew_directory, notification_config
    ):
        gateway = RecordingGateway(raise_sms_to={w.phone for w in CREW})
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))
        assert report.status == "failed"

    @pytest.mark.asyncio
    async def test_admin_failure_does_not_block_workers(
        self, crew_directory, notification_config
    ):
        gateway = RecordingGateway(raise_email_to={notification_config.admin_email})
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        report = await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))
        assert report.admin_failed
        assert report.partial_failures == 0
        assert report.status == "partial_failure"

    @pytest.mark.asyncio
    async def test_dispatch_recorded_in_alert_log(
        self, gateway, crew_directory, notification_config
    ):
        log = AlertLog(max_entries=10)
        dispatcher = _dispatcher(gateway, crew_directory, notification_config, log)
        await dispatcher.dispatch_booking_alert(make_booking(worker=CREW[0]))
        entry = log.entries()[0]
        assert entry.booking_id == "BK-TEST01"
        assert entry.workers_notified == ["Ana Ortiz", "Ben Kowalski", "Chloe Park"]
        assert entry.status == "sent"


class TestNoCoverage:
    @pytest.mark.asyncio
    async def test_no_eligible_workers_alerts_admin_urgently(
        self, gateway, crew_directory, notification_config
    ):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        booking = make_booking(request=make_request(service_type="deck-cleaning"), worker=CREW[0])
        report = await dispatcher.dispatch_booking_alert(booking)

        assert report.no_coverage
        assert report.status == "no_coverage"
        assert report.worker_results == []
        assert gateway.subjects_to(notification_config.admin_email) == [
            "URGENT: No Workers Available for Booking"
        ]
        assert len(gateway.sms_to(notification_config.admin_phone)) == 1
        assert all(not gateway.emails_to(w.email) for w in CREW)
        assert dispatcher.alert_log.entries()[0].status == "no_coverage"


class TestErrorAlerts:
    @pytest.mark.asyncio
    async def test_unexpected_error_alerts_admin_then_propagates(
        self, gateway, notification_config
    ):
        dispatcher = _dispatcher(gateway, BrokenDirectory(), notification_config)
        with pytest.raises(RuntimeError, match="directory offline"):
            await dispatcher.dispatch_booking_alert(make_booking())
        assert gateway.subjects_to(notification_config.admin_email) == [
            "Booking Engine Error - Immediate Attention Required"
        ]
        assert len(gateway.sms_to(notification_config.admin_phone)) == 1

    @pytest.mark.asyncio
    async def test_error_alert_never_raises(self, crew_directory, notification_config):
        gateway = RecordingGateway(
            raise_email_to={notification_config.admin_email},
            raise_sms_to={notification_config.admin_phone},
        )
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        outcomes = await dispatcher.send_error_alert("BK-1", make_request(), RuntimeError("boom"))
        assert [o.success for o in outcomes] == [False, False]

    @pytest.mark.asyncio
    async def test_error_alert_without_request(self, gateway, crew_directory, notification_config):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        outcomes = await dispatcher.send_error_alert("BK-1", None, ValueError())
        assert all(o.success for o in outcomes)
        assert "ValueError" in gateway.emails_to(notification_config.admin_email)[0][2]


class TestCustomerMessages:
    @pytest.mark.asyncio
    async def test_confirmation_on_both_channels(self, gateway, crew_directory, notification_config):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        outcomes = await dispatcher.send_customer_confirmation(make_booking(worker=CREW[0]))
        assert all(o.success for o in outcomes)
        assert gateway.subjects_to("jane.doe@example.com") == [
            "Booking Confirmed: House Washing on 2025-12-10"
        ]
        assert len(gateway.sms_to("5550104477")) == 1

    @pytest.mark.asyncio
    async def test_alternatives_and_admin_escalation(
        self, gateway, crew_directory, notification_config
    ):
        dispatcher = _dispatcher(gateway, crew_directory, notification_config)
        request = make_request()
        slots = [AlternativeSlot(
            date="2025-12-11", time="07:00", day_name="Thursday",
            worker_id="W-101", worker_name="Ana Ortiz", worker_rating=4.5, score=36.0,
        )]
        await dispatcher.notify_customer_alternatives(request, slots)
        await dispatcher.alert_admin_no_availability("BK-1", request, slots)

        customer_email = gateway.emails_to("jane.doe@example.com")[0]
        assert customer_email[1].startswith("Alternative Time Slots Available")
        assert "07:00" in customer_email[2]
        assert gateway.subjects_to(notification_config.admin_email) == [
            "No availability: house-washing - Jane Doe"
        ]
