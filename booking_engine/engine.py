"""
Engine wiring — builds an orchestrator with all of its collaborators.

Every collaborator can be swapped (a real gateway, a database-backed
schedule, a fake timer in tests); anything left out gets the default
in-memory implementation.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from booking_engine.config import AppConfig, settings
from booking_engine.notifications.alert_dispatcher import AlertDispatcher
from booking_engine.notifications.follow_ups import FollowUpScheduler
from booking_engine.notifications.gateway import LoggingNotificationGateway, NotificationGateway
from booking_engine.scheduling.alternatives import AlternativeSlotFinder
from booking_engine.scheduling.availability import AvailabilityFinder
from booking_engine.scheduling.orchestrator import SchedulingOrchestrator
from booking_engine.scheduling.selector import WorkerSelector
from booking_engine.scheduling.validator import BookingValidator
from booking_engine.schemas.booking_schema import Worker
from booking_engine.tools.clock import AsyncioTimerService, TimerService
from booking_engine.tools.distance import DistanceProvider, ZoneDistanceProvider
from booking_engine.tools.records import AlertLog, EmergencyBookingStore
from booking_engine.tools.schedule import InMemoryScheduleRepository, ScheduleRepository, WorkerLocks
from booking_engine.tools.workers import InMemoryWorkerDirectory, WorkerDirectory

logger = logging.getLogger(__name__)


@dataclass
class BookingEngine:
    """The orchestrator plus the stores callers may want to inspect."""
    orchestrator: SchedulingOrchestrator
    directory: WorkerDirectory
    schedule: ScheduleRepository
    dispatcher: AlertDispatcher
    follow_ups: FollowUpScheduler
    timer: TimerService


def build_engine(
    config: Optional[AppConfig] = None,
    workers: Optional[Iterable[Worker]] = None,
    directory: Optional[WorkerDirectory] = None,
    schedule: Optional[ScheduleRepository] = None,
    gateway: Optional[NotificationGateway] = None,
    timer: Optional[TimerService] = None,
    distance: Optional[DistanceProvider] = None,
) -> BookingEngine:
    """Wire a complete engine. ``workers`` seeds the default directory."""
    config = config or settings
    rules = config.scheduling

    directory = directory or InMemoryWorkerDirectory(workers)
    schedule = schedule or InMemoryScheduleRepository()
    gateway = gateway or LoggingNotificationGateway()
    timer = timer or AsyncioTimerService()
    distance = distance or ZoneDistanceProvider()

    validator = BookingValidator(rules)
    finder = AvailabilityFinder(directory, schedule, distance, rules)
    selector = WorkerSelector(rules)
    dispatcher = AlertDispatcher(
        gateway, directory, config.notifications, AlertLog(config.notifications.alert_log_size)
    )
    follow_ups = FollowUpScheduler(gateway, timer, config.follow_ups, config.notifications)

    orchestrator = SchedulingOrchestrator(
        validator=validator,
        finder=finder,
        selector=selector,
        alternatives=AlternativeSlotFinder(validator, finder, selector, rules),
        dispatcher=dispatcher,
        follow_ups=follow_ups,
        schedule=schedule,
        timer=timer,
        locks=WorkerLocks(),
        emergency_store=EmergencyBookingStore(config.emergency_store_size),
    )
    logger.debug("Booking engine built with %s", type(gateway).__name__)
    return BookingEngine(
        orchestrator=orchestrator,
        directory=directory,
        schedule=schedule,
        dispatcher=dispatcher,
        follow_ups=follow_ups,
        timer=timer,
    )
