"""
Booking engine demo entry point.

Runs one booking request through the full scheduling pipeline against the
seeded worker roster. Notifications go to the log instead of a real
email/SMS provider, so no credentials are needed.

Usage:
    python main.py
    python main.py --service gutter-cleaning --date 2026-03-10 --time 09:00
    python main.py --scenario no-availability
"""

import argparse
import asyncio
from datetime import datetime, timedelta

from booking_engine.config import settings
from booking_engine.engine import build_engine
from booking_engine.schemas.booking_schema import BookingRequest, ScheduledInterval
from booking_engine.schemas.result_schema import SchedulingResult
from booking_engine.tools.services import get_all_services, match_service

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"


def _default_date() -> str:
    """Two days out, moved off weekends so the demo request validates."""
    day = datetime.now() + timedelta(days=2)
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day.strftime("%Y-%m-%d")


async def _fill_day(engine, requested_date: str) -> None:
    """Book every worker for the whole working day on the requested date."""
    rules = settings.scheduling
    day = datetime.strptime(requested_date, "%Y-%m-%d")
    start = datetime.combine(day.date(), datetime.strptime(rules.working_hours_start, "%H:%M").time())
    end = datetime.combine(day.date(), datetime.strptime(rules.working_hours_end, "%H:%M").time())
    for index, worker in enumerate(await engine.directory.list_workers()):
        engine.schedule.add(ScheduledInterval(
            worker_id=worker.id, start=start, end=end, booking_id=f"SEED-{index:03d}",
        ))


def _print_result(result: SchedulingResult) -> None:
    colour = GREEN if result.success else (YELLOW if result.alternatives else RED)
    print(f"\n{colour}{BOLD}[{result.state}]{RESET} {colour}{result.message}{RESET}")
    print(f"{DIM}  >> booking id:  {result.booking_id}{RESET}")
    print(f"{DIM}  >> state trace: {' -> '.join(result.state_trace)}{RESET}")

    if result.booking:
        booking = result.booking
        print(f"{DIM}  >> worker:      {booking.worker.name} ({booking.worker.id}){RESET}")
        print(f"{DIM}  >> window:      {booking.start:%Y-%m-%d %H:%M} - {booking.end:%H:%M}{RESET}")
    if result.dispatch:
        print(f"{DIM}  >> dispatch:    {result.dispatch.status} "
              f"({result.dispatch.workers_notified} worker(s) alerted){RESET}")
    for task in result.follow_ups:
        print(f"{DIM}  >> follow-up:   {task.kind.value} at {task.fire_at:%Y-%m-%d %H:%M}{RESET}")
    for slot in result.alternatives:
        print(f"{DIM}  >> alternative: {slot.day_name} {slot.date} {slot.time} "
              f"with {slot.worker_name}{RESET}")
    for warning in result.warnings:
        print(f"{YELLOW}  !! {warning.value}{RESET}")
    if result.reason and not result.success:
        print(f"{DIM}  >> reason:      {result.reason}{RESET}")


async def _run(engine, request: BookingRequest, fill_day: bool) -> SchedulingResult:
    if fill_day:
        await _fill_day(engine, request.requested_date)
    result = await engine.orchestrator.schedule_booking(request)
    # Timers only live as long as this process; disarm them before exiting.
    if result.success:
        engine.orchestrator.cancel_follow_ups(result.booking_id)
    return result


def main() -> None:
    services = [s["id"] for s in get_all_services()]
    parser = argparse.ArgumentParser(description="Booking engine demo")
    parser.add_argument("--service", default="house-washing",
                        help=f"Service id or free text ({', '.join(services)})")
    parser.add_argument("--date", default=None, help="Requested date, YYYY-MM-DD")
    parser.add_argument("--time", default="10:00", help="Requested start time, HH:MM")
    parser.add_argument("--address", default="12 Oakwood Drive, North Hills")
    parser.add_argument(
        "--scenario",
        choices=["booking", "no-availability"],
        default="booking",
        help="no-availability books every worker for the day first",
    )
    args = parser.parse_args()

    service_type = match_service(args.service)
    if service_type is None:
        parser.error(f"Unknown service '{args.service}'. Available: {', '.join(services)}")

    request = BookingRequest(
        customer_name="Jane Doe",
        customer_email="jane.doe@example.com",
        customer_phone="(555) 010-4477",
        address=args.address,
        service_type=service_type,
        requested_date=args.date or _default_date(),
        requested_time=args.time,
        instructions="Side gate code 4321",
    )

    engine = build_engine()
    result = asyncio.run(_run(engine, request, args.scenario == "no-availability"))
    _print_result(result)


if __name__ == "__main__":
    main()
