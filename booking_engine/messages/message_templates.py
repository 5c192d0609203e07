"""Plain-text email and SMS bodies for every outgoing notification."""

from datetime import date
from typing import Optional

from booking_engine.config import NotificationConfig
from booking_engine.schemas.booking_schema import (
    AlternativeSlot,
    AssignedBooking,
    BookingRequest,
    Worker,
)
from booking_engine.tools.services import get_service_name

EmailMessage = tuple[str, str]


def _format_day(iso_date: str) -> str:
    return date.fromisoformat(iso_date).strftime("%A, %B %d, %Y")


def _request_lines(request: BookingRequest) -> list[str]:
    lines = [
        f"  Service: {get_service_name(request.service_type)}",
        f"  Date: {_format_day(request.requested_date)} at {request.requested_time}",
        f"  Customer: {request.customer_name}",
        f"  Phone: {request.customer_phone}",
        f"  Email: {request.customer_email}",
        f"  Address: {request.address}",
    ]
    if request.instructions:
        lines.append(f"  Instructions: {request.instructions}")
    return lines


# ---------------------------------------------------------------------- #
# Worker and admin alerts
# ---------------------------------------------------------------------- #

def build_worker_alert_email(
    worker: Worker, booking: AssignedBooking, assigned: bool, cfg: NotificationConfig
) -> EmailMessage:
    request = booking.request
    service = get_service_name(request.service_type)
    if assigned:
        subject = f"New job assigned: {service} on {request.requested_date}"
        opening = f"Hi {worker.name}, you have been assigned a new {service} booking."
    else:
        subject = f"New {service} booking in your area"
        opening = (
            f"Hi {worker.name}, a new {service} booking was placed in your area. "
            "It is assigned to a teammate; this is for awareness and backup."
        )
    lines = [opening, "", f"Booking {booking.booking_id}:", *_request_lines(request)]
    lines += [
        f"  Window: {booking.start:%H:%M} - {booking.end:%H:%M}",
        "",
        "Please respond within 15 minutes and call the customer to confirm.",
        f"- {cfg.company_name}",
    ]
    return subject, "\n".join(lines)


def build_worker_alert_sms(
    worker: Worker, booking: AssignedBooking, assigned: bool, cfg: NotificationConfig
) -> str:
    request = booking.request
    headline = "NEW JOB ASSIGNED" if assigned else "NEW JOB IN YOUR AREA"
    return (
        f"{headline}! Hi {worker.name}, {request.service_type} for {request.customer_name} "
        f"on {request.requested_date} at {request.requested_time}. "
        f"Location: {request.address}. Phone: {request.customer_phone}. - {cfg.company_name}"
    )


def build_admin_summary_email(
    booking: AssignedBooking, eligible: list[Worker], cfg: NotificationConfig
) -> EmailMessage:
    request = booking.request
    subject = f"New Booking: {request.service_type} - {request.customer_name}"
    lines = [f"Booking {booking.booking_id} confirmed.", *_request_lines(request)]
    lines.append(f"  Assigned worker: {booking.worker.name} ({booking.worker.id})")
    lines.append(f"  Workers alerted: {', '.join(w.name for w in eligible) or 'none'}")
    return subject, "\n".join(lines)


def build_no_coverage_email(booking: AssignedBooking, cfg: NotificationConfig) -> EmailMessage:
    request = booking.request
    subject = "URGENT: No Workers Available for Booking"
    lines = [
        f"No eligible workers cover booking {booking.booking_id}.",
        "Issue: no active worker matches this service and location.",
        *_request_lines(request),
        "",
        "Manual assignment needed as soon as possible.",
    ]
    return subject, "\n".join(lines)


def build_no_coverage_sms(booking: AssignedBooking, cfg: NotificationConfig) -> str:
    request = booking.request
    return (
        f"URGENT: No workers available for {request.service_type} booking "
        f"{booking.booking_id}. Customer: {request.customer_name} ({request.customer_phone}). "
        "Manual assignment needed ASAP."
    )


def build_error_alert_email(
    booking_id: str, request: Optional[BookingRequest], error: str, cfg: NotificationConfig
) -> EmailMessage:
    subject = "Booking Engine Error - Immediate Attention Required"
    lines = [f"Processing failed for booking {booking_id}.", f"Error: {error}"]
    if request is not None:
        lines += ["", *_request_lines(request)]
    return subject, "\n".join(lines)


def build_error_alert_sms(
    booking_id: str, request: Optional[BookingRequest], error: str, cfg: NotificationConfig
) -> str:
    who = f"{request.customer_name} - {request.service_type}" if request else "unknown booking"
    return (
        f"BOOKING ENGINE ERROR: failed to process booking {booking_id} ({who}). "
        "Check email immediately."
    )


def build_no_availability_admin_email(
    booking_id: str,
    request: BookingRequest,
    alternatives: list[AlternativeSlot],
    cfg: NotificationConfig,
) -> EmailMessage:
    subject = f"No availability: {request.service_type} - {request.customer_name}"
    lines = [
        f"No worker is free for booking request {booking_id}.",
        *_request_lines(request),
        "",
        f"Alternatives offered to the customer: {len(alternatives)}",
    ]
    lines += [f"  {alt.date} {alt.time} with {alt.worker_name}" for alt in alternatives]
    if not alternatives:
        lines.append("  None found; follow up with the customer directly.")
    return subject, "\n".join(lines)


# ---------------------------------------------------------------------- #
# Customer messages
# ---------------------------------------------------------------------- #

def build_customer_confirmation_email(
    booking: AssignedBooking, cfg: NotificationConfig
) -> EmailMessage:
    request = booking.request
    service = get_service_name(request.service_type)
    subject = f"Booking Confirmed: {service} on {request.requested_date}"
    lines = [
        f"Hi {request.customer_name},",
        "",
        f"Your {service} is confirmed for {_format_day(request.requested_date)} "
        f"at {request.requested_time}.",
        f"Your technician: {booking.worker.name}",
        f"Reference: {booking.booking_id}",
        "",
        f"Questions or changes? Call us at {cfg.support_phone}.",
        f"- {cfg.company_name}",
    ]
    return subject, "\n".join(lines)


def build_customer_confirmation_sms(booking: AssignedBooking, cfg: NotificationConfig) -> str:
    request = booking.request
    return (
        f"Hi {request.customer_name}, your {request.service_type} on {request.requested_date} "
        f"at {request.requested_time} with {booking.worker.name} is confirmed. "
        f"Ref {booking.booking_id}. - {cfg.company_name}"
    )


def build_alternatives_email(
    request: BookingRequest, alternatives: list[AlternativeSlot], cfg: NotificationConfig
) -> EmailMessage:
    subject = f"Alternative Time Slots Available - {cfg.company_name}"
    lines = [
        f"Hi {request.customer_name},",
        "",
        f"Unfortunately, your requested time slot ({request.requested_date} at "
        f"{request.requested_time}) is not available.",
    ]
    if alternatives:
        lines.append("However, we found these alternatives:")
        for alt in alternatives:
            rating = f", {alt.worker_rating:.1f} rating" if alt.worker_rating is not None else ""
            lines.append(f"  {alt.day_name} {alt.date} at {alt.time} with {alt.worker_name}{rating}")
    else:
        lines.append("We could not find an open slot in the coming week.")
    lines += [
        "",
        f"Reply to this email with your preferred time or call us at {cfg.support_phone}.",
        f"- {cfg.company_name}",
    ]
    return subject, "\n".join(lines)


def build_alternatives_sms(
    request: BookingRequest, alternatives: list[AlternativeSlot], cfg: NotificationConfig
) -> str:
    return (
        f"Hi {request.customer_name}, your requested time isn't available. "
        f"We found {len(alternatives)} alternative slots. Check your email for details "
        f"or call {cfg.support_phone}."
    )


# ---------------------------------------------------------------------- #
# Follow-up sequence
# ---------------------------------------------------------------------- #

def build_reminder_24h_email(booking: AssignedBooking, cfg: NotificationConfig) -> EmailMessage:
    request = booking.request
    subject = f"Service Reminder - Tomorrow at {request.requested_time}"
    lines = [
        f"Hi {request.customer_name},",
        "",
        f"This is a friendly reminder that your {get_service_name(request.service_type)} "
        "is scheduled for tomorrow:",
        f"  Date: {_format_day(request.requested_date)}",
        f"  Time: {request.requested_time}",
        f"  Worker: {booking.worker.name}",
        f"  Contact: {booking.worker.phone}",
        "",
        "Please ensure someone is available at the property. "
        f"If you need to reschedule, call us at {cfg.support_phone}.",
    ]
    return subject, "\n".join(lines)


def build_reminder_24h_sms(booking: AssignedBooking, cfg: NotificationConfig) -> str:
    request = booking.request
    return (
        f"Reminder: {request.service_type} service tomorrow at {request.requested_time} "
        f"with {booking.worker.name}. Questions? Call {cfg.support_phone}"
    )


def build_reminder_2h_sms(booking: AssignedBooking, cfg: NotificationConfig) -> str:
    request = booking.request
    return (
        f"Final reminder: your {request.service_type} service with {booking.worker.name} "
        f"is in 2 hours. We'll be there at {request.requested_time}! - {cfg.company_name}"
    )


def build_survey_email(booking: AssignedBooking, cfg: NotificationConfig) -> EmailMessage:
    request = booking.request
    subject = f"How was your {cfg.company_name} service?"
    lines = [
        f"Hi {request.customer_name},",
        "",
        f"Thank you for choosing {cfg.company_name}! We hope you're satisfied with the "
        f"{get_service_name(request.service_type)} provided by {booking.worker.name}.",
        "",
        f"Rate your experience by replying to {cfg.feedback_email} with "
        f"'Excellent', 'Good' or 'Needs Improvement' and reference {booking.booking_id}.",
    ]
    return subject, "\n".join(lines)


def build_review_email(booking: AssignedBooking, cfg: NotificationConfig) -> EmailMessage:
    request = booking.request
    subject = f"Share your {cfg.company_name} experience + 10% off next service!"
    lines = [
        f"Hi {request.customer_name},",
        "",
        f"If you were satisfied with {booking.worker.name}'s service, would you mind "
        "sharing your experience with others?",
        f"  Leave a review: {cfg.review_url}",
        "",
        "As a thank you, mention this email for 10% off your next service!",
    ]
    return subject, "\n".join(lines)


def build_review_sms(booking: AssignedBooking, cfg: NotificationConfig) -> str:
    return (
        f"Thanks for choosing {cfg.company_name}! If you loved {booking.worker.name}'s service, "
        f"please leave us a review for 10% off next time: {cfg.review_url}"
    )
