"""
Centralized configuration with environment variable overrides.

All business rules, notification contacts, and follow-up offsets are
configurable here. Nothing is hardcoded in scheduling or dispatch logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import date

from dotenv import load_dotenv

from booking_engine.utils import time_to_minutes

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_HOLIDAYS = ",".join(
    f"{year}-{month_day}"
    for year in (2024, 2025, 2026, 2027)
    for month_day in ("01-01", "07-04", "12-25")
)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a true/false flag from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _safe_date_list(env_var: str, default: str) -> frozenset[str]:
    """Parse a comma-separated list of ISO dates from an env var."""
    raw = os.getenv(env_var, default)
    dates = set()
    for item in (part.strip() for part in raw.split(",")):
        if not item:
            continue
        try:
            dates.add(date.fromisoformat(item).isoformat())
        except ValueError:
            raise ValueError(
                f"Invalid ISO date in {env_var}: {item!r}"
            ) from None
    return frozenset(dates)


@dataclass(frozen=True)
class SchedulingConfig:
    """Business time rules and search parameters."""

    min_advance_hours: float = _safe_float("MIN_ADVANCE_HOURS", "4")
    max_advance_days: float = _safe_float("MAX_ADVANCE_DAYS", "30")
    working_hours_start: str = os.getenv("WORKING_HOURS_START", "07:00")
    working_hours_end: str = os.getenv("WORKING_HOURS_END", "19:00")
    allow_weekends: bool = _safe_bool("ALLOW_WEEKENDS", "true")
    allow_holidays: bool = _safe_bool("ALLOW_HOLIDAYS", "false")
    holidays: frozenset[str] = _safe_date_list("HOLIDAYS", DEFAULT_HOLIDAYS)
    buffer_minutes: int = _safe_int("BUFFER_MINUTES", "30")
    max_daily_bookings: int = _safe_int("MAX_DAILY_BOOKINGS", "6")
    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "30")
    alternative_search_days: int = _safe_int("ALTERNATIVE_SEARCH_DAYS", "7")
    max_alternatives: int = _safe_int("MAX_ALTERNATIVES", "5")
    max_distance_miles: float = _safe_float("MAX_DISTANCE_MILES", "50")
    default_worker_rating: float = _safe_float("DEFAULT_WORKER_RATING", "4.0")


@dataclass(frozen=True)
class NotificationConfig:
    """Sender identity and admin contacts for outgoing messages."""

    company_name: str = os.getenv("COMPANY_NAME", "GO HAM PRO Services")
    admin_email: str = os.getenv("ADMIN_EMAIL", "admin@gohampro.com")
    admin_phone: str = os.getenv("ADMIN_PHONE", "+15550100")
    support_phone: str = os.getenv("SUPPORT_PHONE", "(555) 123-4567")
    feedback_email: str = os.getenv("FEEDBACK_EMAIL", "feedback@gohampro.com")
    review_url: str = os.getenv("REVIEW_URL", "https://google.com/business/reviews")
    alert_log_size: int = _safe_int("ALERT_LOG_SIZE", "100")


@dataclass(frozen=True)
class FollowUpConfig:
    """Offsets of the post-booking follow-up sequence, in hours."""

    reminder_24h_before_hours: float = _safe_float("REMINDER_24H_BEFORE_HOURS", "24")
    reminder_2h_before_hours: float = _safe_float("REMINDER_2H_BEFORE_HOURS", "2")
    survey_after_hours: float = _safe_float("SURVEY_AFTER_HOURS", "4")
    review_after_hours: float = _safe_float("REVIEW_AFTER_HOURS", "24")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    follow_ups: FollowUpConfig = field(default_factory=FollowUpConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    emergency_store_size: int = _safe_int("EMERGENCY_STORE_SIZE", "500")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    rules = config.scheduling
    if rules.min_advance_hours < 0:
        raise ValueError(
            f"MIN_ADVANCE_HOURS must be >= 0, got {rules.min_advance_hours}"
        )
    if rules.max_advance_days <= 0:
        raise ValueError(
            f"MAX_ADVANCE_DAYS must be > 0, got {rules.max_advance_days}"
        )
    if rules.min_advance_hours > rules.max_advance_days * 24:
        raise ValueError(
            "MIN_ADVANCE_HOURS must not exceed MAX_ADVANCE_DAYS, "
            f"got {rules.min_advance_hours}h vs {rules.max_advance_days}d"
        )

    for name, value in [
        ("WORKING_HOURS_START", rules.working_hours_start),
        ("WORKING_HOURS_END", rules.working_hours_end),
    ]:
        try:
            time_to_minutes(value)
        except ValueError:
            raise ValueError(f"{name} must be HH:MM between 00:00 and 23:59, got {value!r}") from None

    if time_to_minutes(rules.working_hours_end) <= time_to_minutes(rules.working_hours_start):
        raise ValueError(
            "WORKING_HOURS_END must be after WORKING_HOURS_START, "
            f"got {rules.working_hours_start}-{rules.working_hours_end}"
        )
    if rules.buffer_minutes < 0:
        raise ValueError(f"BUFFER_MINUTES must be >= 0, got {rules.buffer_minutes}")
    if rules.max_daily_bookings < 1:
        raise ValueError(
            f"MAX_DAILY_BOOKINGS must be >= 1, got {rules.max_daily_bookings}"
        )
    if rules.slot_granularity_minutes < 1 or 60 % rules.slot_granularity_minutes:
        raise ValueError(
            "SLOT_GRANULARITY_MINUTES must divide an hour evenly, "
            f"got {rules.slot_granularity_minutes}"
        )
    if rules.alternative_search_days < 1:
        raise ValueError(
            f"ALTERNATIVE_SEARCH_DAYS must be >= 1, got {rules.alternative_search_days}"
        )
    if rules.max_alternatives < 1:
        raise ValueError(f"MAX_ALTERNATIVES must be >= 1, got {rules.max_alternatives}")
    if rules.max_distance_miles <= 0:
        raise ValueError(
            f"MAX_DISTANCE_MILES must be > 0, got {rules.max_distance_miles}"
        )
    if not 0.0 <= rules.default_worker_rating <= 5.0:
        raise ValueError(
            "DEFAULT_WORKER_RATING must be between 0.0 and 5.0, "
            f"got {rules.default_worker_rating}"
        )

    for offset_name, offset in [
        ("REMINDER_24H_BEFORE_HOURS", config.follow_ups.reminder_24h_before_hours),
        ("REMINDER_2H_BEFORE_HOURS", config.follow_ups.reminder_2h_before_hours),
        ("SURVEY_AFTER_HOURS", config.follow_ups.survey_after_hours),
        ("REVIEW_AFTER_HOURS", config.follow_ups.review_after_hours),
    ]:
        if offset < 0:
            raise ValueError(f"{offset_name} must be >= 0, got {offset}")

    if config.notifications.alert_log_size < 1:
        raise ValueError(
            f"ALERT_LOG_SIZE must be >= 1, got {config.notifications.alert_log_size}"
        )
    if config.emergency_store_size < 1:
        raise ValueError(
            f"EMERGENCY_STORE_SIZE must be >= 1, got {config.emergency_store_size}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.notifications.company_name)
    return config


# Singleton instance
settings = load_config()
