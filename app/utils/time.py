"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.config import settings


def business_tz() -> ZoneInfo:
    """Return the timezone booking dates are evaluated in."""
    return ZoneInfo(settings.timezone)


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def local_today() -> date:
    """Return today's calendar date in the business timezone."""
    return now_utc().astimezone(business_tz()).date()


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO timestamp (``Z`` suffix allowed) into a datetime."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def to_local_date(value: str | date | datetime | None) -> date | None:
    """Normalize a date-like value to a calendar date at local midnight.

    Aware datetimes are converted to the business timezone first; naive
    datetimes and plain dates are taken as already local.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            return date.fromisoformat(text)
        value = parse_timestamp(text)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(business_tz())
        return value.date()
    return value


def first_day_of_month(base: date | None = None) -> date:
    """Return the first calendar day of the month containing ``base``."""
    target = base or local_today()
    return target.replace(day=1)


def first_day_of_next_month(base: date | None = None) -> date:
    """Return the first calendar day of the month after ``base``."""
    start = first_day_of_month(base)
    return (start + timedelta(days=32)).replace(day=1)
