"""
Common date/time utility functions for consistent date/time handling across the application

Storage: All instants are stored in UTC in the backend
Calendar days: appointment_day and bill-number dates are taken in the clinic timezone
(settings.clinic_timezone), so the token allocator, the conflict detector and the
dispensary token lookup all agree on what "the same day" means.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.config import get_settings


def as_utc(dt: datetime) -> datetime:
    """
    Convert dt to tz-aware UTC.
    If dt is naive, we treat it as UTC (consistent with existing behavior).

    Args:
        dt: datetime object (naive or timezone-aware)

    Returns:
        datetime object in UTC timezone
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC timezone
    """
    return datetime.now(timezone.utc)


def clinic_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().clinic_timezone)


def day_of(dt: datetime | date) -> date:
    """
    Truncate an instant to its calendar day (time-of-day zeroed) in the clinic timezone.

    A plain date is returned unchanged.
    """
    if not isinstance(dt, datetime):
        return dt
    return as_utc(dt).astimezone(clinic_tz()).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """
    Return the [start, end) UTC instants covering a clinic calendar day.
    """
    start = datetime.combine(day, time.min, tzinfo=clinic_tz())
    end = start + timedelta(days=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def clinic_today() -> date:
    return day_of(utc_now())
