from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from simpligest.config import get_settings


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value):
    """Coerce a datetime to an aware UTC value; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return None


def parse_datetime(value):
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return as_utc(value)
    if isinstance(value, str):
        value_text = value.strip()
        if not value_text:
            return None
        try:
            return as_utc(datetime.fromisoformat(value_text))
        except ValueError:
            return None
    return None


@lru_cache
def business_timezone() -> ZoneInfo:
    return ZoneInfo(get_settings().BUSINESS_TIMEZONE)


def local_date(value, tz=None) -> date:
    tz = tz or business_timezone()
    return as_utc(value).astimezone(tz).date()


def is_same_day(first, second, tz=None) -> bool:
    return local_date(first, tz) == local_date(second, tz)


def days_ago(now, days) -> datetime:
    return as_utc(now) - timedelta(days=days)


def parse_hhmm(value: str) -> time:
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError("time must be in HH:MM format")
    try:
        hour = int(parts[0])
        minute = int(parts[1])
    except ValueError as exc:
        raise ValueError("time must be in HH:MM format") from exc
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError("time must be in HH:MM format")
    return time(hour=hour, minute=minute)
