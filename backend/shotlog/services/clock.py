from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from shotlog.core.config import settings


def current_datetime() -> datetime:
    return datetime.now(ZoneInfo(settings.TIMEZONE))


def current_date() -> date:
    return current_datetime().date()


def current_time_of_day() -> str:
    """Wall-clock time as HH:MM (24-hour)."""
    return current_datetime().strftime("%H:%M")
