from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str], field_name: str) -> Optional[date]:
    """Parse a query/form date, returning None for blanks."""
    if not value or not value.strip():
        return None
    try:
        return parse_iso_date(value.strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date")


def parse_local_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    """Parse datetime-local form values (YYYY-MM-DDTHH:MM) or ISO strings."""
    if not value or not value.strip():
        return None
    raw = value.strip().replace(" ", "T")
    for fmt in ("%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise ValidationError(f"{field_name} must be a date and time")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def combine(on: date, at: time) -> datetime:
    return datetime.combine(on, at.replace(second=0, microsecond=0))


def minutes_between(start: datetime, end: datetime) -> int:
    """Signed whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


def subtract_months(on: date, months: int) -> date:
    """Calendar month subtraction, clamping the day to the target month length."""
    month_index = on.year * 12 + (on.month - 1) - int(months)
    year, month = divmod(month_index, 12)
    month += 1
    day = min(on.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def start_of_week(on: date) -> date:
    return on - timedelta(days=on.weekday())


def weekday_name(on: date) -> str:
    return on.strftime("%A").lower()
