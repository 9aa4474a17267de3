from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

_STATUS_LABELS = {
    "on_time": "On Time",
    "ncns": "NCNS",
    "failed_bio_in": "Failed Bio In",
    "failed_bio_out": "Failed Bio Out",
    "needs_manual_review": "Needs Manual Review",
    "present_no_bio": "Present (No Bio)",
    "non_work_day": "Non-Work Day",
    "undertime_more_than_hour": "Undertime (>1hr)",
    "half_day_absence": "Half Day Absence",
}

_STATUS_CSS = {
    "on_time": "bg-success",
    "tardy": "bg-warning text-dark",
    "half_day_absence": "bg-danger",
    "ncns": "bg-danger",
    "undertime": "bg-warning text-dark",
    "undertime_more_than_hour": "bg-warning text-dark",
    "failed_bio_in": "bg-info text-dark",
    "failed_bio_out": "bg-info text-dark",
    "needs_manual_review": "bg-dark",
    "on_leave": "bg-primary",
}


def format_status(status: Optional[str]) -> str:
    if not status:
        return "-"
    value = getattr(status, "value", status)
    if value in _STATUS_LABELS:
        return _STATUS_LABELS[value]
    return " ".join(part.capitalize() for part in value.split("_"))


def status_css(status: Optional[str]) -> str:
    value = getattr(status, "value", status)
    return _STATUS_CSS.get(value, "bg-secondary")


def format_date(value: Optional[date]) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def format_time(value: Optional[time | datetime]) -> str:
    return value.strftime("%H:%M") if value else "-"


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def format_minutes(minutes: Optional[int]) -> str:
    if not minutes:
        return "-"
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
