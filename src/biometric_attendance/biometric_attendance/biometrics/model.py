from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional


@dataclass(frozen=True)
class BiometricRecord:
    """A single time-clock scan (user, site, timestamp)."""

    record_id: int
    user_id: int
    employee_name: str
    scanned_at: datetime
    record_date: date
    site_id: Optional[int] = None
    user_name: Optional[str] = None
    site_name: Optional[str] = None

    @property
    def record_time(self) -> time:
        return self.scanned_at.time()

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "user_id": self.user_id,
            "user_name": self.user_name or self.employee_name,
            "employee_name": self.employee_name,
            "site_id": self.site_id,
            "site_name": self.site_name,
            "datetime": self.scanned_at.strftime("%Y-%m-%d %H:%M:%S"),
            "record_date": self.record_date.strftime("%Y-%m-%d"),
            "record_time": self.scanned_at.strftime("%H:%M:%S"),
        }


@dataclass(frozen=True)
class NewScan:
    """Matched scan ready to be stored."""

    user_id: int
    employee_name: str
    scanned_at: datetime
    site_id: Optional[int] = None


@dataclass(frozen=True)
class BiometricFilters:
    user_id: Optional[int] = None
    site_id: Optional[int] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None

    def to_query(self) -> dict:
        """Echoed back to the page so the filter form keeps its values."""
        return {
            "user_id": self.user_id or "",
            "site_id": self.site_id or "",
            "date_from": self.date_from.strftime("%Y-%m-%d") if self.date_from else "",
            "date_to": self.date_to.strftime("%Y-%m-%d") if self.date_to else "",
            "search": self.search or "",
        }
