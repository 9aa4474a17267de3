from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from ..common.datetime_utils import weekday_name
from ..core.enums import ShiftType


@dataclass(frozen=True)
class EmployeeSchedule:
    """Recurring shift assignment for one employee.

    `work_days` holds lower-case weekday names ("monday", ...).
    """

    schedule_id: int
    user_id: int
    shift_type: ShiftType
    scheduled_time_in: time
    scheduled_time_out: time
    work_days: tuple[str, ...] = field(default_factory=tuple)
    grace_period_minutes: int = 15
    site_id: Optional[int] = None
    campaign_id: Optional[int] = None
    effective_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True
    site_name: Optional[str] = None
    campaign_name: Optional[str] = None

    def works_on_day(self, on: date | str) -> bool:
        day = on.lower() if isinstance(on, str) else weekday_name(on)
        return day in self.work_days

    def is_effective_on(self, on: date) -> bool:
        if not self.is_active:
            return False
        if self.effective_date and self.effective_date > on:
            return False
        return self.end_date is None or self.end_date >= on

    def is_night_shift(self) -> bool:
        return self.shift_type == ShiftType.NIGHT or self.scheduled_time_in.hour >= 20

    def is_graveyard_same_day(self) -> bool:
        """Starts 00:00-04:59 and ends later that same morning (e.g. 00:30-09:30)."""
        in_hour = self.scheduled_time_in.hour
        return 0 <= in_hour < 5 and self.scheduled_time_out.hour > in_hour

    def is_next_day_shift(self) -> bool:
        if self.is_graveyard_same_day():
            return False
        return self.scheduled_time_out <= self.scheduled_time_in

    def to_dict(self) -> dict:
        return {
            "id": self.schedule_id,
            "shift_type": self.shift_type.value,
            "scheduled_time_in": self.scheduled_time_in.strftime("%H:%M:%S"),
            "scheduled_time_out": self.scheduled_time_out.strftime("%H:%M:%S"),
            "site_id": self.site_id,
            "site_name": self.site_name,
            "campaign_id": self.campaign_id,
            "campaign_name": self.campaign_name,
            "grace_period_minutes": self.grace_period_minutes,
            "work_days": list(self.work_days),
        }
