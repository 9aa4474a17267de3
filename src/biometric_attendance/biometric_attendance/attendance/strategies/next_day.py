from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ...biometrics.model import BiometricRecord
from ...common.datetime_utils import combine, minutes_between
from ...core.constants import NEXT_DAY_EARLY_WINDOW_MINUTES
from .. import scan_finder
from .base import ShiftPatternStrategy


def time_in_hours(scheduled_hour: int) -> tuple[int, int]:
    """Hour band searched for the time in, chosen from the scheduled hour."""
    if 0 <= scheduled_hour < 5:
        return 18, 23
    if 5 <= scheduled_hour < 12:
        return 5, 11
    if 12 <= scheduled_hour < 18:
        return 12, 17
    return 18, 23


class NextDayStrategy(ShiftPatternStrategy):
    """Time out falls on the following day (e.g. 22:00-07:00, 15:00-00:00)."""

    def shift_date_for(self, scanned_at: datetime) -> date:
        on = scanned_at.date()
        before_start = minutes_between(scanned_at, combine(on, self.schedule.scheduled_time_in))
        if 0 <= before_start <= NEXT_DAY_EARLY_WINDOW_MINUTES:
            return on
        # Evening scans are early arrivals for a late-night start.
        if self.in_hour >= 22 and 18 <= scanned_at.hour <= 23:
            return on
        if scanned_at.hour < self.in_hour:
            return on - timedelta(days=1)
        return on

    def in_date(self, shift_date: date) -> date:
        return shift_date

    def out_date(self, shift_date: date) -> date:
        return self.next_day(shift_date)

    def find_time_in(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        start_hour, end_hour = time_in_hours(self.in_hour)
        return scan_finder.find_in_hours(records, shift_date, start_hour, end_hour)

    def find_time_out(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        if 0 <= self.in_hour < 5:
            return scan_finder.find_in_hours(records, self.out_date(shift_date), 0, self.out_hour)
        return super().find_time_out(records, shift_date)
