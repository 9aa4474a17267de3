from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ...biometrics.model import BiometricRecord
from .. import scan_finder
from .base import ShiftPatternStrategy


class SameDayStrategy(ShiftPatternStrategy):
    """Time in and time out on the shift date (e.g. 08:00-17:00)."""

    def shift_date_for(self, scanned_at: datetime) -> date:
        return scanned_at.date()

    def in_date(self, shift_date: date) -> date:
        return shift_date

    def out_date(self, shift_date: date) -> date:
        return shift_date

    def find_time_in(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        return scan_finder.find_time_in(records, shift_date, self.schedule.scheduled_time_in)
