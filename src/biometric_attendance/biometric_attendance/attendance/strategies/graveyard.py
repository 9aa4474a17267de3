from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ...biometrics.model import BiometricRecord
from .. import scan_finder
from .base import ShiftPatternStrategy


class GraveyardStrategy(ShiftPatternStrategy):
    """Starts after midnight and ends the same morning (e.g. 00:30-09:30).

    The shift belongs to the work day before the clock-in date: Friday's
    shift is worked Saturday 00:30-09:30.
    """

    def shift_date_for(self, scanned_at: datetime) -> date:
        on = scanned_at.date()
        if scanned_at.hour >= 20:
            return on
        previous = on - timedelta(days=1)
        return previous if self.schedule.works_on_day(previous) else on

    def in_date(self, shift_date: date) -> date:
        return self.next_day(shift_date)

    def out_date(self, shift_date: date) -> date:
        return self.next_day(shift_date)

    def find_time_in(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        early = scan_finder.find_in_hours(records, shift_date, 20, 23)
        if early:
            return early

        t_in, t_out = self.schedule.scheduled_time_in, self.schedule.scheduled_time_out
        in_minutes = t_in.hour * 60 + t_in.minute
        out_minutes = t_out.hour * 60 + t_out.minute
        midpoint_hour = int((in_minutes + out_minutes) / 2 / 60)
        return scan_finder.find_in_hours(
            records, self.in_date(shift_date), 0, max(midpoint_hour, self.in_hour + 3)
        )
