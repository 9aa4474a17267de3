from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ...biometrics.model import BiometricRecord
from ...common.datetime_utils import combine
from ...schedules.model import EmployeeSchedule
from .. import scan_finder


@dataclass(frozen=True)
class ShiftWindow:
    """Scheduled bounds of one shift and the scans picked as its time in/out."""

    scheduled_in: datetime
    scheduled_out: datetime
    time_in: Optional[BiometricRecord] = None
    time_out: Optional[BiometricRecord] = None

    @property
    def midpoint(self) -> datetime:
        return self.scheduled_in + (self.scheduled_out - self.scheduled_in) / 2


class ShiftPatternStrategy(ABC):
    """Strategy Pattern: how a schedule's scans map to shift dates and time in/out.

    Subclasses differ in which calendar dates hold the scheduled in/out and in
    where the time in is searched for.
    """

    def __init__(self, schedule: EmployeeSchedule):
        self.schedule = schedule

    @property
    def in_hour(self) -> int:
        return self.schedule.scheduled_time_in.hour

    @property
    def out_hour(self) -> int:
        return self.schedule.scheduled_time_out.hour

    @abstractmethod
    def shift_date_for(self, scanned_at: datetime) -> date:
        raise NotImplementedError

    @abstractmethod
    def in_date(self, shift_date: date) -> date:
        raise NotImplementedError

    @abstractmethod
    def out_date(self, shift_date: date) -> date:
        raise NotImplementedError

    @abstractmethod
    def find_time_in(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        raise NotImplementedError

    def find_time_out(self, records: Sequence[BiometricRecord], shift_date: date) -> Optional[BiometricRecord]:
        return scan_finder.find_time_out(
            records,
            self.out_date(shift_date),
            self.out_hour,
            self.schedule.scheduled_time_out,
        )

    def scheduled_bounds(self, shift_date: date) -> tuple[datetime, datetime]:
        return (
            combine(self.in_date(shift_date), self.schedule.scheduled_time_in),
            combine(self.out_date(shift_date), self.schedule.scheduled_time_out),
        )

    def window(self, records: Sequence[BiometricRecord], shift_date: date) -> ShiftWindow:
        scheduled_in, scheduled_out = self.scheduled_bounds(shift_date)
        return ShiftWindow(
            scheduled_in=scheduled_in,
            scheduled_out=scheduled_out,
            time_in=self.find_time_in(records, shift_date),
            time_out=self.find_time_out(records, shift_date),
        )

    @staticmethod
    def next_day(on: date) -> date:
        return on + timedelta(days=1)
