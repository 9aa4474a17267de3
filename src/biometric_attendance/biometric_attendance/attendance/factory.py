from __future__ import annotations

from dataclasses import dataclass

from ..schedules.model import EmployeeSchedule
from .strategies.base import ShiftPatternStrategy
from .strategies.graveyard import GraveyardStrategy
from .strategies.next_day import NextDayStrategy
from .strategies.same_day import SameDayStrategy


@dataclass
class ShiftStrategyFactory:
    """Factory Pattern: choose the shift pattern strategy for a schedule."""

    def for_schedule(self, schedule: EmployeeSchedule) -> ShiftPatternStrategy:
        if schedule.is_graveyard_same_day():
            return GraveyardStrategy(schedule)
        if schedule.is_next_day_shift():
            return NextDayStrategy(schedule)
        return SameDayStrategy(schedule)
