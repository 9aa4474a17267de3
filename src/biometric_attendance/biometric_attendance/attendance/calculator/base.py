from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional


class WorkedTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for worked time)."""

    @abstractmethod
    def worked_minutes(
        self,
        *,
        actual_in: Optional[datetime],
        actual_out: Optional[datetime],
        scheduled_in: Optional[datetime] = None,
        scheduled_out: Optional[datetime] = None,
        overtime_minutes: Optional[int] = None,
        overtime_approved: bool = False,
    ) -> Optional[int]:
        raise NotImplementedError
