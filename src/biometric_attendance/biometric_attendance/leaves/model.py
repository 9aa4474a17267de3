from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class LeaveRequest:
    """Approved leave, read-only here (requests are filed elsewhere)."""

    leave_request_id: int
    user_id: int
    leave_type: str
    start_date: date
    end_date: date
    reason: Optional[str] = None

    def covers(self, on: date) -> bool:
        return self.start_date <= on <= self.end_date

    @property
    def is_multi_day(self) -> bool:
        return self.end_date > self.start_date
