from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import LeaveRequest


class LeaveRepository(Protocol):
    def get_approved_for(self, *, user_id: int, on: date) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_approved_on(self, on: date) -> Sequence[LeaveRequest]:
        raise NotImplementedError
