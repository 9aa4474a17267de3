from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import EmployeeSchedule


class ScheduleRepository(Protocol):
    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[EmployeeSchedule]:
        """Active schedule whose effective range covers work_date."""

        raise NotImplementedError

    def get_active_for_user(self, user_id: int) -> Optional[EmployeeSchedule]:
        """Current active schedule, used to decide how scans group into shifts."""

        raise NotImplementedError

    def list_effective_on(
        self,
        work_date: date,
        *,
        site_id: Optional[int] = None,
        campaign_id: Optional[int] = None,
    ) -> Sequence[EmployeeSchedule]:
        raise NotImplementedError
