from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.constants import LUNCH_DEDUCTION_AFTER_MINUTES, LUNCH_DEDUCTION_MINUTES
from .base import WorkedTimeCalculator


class StandardWorkedTimeCalculator(WorkedTimeCalculator):
    """Standard rule: (out - max(in, scheduled in)) minus lunch over 5 hours, not below 0.

    Unapproved overtime is not paid: the out is capped at the scheduled out.
    """

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
        if not actual_in or not actual_out:
            return None

        effective_in = max(actual_in, scheduled_in) if scheduled_in else actual_in
        effective_out = actual_out
        if scheduled_out and (overtime_minutes or 0) > 0 and not overtime_approved and actual_out > scheduled_out:
            effective_out = scheduled_out

        minutes = int((effective_out - effective_in).total_seconds() // 60)
        if minutes > LUNCH_DEDUCTION_AFTER_MINUTES:
            minutes -= LUNCH_DEDUCTION_MINUTES
        return max(minutes, 0)
