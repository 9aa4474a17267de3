"""Advisory status for the roster's manual-entry dialog.

The result only pre-fills the form; `AttendanceService.store_manual` stores
whatever status the admin submits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

from ..common.datetime_utils import combine
from ..core.constants import DEFAULT_GRACE_MINUTES, OVERTIME_SUGGEST_MINUTES, UNDERTIME_HOUR_MINUTES
from ..core.enums import AttendanceStatus, ShiftType
from ..schedules.model import EmployeeSchedule

S = AttendanceStatus


@dataclass(frozen=True)
class SuggestedStatus:
    status: AttendanceStatus
    reason: str
    is_partial: bool
    violations: tuple[AttendanceStatus, ...] = field(default_factory=tuple)
    secondary_status: Optional[AttendanceStatus] = None
    tardy_minutes: Optional[int] = None
    undertime_minutes: Optional[int] = None
    overtime_minutes: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "secondary_status": self.secondary_status.value if self.secondary_status else None,
            "tardy_minutes": self.tardy_minutes,
            "undertime_minutes": self.undertime_minutes,
            "overtime_minutes": self.overtime_minutes,
            "reason": self.reason,
            "is_partial": self.is_partial,
            "violations": [v.value for v in self.violations],
        }


def _floor_minutes(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def suggest_status(
    schedule: EmployeeSchedule,
    shift_date: date,
    actual_in: Optional[datetime],
    actual_out: Optional[datetime],
) -> SuggestedStatus:
    if not actual_in and not actual_out:
        return SuggestedStatus(S.NCNS, "No time in or time out recorded", True, (S.NCNS,))
    if not actual_in:
        return SuggestedStatus(S.FAILED_BIO_IN, "Missing time in record", True, (S.FAILED_BIO_IN,))

    grace = schedule.grace_period_minutes if schedule.grace_period_minutes is not None else DEFAULT_GRACE_MINUTES
    scheduled_in = combine(shift_date, schedule.scheduled_time_in)
    scheduled_out = combine(shift_date, schedule.scheduled_time_out)
    if schedule.shift_type == ShiftType.NIGHT or scheduled_out <= scheduled_in:
        scheduled_out += timedelta(days=1)

    tardy = undertime = overtime = None
    is_half_day = is_tardy = False
    late = _floor_minutes(scheduled_in, actual_in)
    if late > grace:
        is_half_day, tardy = True, late
    elif late >= 1:
        is_tardy, tardy = True, late

    has_undertime = over_hour = False
    if actual_out:
        diff = _floor_minutes(scheduled_out, actual_out)
        if diff < -UNDERTIME_HOUR_MINUTES:
            has_undertime = over_hour = True
            undertime = abs(diff)
        elif diff < 0:
            has_undertime = True
            undertime = abs(diff)
        elif diff > OVERTIME_SUGGEST_MINUTES:
            overtime = diff

    violations: list[AttendanceStatus] = []
    if is_half_day:
        violations.append(S.HALF_DAY_ABSENCE)
    if is_tardy:
        violations.append(S.TARDY)
    if over_hour:
        violations.append(S.UNDERTIME_MORE_THAN_HOUR)
    elif has_undertime:
        violations.append(S.UNDERTIME)
    if not actual_out:
        violations.append(S.FAILED_BIO_OUT)

    undertime_status = S.UNDERTIME_MORE_THAN_HOUR if over_hour else S.UNDERTIME
    secondary = None
    # Higher point value goes first; ties keep the arrival issue as primary.
    if not actual_out:
        if is_half_day:
            status, secondary = S.HALF_DAY_ABSENCE, S.FAILED_BIO_OUT
            reason = f"Arrived {tardy} minutes late (more than {grace}min grace period), missing time out"
        elif is_tardy:
            status, secondary = S.TARDY, S.FAILED_BIO_OUT
            reason = f"Arrived {tardy} minutes late, missing time out"
        else:
            status, reason = S.FAILED_BIO_OUT, "Missing time out record"
    elif is_half_day and has_undertime:
        status, secondary = S.HALF_DAY_ABSENCE, undertime_status
        reason = f"Arrived {tardy} minutes late AND left {undertime} minutes early"
    elif is_half_day:
        status = S.HALF_DAY_ABSENCE
        reason = f"Arrived {tardy} minutes late (more than {grace}min grace period)"
    elif is_tardy and over_hour:
        status, secondary = S.UNDERTIME_MORE_THAN_HOUR, S.TARDY
        reason = f"Left {undertime} minutes early AND arrived {tardy} minutes late"
    elif is_tardy and has_undertime:
        status, secondary = S.TARDY, S.UNDERTIME
        reason = f"Arrived {tardy} minutes late AND left {undertime} minutes early"
    elif is_tardy:
        status, reason = S.TARDY, f"Arrived {tardy} minutes late"
    elif over_hour:
        status, reason = S.UNDERTIME_MORE_THAN_HOUR, f"Left {undertime} minutes early (more than 1 hour)"
    elif has_undertime:
        status, reason = S.UNDERTIME, f"Left {undertime} minutes early"
    else:
        status, reason = S.ON_TIME, "Arrived on time"

    return SuggestedStatus(
        status=status,
        reason=reason,
        is_partial=not actual_out,
        violations=tuple(violations),
        secondary_status=secondary,
        tardy_minutes=tardy,
        undertime_minutes=undertime,
        overtime_minutes=overtime,
    )
