from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Optional, Sequence

from ..biometrics.model import BiometricRecord
from ..common.datetime_utils import minutes_between
from ..core.constants import (
    DOUBLE_PUNCH_MINUTES,
    MAX_SHIFT_MINUTES,
    OVERTIME_THRESHOLD_MINUTES,
    UNDERTIME_HOUR_MINUTES,
    UTILITY_MIN_HOURS,
)
from ..core.enums import AttendanceStatus, ShiftType
from ..leaves.model import LeaveRequest
from ..leaves.repository import LeaveRepository
from ..schedules.model import EmployeeSchedule
from ..schedules.repository import ScheduleRepository
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator
from .factory import ShiftStrategyFactory
from .model import Attendance
from .repository import AttendanceRepository
from .review import review_scan_patterns
from .strategies.base import ShiftWindow

logger = logging.getLogger(__name__)

SAME_SCAN_OUT_LIMIT = timedelta(hours=2)


def time_in_status(tardy_minutes: int, grace_minutes: int) -> AttendanceStatus:
    if tardy_minutes > grace_minutes:
        return AttendanceStatus.HALF_DAY_ABSENCE
    if tardy_minutes >= 1:
        return AttendanceStatus.TARDY
    return AttendanceStatus.ON_TIME


def _differs(a: Optional[int], b: Optional[int]) -> bool:
    return a is not None and b is not None and a != b


@dataclass(frozen=True)
class ShiftOutcome:
    shift_date: date
    kind: str
    processed: bool
    attendance: Optional[Attendance] = None


@dataclass
class UserProcessingResult:
    user_id: int
    records_count: int = 0
    shifts_processed: int = 0
    outcomes: list[ShiftOutcome] = field(default_factory=list)

    @property
    def non_work_days(self) -> list[date]:
        return [o.shift_date for o in self.outcomes if o.kind == "non_work_day"]


class AttendanceProcessor:
    """Turns a user's raw scans into one attendance row per shift date."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        leaves: LeaveRepository,
        *,
        strategy_factory: ShiftStrategyFactory | None = None,
        calculator: WorkedTimeCalculator | None = None,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._leaves = leaves
        self._factory = strategy_factory or ShiftStrategyFactory()
        self._calculator = calculator or StandardWorkedTimeCalculator()

    # ---- grouping ----

    def group_by_shift_date(
        self, records: Sequence[BiometricRecord], schedule: Optional[EmployeeSchedule]
    ) -> dict[date, list[BiometricRecord]]:
        groups: dict[date, list[BiometricRecord]] = defaultdict(list)
        ordered = sorted(records, key=lambda r: r.scanned_at)
        if not schedule:
            for r in ordered:
                groups[r.scanned_at.date()].append(r)
            return dict(groups)

        strategy = self._factory.for_schedule(schedule)
        for r in ordered:
            groups[strategy.shift_date_for(r.scanned_at)].append(r)
        return dict(groups)

    # ---- per user / per shift ----

    def process_user(self, user_id: int, records: Sequence[BiometricRecord]) -> UserProcessingResult:
        result = UserProcessingResult(user_id=user_id, records_count=len(records))
        groups = self.group_by_shift_date(records, self._schedules.get_active_for_user(user_id))
        for shift_date in sorted(groups):
            outcome = self.process_shift(user_id, groups[shift_date], shift_date)
            result.outcomes.append(outcome)
            if outcome.processed:
                result.shifts_processed += 1

        if result.non_work_days:
            logger.info(
                "Biometric scans found on non-work days for user %s: %s",
                user_id,
                ", ".join(d.isoformat() for d in result.non_work_days),
            )
        return result

    def process_shift(self, user_id: int, records: Sequence[BiometricRecord], shift_date: date) -> ShiftOutcome:
        existing = self._attendance.get_for_user_and_date(user_id, shift_date)
        if existing and existing.admin_verified:
            return ShiftOutcome(shift_date=shift_date, kind="verified", processed=False, attendance=existing)

        schedule = self._schedules.get_for_user_and_date(user_id=user_id, work_date=shift_date)
        if not schedule:
            attendance = self.without_schedule(user_id, records, shift_date)
            kind, processed = "no_schedule", True
        elif not schedule.works_on_day(shift_date):
            attendance = self.non_work_day(user_id, schedule, records, shift_date)
            kind, processed = "non_work_day", False
        else:
            leave = self._leaves.get_approved_for(user_id=user_id, on=shift_date)
            if leave and len(records) >= 2:
                attendance = self.leave_conflict(user_id, schedule, records, shift_date, leave)
                kind, processed = "leave_conflict", True
            elif leave:
                attendance = self.on_leave(user_id, schedule, shift_date, leave)
                kind, processed = "on_leave", True
            else:
                attendance = self.compute(
                    user_id,
                    schedule,
                    records,
                    shift_date,
                    overtime_approved=bool(existing and existing.overtime_approved),
                )
                kind, processed = "scheduled", True

        attendance_id = self._attendance.save(attendance)
        return ShiftOutcome(
            shift_date=shift_date,
            kind=kind,
            processed=processed,
            attendance=replace(attendance, attendance_id=attendance_id),
        )

    # ---- attendance builders ----

    def compute(
        self,
        user_id: int,
        schedule: EmployeeSchedule,
        records: Sequence[BiometricRecord],
        shift_date: date,
        *,
        overtime_approved: bool = False,
    ) -> Attendance:
        """Canonical status of a scheduled work day from its scans."""
        window = self._factory.for_schedule(schedule).window(records, shift_date)
        time_in, time_out = window.time_in, window.time_out
        warnings: list[str] = []

        same_scan = bool(time_in and time_out and time_in.scanned_at == time_out.scanned_at)
        if same_scan:
            scanned_at = time_in.scanned_at
            if scanned_at - window.scheduled_out > SAME_SCAN_OUT_LIMIT or scanned_at < window.midpoint:
                time_out = None
            else:
                time_in = None

        if time_in and time_out and not same_scan:
            gap = abs((time_out.scanned_at - time_in.scanned_at).total_seconds()) / 60
            if gap < DOUBLE_PUNCH_MINUTES:
                logger.warning(
                    "Double punch detected for user %s on %s (%s -> %s)",
                    user_id,
                    shift_date,
                    time_in.scanned_at.strftime("%H:%M:%S"),
                    time_out.scanned_at.strftime("%H:%M:%S"),
                )
                warnings.append(
                    "DOUBLE PUNCH DETECTED: {} → {} ({} minutes apart). Time out has been cleared pending "
                    "verification.".format(
                        time_in.scanned_at.strftime("%H:%M:%S"),
                        time_out.scanned_at.strftime("%H:%M:%S"),
                        int(gap),
                    )
                )
                time_out = None

        if time_in and time_out:
            duration = abs((time_out.scanned_at - time_in.scanned_at).total_seconds()) / 60
            if duration > MAX_SHIFT_MINUTES:
                hours = round(duration / 60, 1)
                logger.warning("Excessive shift duration for user %s on %s (%.1f hours)", user_id, shift_date, hours)
                warnings.append(
                    "EXCESSIVE DURATION: {} → {} ({:.1f} hours). Time out has been cleared - likely a mismatched "
                    "scan or forgot to clock out.".format(
                        time_in.scanned_at.strftime("%Y-%m-%d %H:%M"),
                        time_out.scanned_at.strftime("%Y-%m-%d %H:%M"),
                        hours,
                    )
                )
                time_out = None

        is_utility = schedule.shift_type == ShiftType.UTILITY_24H
        if is_utility and len(records) > 2:
            ordered = sorted(records, key=lambda r: r.scanned_at)
            if ordered[0].scanned_at != ordered[-1].scanned_at:
                time_in, time_out = ordered[0], ordered[-1]

        status = AttendanceStatus.NCNS
        secondary: Optional[AttendanceStatus] = None
        tardy = undertime = overtime = None
        in_site = out_site = None
        cross_site = False

        if time_in:
            signed = minutes_between(window.scheduled_in, time_in.scanned_at)
            status = time_in_status(signed, schedule.grace_period_minutes)
            tardy = signed if signed > 0 else None
            in_site = time_in.site_id
            cross_site = _differs(in_site, schedule.site_id)

        if time_out:
            diff = minutes_between(
                window.scheduled_out.replace(second=0, microsecond=0),
                time_out.scanned_at.replace(second=0, microsecond=0),
            )
            out_site = time_out.site_id
            cross_site = cross_site or _differs(out_site, schedule.site_id) or _differs(out_site, in_site)

            if diff < 0 and abs(diff) >= 1:
                undertime = abs(diff)
                undertime_status = (
                    AttendanceStatus.UNDERTIME_MORE_THAN_HOUR
                    if undertime > UNDERTIME_HOUR_MINUTES
                    else AttendanceStatus.UNDERTIME
                )
                if status == AttendanceStatus.ON_TIME:
                    status = undertime_status
                elif status in (AttendanceStatus.TARDY, AttendanceStatus.HALF_DAY_ABSENCE):
                    secondary = undertime_status
            if diff > OVERTIME_THRESHOLD_MINUTES:
                overtime = diff

        if not time_in and not time_out:
            status, secondary = AttendanceStatus.NCNS, None
        elif not time_in:
            status, secondary = AttendanceStatus.FAILED_BIO_IN, None
        elif not time_out:
            if status == AttendanceStatus.ON_TIME:
                status, secondary = AttendanceStatus.FAILED_BIO_OUT, None
            else:
                secondary = AttendanceStatus.FAILED_BIO_OUT

        review = review_scan_patterns(
            records,
            ShiftWindow(window.scheduled_in, window.scheduled_out, time_in, time_out),
            shift_date,
        )
        if review:
            warnings.extend(review)
            status = AttendanceStatus.NEEDS_MANUAL_REVIEW
            logger.warning("Attendance of user %s on %s flagged for manual review", user_id, shift_date)

        if is_utility:
            tardy = undertime = None
            if time_in and time_out:
                hours = (time_out.scanned_at - time_in.scanned_at).total_seconds() / 3600
                secondary = None
                if hours >= UTILITY_MIN_HOURS:
                    status = AttendanceStatus.ON_TIME
                else:
                    status = AttendanceStatus.UNDERTIME
                    warnings.append(
                        f"24H UTILITY: Only {hours:.1f} hours worked (minimum {UTILITY_MIN_HOURS} hours expected)."
                    )

        actual_in = time_in.scanned_at if time_in else None
        actual_out = time_out.scanned_at if time_out else None
        return Attendance(
            user_id=user_id,
            shift_date=shift_date,
            status=status,
            schedule_id=schedule.schedule_id,
            scheduled_time_in=schedule.scheduled_time_in,
            scheduled_time_out=schedule.scheduled_time_out,
            actual_time_in=actual_in,
            actual_time_out=actual_out,
            bio_in_site_id=in_site,
            bio_out_site_id=out_site,
            secondary_status=secondary,
            tardy_minutes=tardy,
            undertime_minutes=undertime,
            overtime_minutes=overtime,
            overtime_approved=overtime_approved,
            is_cross_site_bio=cross_site,
            total_minutes_worked=self._calculator.worked_minutes(
                actual_in=actual_in,
                actual_out=actual_out,
                scheduled_in=window.scheduled_in,
                scheduled_out=window.scheduled_out,
                overtime_minutes=overtime,
                overtime_approved=overtime_approved,
            ),
            warnings=tuple(warnings),
        )

    def without_schedule(self, user_id: int, records: Sequence[BiometricRecord], shift_date: date) -> Attendance:
        first, last = self._first_and_last(records)
        logger.info("Created attendance without schedule for user %s on %s", user_id, shift_date)
        return Attendance(
            user_id=user_id,
            shift_date=shift_date,
            status=AttendanceStatus.NEEDS_MANUAL_REVIEW,
            actual_time_in=first.scanned_at if first else None,
            actual_time_out=last.scanned_at if last else None,
            bio_in_site_id=first.site_id if first else None,
            bio_out_site_id=last.site_id if last else None,
            total_minutes_worked=self._unscheduled_minutes(first, last),
            notes=(
                "No schedule found for this employee. Created from biometric data. "
                f"Employee has {len(records)} scan(s) on this date. Requires verification."
            ),
        )

    def non_work_day(
        self, user_id: int, schedule: EmployeeSchedule, records: Sequence[BiometricRecord], shift_date: date
    ) -> Attendance:
        first, last = self._first_and_last(records)
        day_name = shift_date.strftime("%A")
        logger.info("Created non-work day attendance for user %s on %s (%s)", user_id, shift_date, day_name)
        return Attendance(
            user_id=user_id,
            shift_date=shift_date,
            status=AttendanceStatus.NON_WORK_DAY,
            schedule_id=schedule.schedule_id,
            scheduled_time_in=schedule.scheduled_time_in,
            scheduled_time_out=schedule.scheduled_time_out,
            actual_time_in=first.scanned_at if first else None,
            actual_time_out=last.scanned_at if last else None,
            bio_in_site_id=first.site_id if first else None,
            bio_out_site_id=last.site_id if last else None,
            total_minutes_worked=self._unscheduled_minutes(first, last),
            notes=(
                f"Biometric scans detected on non-scheduled work day ({day_name}). "
                f"Employee has {len(records)} scan(s) on this date. "
                "This may represent overtime, special work, or data issue. Requires verification."
            ),
        )

    def on_leave(self, user_id: int, schedule: EmployeeSchedule, shift_date: date, leave: LeaveRequest) -> Attendance:
        notes = f"On approved {leave.leave_type}" + (f" - {leave.reason}" if leave.reason else "")
        logger.info("Created on_leave attendance for user %s on %s", user_id, shift_date)
        return Attendance(
            user_id=user_id,
            shift_date=shift_date,
            status=AttendanceStatus.ON_LEAVE,
            schedule_id=schedule.schedule_id,
            leave_request_id=leave.leave_request_id,
            scheduled_time_in=schedule.scheduled_time_in,
            scheduled_time_out=schedule.scheduled_time_out,
            admin_verified=True,
            notes=notes,
        )

    def leave_conflict(
        self,
        user_id: int,
        schedule: EmployeeSchedule,
        records: Sequence[BiometricRecord],
        shift_date: date,
        leave: LeaveRequest,
    ) -> Attendance:
        """Scans during approved leave: compute normally and hold for HR review."""
        attendance = self.compute(user_id, schedule, records, shift_date)
        first, last = self._first_and_last(records)
        duration = round((last.scanned_at - first.scanned_at).total_seconds() / 3600, 2) if last else 0
        remark = (
            "Leave conflict: Employee on approved leave but has biometric activity. "
            f"Duration: {duration:g} hrs. Pending HR review."
        )
        logger.info(
            "Leave conflict for user %s on %s (leave %s, %s scan(s))",
            user_id,
            shift_date,
            leave.leave_request_id,
            len(records),
        )
        return replace(
            attendance,
            admin_verified=False,
            leave_request_id=leave.leave_request_id,
            notes=f"{attendance.notes} | {remark}" if attendance.notes else remark,
        )

    # ---- helpers ----

    @staticmethod
    def _first_and_last(records: Sequence[BiometricRecord]):
        ordered = sorted(records, key=lambda r: r.scanned_at)
        if not ordered:
            return None, None
        return ordered[0], (ordered[-1] if len(ordered) > 1 else None)

    def _unscheduled_minutes(self, first, last) -> Optional[int]:
        return self._calculator.worked_minutes(
            actual_in=first.scanned_at if first else None,
            actual_out=last.scanned_at if last else None,
        )
