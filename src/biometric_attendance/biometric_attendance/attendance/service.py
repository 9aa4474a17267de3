from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, Mapping, Optional

from ..common.datetime_utils import combine, minutes_between, now_local, parse_local_datetime, parse_optional_date
from ..common.pagination import Page, clamp_page
from ..common.validators import optional_bool, optional_int, require_date_order, require_max_length, require_non_empty
from ..core.constants import REVIEW_PER_PAGE
from ..core.enums import MANUAL_ENTRY_STATUSES, AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..leaves.model import LeaveRequest
from ..leaves.repository import LeaveRepository
from ..schedules.model import EmployeeSchedule
from ..schedules.repository import ScheduleRepository
from ..sites.repository import SiteRepository
from ..users.repository import UserRepository
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator
from .model import REVIEW_SCOPES, Attendance, ManualEntry, ReviewFilters, ReviewRow, Verification
from .repository import AttendanceRepository
from .suggestion import SuggestedStatus, suggest_status

logger = logging.getLogger(__name__)

ROSTER_STATES = ("pending", "recorded", "on_leave")


@dataclass(frozen=True)
class RosterRow:
    user_id: int
    name: str
    schedule: EmployeeSchedule
    attendance: Optional[Attendance] = None
    leave: Optional[LeaveRequest] = None
    suggestion: Optional[SuggestedStatus] = None

    @property
    def on_leave(self) -> bool:
        return self.leave is not None

    @property
    def state(self) -> str:
        if self.attendance:
            return "recorded"
        return "on_leave" if self.on_leave else "pending"


def _parse_status(value: Optional[str]) -> AttendanceStatus:
    try:
        status = AttendanceStatus((value or "").strip())
    except ValueError:
        raise ValidationError("Invalid attendance status")
    if status not in MANUAL_ENTRY_STATUSES:
        raise ValidationError("Invalid attendance status")
    return status


def _month_range(on: date) -> tuple[date, date]:
    start = on.replace(day=1)
    next_month = date(on.year + 1, 1, 1) if on.month == 12 else date(on.year, on.month + 1, 1)
    return start, next_month - timedelta(days=1)


class AttendanceService:
    """Dashboard counts, daily roster and admin entry/verification of attendance."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        schedules: ScheduleRepository,
        leaves: LeaveRepository,
        users: UserRepository,
        sites: SiteRepository,
        *,
        calculator: WorkedTimeCalculator | None = None,
        per_page: int = REVIEW_PER_PAGE,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._schedules = schedules
        self._leaves = leaves
        self._users = users
        self._sites = sites
        self._calculator = calculator or StandardWorkedTimeCalculator()
        self._clock = clock
        self._per_page = int(per_page)

    # ---- dashboard ----

    def statistics(self, start: Optional[str] = None, end: Optional[str] = None) -> dict:
        default_start, default_end = _month_range(self._clock().date())
        start_date = parse_optional_date(start, "Start date") or default_start
        end_date = parse_optional_date(end, "End date") or default_end
        require_date_order(start_date, end_date)

        counts = self._attendance.count_by_status(start_date, end_date)
        return {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
            "total": sum(v for k, v in counts.items() if k != "needs_verification"),
            "on_time": counts.get(AttendanceStatus.ON_TIME.value, 0),
            "tardy": counts.get(AttendanceStatus.TARDY.value, 0),
            "half_day": counts.get(AttendanceStatus.HALF_DAY_ABSENCE.value, 0),
            "ncns": counts.get(AttendanceStatus.NCNS.value, 0),
            "advised": counts.get(AttendanceStatus.ADVISED_ABSENCE.value, 0),
            "needs_verification": counts.get("needs_verification", 0),
        }

    # ---- roster ----

    def roster(
        self,
        on: Optional[date] = None,
        *,
        site_id: Optional[int] = None,
        campaign_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        on = on or self._clock().date()
        schedules = [
            s
            for s in self._schedules.list_effective_on(on, site_id=site_id, campaign_id=campaign_id)
            if s.works_on_day(on)
        ]
        users = {u.user_id: u for u in self._users.get_many([s.user_id for s in schedules])}
        recorded = {a.user_id: a for a in self._attendance.list_for_date(on)}
        leaves = {l.user_id: l for l in self._leaves.list_approved_on(on)}

        rows: list[RosterRow] = []
        for s in schedules:
            user = users.get(s.user_id)
            if not user:
                continue
            attendance = recorded.get(s.user_id)
            suggestion = None
            if attendance and (attendance.actual_time_in or attendance.actual_time_out):
                suggestion = suggest_status(s, on, attendance.actual_time_in, attendance.actual_time_out)
            rows.append(
                RosterRow(
                    user_id=user.user_id,
                    name=user.full_name,
                    schedule=s,
                    attendance=attendance,
                    leave=leaves.get(s.user_id),
                    suggestion=suggestion,
                )
            )
        rows.sort(key=lambda r: r.name.lower())

        counts = {
            "total": len(rows),
            "pending": sum(1 for r in rows if r.state == "pending"),
            "recorded": sum(1 for r in rows if r.attendance),
            "on_leave": sum(1 for r in rows if r.on_leave),
        }

        status = (status or "").strip()
        if status and status != "all":
            if status in ROSTER_STATES:
                rows = [r for r in rows if (r.on_leave if status == "on_leave" else r.state == status)]
            else:
                try:
                    wanted = AttendanceStatus(status)
                except ValueError:
                    raise ValidationError("Invalid status filter")
                rows = [r for r in rows if r.attendance and r.attendance.status == wanted]

        needle = (search or "").strip().lower()
        if needle:
            rows = [r for r in rows if needle in r.name.lower()]

        return {
            "date": on,
            "day_name": on.strftime("%A"),
            "rows": rows,
            "counts": counts,
        }

    def filter_options(self) -> dict:
        return {
            "sites": [{"id": s.site_id, "name": s.name} for s in self._sites.list_all()],
            "campaigns": [{"id": c.campaign_id, "name": c.name} for c in self._sites.list_campaigns()],
            "statuses": [s.value for s in MANUAL_ENTRY_STATUSES],
        }

    # ---- suggested status ----

    def suggest(self, user_id: int, shift_date: date, actual_in: Optional[str], actual_out: Optional[str]) -> SuggestedStatus:
        schedule = self._schedules.get_for_user_and_date(user_id=user_id, work_date=shift_date)
        if not schedule:
            raise NotFoundError("No active schedule for this employee on that date")
        return suggest_status(
            schedule,
            shift_date,
            parse_local_datetime(actual_in, "Time in"),
            parse_local_datetime(actual_out, "Time out"),
        )

    # ---- manual entry ----

    def validate_manual(self, form: Mapping) -> ManualEntry:
        user_id = optional_int(form.get("user_id"))
        if user_id is None or not self._users.get_by_id(user_id):
            raise ValidationError("Employee does not exist")
        shift_date = parse_optional_date(form.get("shift_date"), "Shift date")
        if not shift_date:
            raise ValidationError("Shift date is required")

        notes = (form.get("notes") or "").strip() or None
        return ManualEntry(
            user_id=user_id,
            shift_date=shift_date,
            status=_parse_status(form.get("status")),
            actual_time_in=parse_local_datetime(form.get("actual_time_in"), "Time in"),
            actual_time_out=parse_local_datetime(form.get("actual_time_out"), "Time out"),
            notes=require_max_length(notes, "Notes", 500),
        )

    def store_manual(self, entry: ManualEntry, *, created_by: str) -> Attendance:
        if self._attendance.get_for_user_and_date(entry.user_id, entry.shift_date):
            raise ValidationError("Attendance is already recorded for this employee on that date")

        schedule = self._schedules.get_for_user_and_date(user_id=entry.user_id, work_date=entry.shift_date)
        tardy = undertime = overtime = None
        if schedule and entry.actual_time_in and entry.actual_time_out:
            scheduled_in = combine(entry.shift_date, schedule.scheduled_time_in)
            scheduled_out = combine(entry.shift_date, schedule.scheduled_time_out)
            if scheduled_out <= scheduled_in:
                scheduled_out += timedelta(days=1)

            grace = timedelta(minutes=schedule.grace_period_minutes or 0)
            if entry.actual_time_in > scheduled_in + grace:
                tardy = minutes_between(scheduled_in, entry.actual_time_in)
            if entry.actual_time_out < scheduled_out:
                undertime = minutes_between(entry.actual_time_out, scheduled_out)
            elif entry.actual_time_out > scheduled_out:
                overtime = minutes_between(scheduled_out, entry.actual_time_out)

        attendance = Attendance(
            user_id=entry.user_id,
            shift_date=entry.shift_date,
            status=entry.status,
            schedule_id=schedule.schedule_id if schedule else None,
            scheduled_time_in=schedule.scheduled_time_in if schedule else None,
            scheduled_time_out=schedule.scheduled_time_out if schedule else None,
            actual_time_in=entry.actual_time_in,
            actual_time_out=entry.actual_time_out,
            tardy_minutes=tardy,
            undertime_minutes=undertime,
            overtime_minutes=overtime,
            total_minutes_worked=self._calculator.worked_minutes(
                actual_in=entry.actual_time_in, actual_out=entry.actual_time_out
            ),
            admin_verified=True,
            verification_notes=f"Manually created by {created_by}",
            notes=entry.notes,
        )
        attendance_id = self._attendance.save(attendance)
        logger.info(
            "Manual attendance for user %s on %s stored by %s (%s)",
            entry.user_id,
            entry.shift_date,
            created_by,
            entry.status.value,
        )
        return replace(attendance, attendance_id=attendance_id)

    # ---- verification ----

    def validate_verification(self, form: Mapping) -> Verification:
        notes = require_non_empty(form.get("verification_notes") or "", "Verification notes")
        return Verification(
            status=_parse_status(form.get("status")),
            verification_notes=require_max_length(notes, "Verification notes", 1000),
            actual_time_in=parse_local_datetime(form.get("actual_time_in"), "Time in"),
            actual_time_out=parse_local_datetime(form.get("actual_time_out"), "Time out"),
            overtime_approved=optional_bool(form.get("overtime_approved")),
        )

    def verify(self, attendance_id: int, verification: Verification) -> Attendance:
        current = self._attendance.get_by_id(attendance_id)
        if not current:
            raise NotFoundError("Attendance record not found")

        v = verification
        overtime_approved = current.overtime_approved if v.overtime_approved is None else v.overtime_approved
        tardy, undertime, overtime = current.tardy_minutes, current.undertime_minutes, current.overtime_minutes
        scheduled_in = scheduled_out = None

        if current.scheduled_time_in:
            scheduled_in = combine(current.shift_date, current.scheduled_time_in)
            if v.actual_time_in:
                signed = minutes_between(scheduled_in, v.actual_time_in)
                tardy = signed if signed > 0 else None

        if current.scheduled_time_out:
            scheduled_out = combine(current.shift_date, current.scheduled_time_out)
            if current.scheduled_time_in and current.scheduled_time_out <= current.scheduled_time_in:
                scheduled_out += timedelta(days=1)
            if v.actual_time_out:
                diff = minutes_between(scheduled_out, v.actual_time_out)
                if diff < -60:
                    undertime, overtime = abs(diff), None
                elif diff > 0:
                    undertime, overtime = None, diff
                else:
                    undertime = overtime = None

        updated = replace(
            current,
            status=v.status,
            actual_time_in=v.actual_time_in,
            actual_time_out=v.actual_time_out,
            tardy_minutes=tardy,
            undertime_minutes=undertime,
            overtime_minutes=overtime,
            overtime_approved=overtime_approved,
            admin_verified=True,
            verification_notes=v.verification_notes,
            total_minutes_worked=self._calculator.worked_minutes(
                actual_in=v.actual_time_in,
                actual_out=v.actual_time_out,
                scheduled_in=scheduled_in,
                scheduled_out=scheduled_out,
                overtime_minutes=overtime,
                overtime_approved=overtime_approved,
            ),
        )
        self._attendance.save(updated)
        logger.info(
            "Attendance %s verified: %s -> %s", attendance_id, current.status.value, updated.status.value
        )
        return updated


    # ---- review list ----

    def build_review_filters(self, args: Mapping) -> ReviewFilters:
        scope = (args.get("scope") or "").strip()
        if scope not in REVIEW_SCOPES:
            raise ValidationError("Invalid verification filter")

        status = None
        status_s = (args.get("status") or "").strip()
        if status_s and status_s != "all":
            try:
                status = AttendanceStatus(status_s)
            except ValueError:
                raise ValidationError("Invalid status filter")

        date_from = parse_optional_date(args.get("date_from"), "Date from")
        date_to = parse_optional_date(args.get("date_to"), "Date to")
        if date_from and date_to:
            require_date_order(date_from, date_to)

        return ReviewFilters(
            scope=scope,
            status=status,
            date_from=date_from,
            date_to=date_to,
            user_id=optional_int(args.get("user_id")),
            search=(args.get("search") or "").strip() or None,
        )

    def review(self, filters: ReviewFilters, page=1) -> Page[ReviewRow]:
        page = clamp_page(page)
        rows, total = self._attendance.list_for_review(
            filters, offset=(page - 1) * self._per_page, limit=self._per_page
        )
        names = {u.user_id: u.full_name for u in self._users.get_many(sorted({a.user_id for a in rows}))}
        items = [ReviewRow(attendance=a, name=names.get(a.user_id, f"#{a.user_id}")) for a in rows]
        return Page(items=items, page=page, per_page=self._per_page, total=int(total))

    def mark_advised(self, attendance_id: int, *, notes: Optional[str], by: str) -> Attendance:
        current = self._attendance.get_by_id(attendance_id)
        if not current:
            raise NotFoundError("Attendance record not found")

        notes = require_max_length((notes or "").strip() or None, "Notes", 1000)
        updated = replace(
            current,
            status=AttendanceStatus.ADVISED_ABSENCE,
            secondary_status=None,
            admin_verified=True,
            verification_notes=notes,
        )
        self._attendance.save(updated)
        logger.info("Attendance %s marked as advised absence by %s", attendance_id, by)
        return updated

    def bulk_delete(self, attendance_ids) -> int:
        ids = sorted({int(i) for i in attendance_ids or []})
        if not ids:
            raise ValidationError("Select at least one attendance record")
        missing = [i for i in ids if not self._attendance.get_by_id(i)]
        if missing:
            raise NotFoundError(f"Attendance record(s) not found: {', '.join(str(i) for i in missing)}")

        deleted = self._attendance.delete_many(ids)
        logger.info("Deleted %s attendance record(s): %s", deleted, ", ".join(str(i) for i in ids))
        return deleted
