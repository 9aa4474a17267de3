from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus

# Unverified rows in these statuses show up in the "needs verification" count.
VERIFICATION_STATUSES = (
    AttendanceStatus.NEEDS_MANUAL_REVIEW,
    AttendanceStatus.FAILED_BIO_IN,
    AttendanceStatus.FAILED_BIO_OUT,
    AttendanceStatus.NON_WORK_DAY,
)


@dataclass(frozen=True)
class Attendance:
    """Domain entity: the computed (or hand-entered) attendance of one shift."""

    user_id: int
    shift_date: date
    status: AttendanceStatus
    attendance_id: Optional[int] = None
    schedule_id: Optional[int] = None
    leave_request_id: Optional[int] = None
    scheduled_time_in: Optional[time] = None
    scheduled_time_out: Optional[time] = None
    actual_time_in: Optional[datetime] = None
    actual_time_out: Optional[datetime] = None
    bio_in_site_id: Optional[int] = None
    bio_out_site_id: Optional[int] = None
    secondary_status: Optional[AttendanceStatus] = None
    tardy_minutes: Optional[int] = None
    undertime_minutes: Optional[int] = None
    overtime_minutes: Optional[int] = None
    overtime_approved: bool = False
    is_cross_site_bio: bool = False
    total_minutes_worked: Optional[int] = None
    admin_verified: bool = False
    warnings: tuple[str, ...] = field(default_factory=tuple)
    notes: Optional[str] = None
    verification_notes: Optional[str] = None

    @property
    def needs_verification(self) -> bool:
        return not self.admin_verified and self.status in VERIFICATION_STATUSES

    def to_dict(self) -> dict:
        def _dt(value: Optional[datetime]) -> Optional[str]:
            return value.strftime("%Y-%m-%d %H:%M:%S") if value else None

        def _t(value: Optional[time]) -> Optional[str]:
            return value.strftime("%H:%M:%S") if value else None

        return {
            "id": self.attendance_id,
            "user_id": self.user_id,
            "shift_date": self.shift_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "secondary_status": self.secondary_status.value if self.secondary_status else None,
            "scheduled_time_in": _t(self.scheduled_time_in),
            "scheduled_time_out": _t(self.scheduled_time_out),
            "actual_time_in": _dt(self.actual_time_in),
            "actual_time_out": _dt(self.actual_time_out),
            "bio_in_site_id": self.bio_in_site_id,
            "bio_out_site_id": self.bio_out_site_id,
            "tardy_minutes": self.tardy_minutes,
            "undertime_minutes": self.undertime_minutes,
            "overtime_minutes": self.overtime_minutes,
            "overtime_approved": self.overtime_approved,
            "is_cross_site_bio": self.is_cross_site_bio,
            "total_minutes_worked": self.total_minutes_worked,
            "admin_verified": self.admin_verified,
            "warnings": list(self.warnings),
            "notes": self.notes,
            "verification_notes": self.verification_notes,
            "leave_request_id": self.leave_request_id,
        }


@dataclass(frozen=True)
class AttendanceExportRow:
    """Read-model for spreadsheet export (joined names instead of ids)."""

    user_id: int
    employee_name: str
    campaign_name: Optional[str]
    shift_date: date
    scheduled_time_in: Optional[time]
    scheduled_time_out: Optional[time]
    actual_time_in: Optional[datetime]
    actual_time_out: Optional[datetime]
    time_in_site: Optional[str]
    time_out_site: Optional[str]
    status: AttendanceStatus
    secondary_status: Optional[AttendanceStatus]
    tardy_minutes: Optional[int]
    undertime_minutes: Optional[int]
    overtime_minutes: Optional[int]
    overtime_approved: bool
    is_cross_site_bio: bool
    admin_verified: bool


@dataclass(frozen=True)
class ExportFilters:
    start_date: date
    end_date: date
    user_ids: tuple[int, ...] = ()
    site_ids: tuple[int, ...] = ()
    campaign_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class ManualEntry:
    """Validated roster form: an attendance typed in by an admin."""

    user_id: int
    shift_date: date
    status: AttendanceStatus
    actual_time_in: Optional[datetime] = None
    actual_time_out: Optional[datetime] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class Verification:
    status: AttendanceStatus
    verification_notes: str
    actual_time_in: Optional[datetime] = None
    actual_time_out: Optional[datetime] = None
    overtime_approved: Optional[bool] = None


# "" keeps the needs-verification scope; the others filter on admin_verified only.
REVIEW_SCOPES = ("", "pending", "verified", "all")


@dataclass(frozen=True)
class ReviewFilters:
    scope: str = ""
    status: Optional[AttendanceStatus] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    user_id: Optional[int] = None
    search: Optional[str] = None

    def to_query(self) -> dict:
        return {
            "scope": self.scope,
            "status": self.status.value if self.status else "",
            "date_from": self.date_from.strftime("%Y-%m-%d") if self.date_from else "",
            "date_to": self.date_to.strftime("%Y-%m-%d") if self.date_to else "",
            "user_id": self.user_id or "",
            "search": self.search or "",
        }


@dataclass(frozen=True)
class ReviewRow:
    attendance: Attendance
    name: str
