from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access control."""

    ADMIN = "admin"
    STAFF = "staff"


class AttendanceStatus(str, Enum):
    """Canonical attendance statuses stored in the database."""

    ON_TIME = "on_time"
    TARDY = "tardy"
    HALF_DAY_ABSENCE = "half_day_absence"
    ADVISED_ABSENCE = "advised_absence"
    NCNS = "ncns"
    UNDERTIME = "undertime"
    UNDERTIME_MORE_THAN_HOUR = "undertime_more_than_hour"
    FAILED_BIO_IN = "failed_bio_in"
    FAILED_BIO_OUT = "failed_bio_out"
    PRESENT_NO_BIO = "present_no_bio"
    NEEDS_MANUAL_REVIEW = "needs_manual_review"
    NON_WORK_DAY = "non_work_day"
    ON_LEAVE = "on_leave"


# Statuses an admin may pick when entering attendance by hand.
MANUAL_ENTRY_STATUSES = (
    AttendanceStatus.ON_TIME,
    AttendanceStatus.TARDY,
    AttendanceStatus.HALF_DAY_ABSENCE,
    AttendanceStatus.ADVISED_ABSENCE,
    AttendanceStatus.NCNS,
    AttendanceStatus.UNDERTIME,
    AttendanceStatus.UNDERTIME_MORE_THAN_HOUR,
    AttendanceStatus.FAILED_BIO_IN,
    AttendanceStatus.FAILED_BIO_OUT,
    AttendanceStatus.PRESENT_NO_BIO,
)


class ShiftType(str, Enum):
    MORNING = "morning_shift"
    AFTERNOON = "afternoon_shift"
    NIGHT = "night_shift"
    GRAVEYARD = "graveyard_shift"
    UTILITY_24H = "utility_24h"


class AnomalyType(str, Enum):
    SIMULTANEOUS_SITES = "simultaneous_sites"
    IMPOSSIBLE_GAPS = "impossible_gaps"
    DUPLICATE_SCANS = "duplicate_scans"
    UNUSUAL_HOURS = "unusual_hours"
    EXCESSIVE_SCANS = "excessive_scans"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {Severity.LOW: 1, Severity.MEDIUM: 2, Severity.HIGH: 3}[self]


class RecordType(str, Enum):
    """Kinds of data a retention policy can target."""

    ALL = "all"
    BIOMETRIC_RECORD = "biometric_record"
    ATTENDANCE_POINT = "attendance_point"


class PolicyScope(str, Enum):
    GLOBAL = "global"
    SITE = "site"
