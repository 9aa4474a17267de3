from datetime import date, time

import pytest

from src.biometric_attendance.biometric_attendance.attendance.model import Attendance
from src.biometric_attendance.biometric_attendance.attendance.processor import AttendanceProcessor
from src.biometric_attendance.biometric_attendance.core.enums import AttendanceStatus
from src.biometric_attendance.biometric_attendance.core.exceptions import ValidationError
from src.biometric_attendance.biometric_attendance.reprocessing.service import ReprocessingService
from tests.fakes import (
    InMemoryAttendance,
    InMemoryBiometrics,
    InMemoryLeaves,
    InMemorySchedules,
    InMemoryUsers,
    make_schedule,
    make_user,
    scans,
)

TUE = date(2025, 11, 4)
WED = date(2025, 11, 5)

USERS = InMemoryUsers([make_user(1, "Maria", "Santos"), make_user(2, "Juan", "Reyes")])
SCHEDULES = InMemorySchedules(
    [
        make_schedule(1, time(8, 0), time(17, 0), schedule_id=1),
        make_schedule(2, time(8, 0), time(17, 0), schedule_id=2),
    ]
)


def stored_records():
    return scans(1, "2025-11-05 08:00", "2025-11-05 17:00", start_id=1) + scans(
        2, "2025-11-05 08:20", "2025-11-05 17:00", start_id=3
    )


def build(rows=(), processor=None):
    attendance = InMemoryAttendance(rows)
    processor = processor or AttendanceProcessor(attendance, SCHEDULES, InMemoryLeaves())
    service = ReprocessingService(InMemoryBiometrics(stored_records()), attendance, USERS, processor)
    return service, attendance


class ExplodingProcessor:
    def process_user(self, user_id, records):
        raise RuntimeError("boom")


def test_preview_groups_records_by_employee():
    service, _ = build()

    preview = service.preview(TUE, WED)

    assert preview["total_records"] == 4
    assert preview["affected_users"] == 2
    assert preview["affected_dates"] == 1
    assert preview["date_range"] == {"start": "2025-11-05", "end": "2025-11-05"}
    assert [u["name"] for u in preview["users"]] == ["Juan Reyes", "Maria Santos"]


def test_preview_limited_to_selected_employees():
    service, _ = build()
    assert service.preview(TUE, WED, [2])["total_records"] == 2


def test_reprocess_replaces_existing_rows_in_range():
    stale = [
        Attendance(user_id=1, shift_date=TUE, status=AttendanceStatus.NCNS),
        Attendance(user_id=1, shift_date=WED, status=AttendanceStatus.NCNS),
    ]
    service, attendance = build(rows=stale)

    result = service.reprocess(TUE, WED)

    assert result.processed == 2
    assert result.failed == 0
    assert result.deleted == 2
    assert attendance.get_for_user_and_date(1, TUE) is None
    assert attendance.get_for_user_and_date(1, WED).status == AttendanceStatus.ON_TIME
    assert attendance.get_for_user_and_date(2, WED).status == AttendanceStatus.HALF_DAY_ABSENCE
    assert {d["user"] for d in result.details} == {"Maria Santos", "Juan Reyes"}


def test_reprocess_can_keep_existing_rows():
    stale = [Attendance(user_id=1, shift_date=TUE, status=AttendanceStatus.NCNS)]
    service, attendance = build(rows=stale)

    result = service.reprocess(TUE, WED, delete_existing=False)

    assert result.deleted == 0
    assert attendance.get_for_user_and_date(1, TUE).status == AttendanceStatus.NCNS


def test_reprocess_reports_failures_per_employee():
    service, _ = build(processor=ExplodingProcessor())

    result = service.reprocess(TUE, WED, [1])

    assert result.processed == 0
    assert result.failed == 1
    assert result.to_dict()["errors"] == [{"user": "Maria Santos", "error": "boom"}]


def test_unknown_employee_is_rejected():
    service, _ = build()
    with pytest.raises(ValidationError, match="Unknown employee id\\(s\\): 9"):
        service.reprocess(TUE, WED, [1, 9])


def test_reversed_range_is_rejected():
    service, _ = build()
    with pytest.raises(ValidationError):
        service.preview(WED, TUE)


def test_statistics_report_stored_range():
    service, _ = build()

    assert service.statistics() == {"total_records": 4, "oldest_record": WED, "newest_record": WED}


def test_statistics_without_records():
    service = ReprocessingService(InMemoryBiometrics(), InMemoryAttendance(), USERS, None)

    assert service.statistics() == {"total_records": 0, "oldest_record": None, "newest_record": None}
