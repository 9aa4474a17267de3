from __future__ import annotations

from datetime import date, datetime, time

import pytest

from src.biometric_attendance.biometric_attendance.attendance.model import Attendance
from src.biometric_attendance.biometric_attendance.attendance.processor import AttendanceProcessor, time_in_status
from src.biometric_attendance.biometric_attendance.core.enums import AttendanceStatus, ShiftType
from src.biometric_attendance.biometric_attendance.leaves.model import LeaveRequest
from tests.fakes import InMemoryAttendance, InMemoryLeaves, InMemorySchedules, make_schedule, scans

WED = date(2025, 11, 5)
FRI = date(2025, 11, 7)
SAT = date(2025, 11, 8)

DAY_SHIFT = make_schedule(1, time(8, 0), time(17, 0), site_id=1)


def build(schedules=(DAY_SHIFT,), leaves=(), rows=()):
    attendance = InMemoryAttendance(rows)
    processor = AttendanceProcessor(attendance, InMemorySchedules(schedules), InMemoryLeaves(leaves))
    return processor, attendance


@pytest.mark.parametrize(
    "tardy, expected",
    [(0, AttendanceStatus.ON_TIME), (-30, AttendanceStatus.ON_TIME), (1, AttendanceStatus.TARDY),
     (15, AttendanceStatus.TARDY), (16, AttendanceStatus.HALF_DAY_ABSENCE)],
)
def test_time_in_status_thresholds(tardy, expected):
    assert time_in_status(tardy, 15) == expected


def test_on_time_day_shift():
    processor, attendance = build()

    result = processor.process_user(1, scans(1, "2025-11-05 07:55", "2025-11-05 17:05", site_id=1))

    assert result.shifts_processed == 1
    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.ON_TIME
    assert row.actual_time_in == datetime(2025, 11, 5, 7, 55)
    assert row.actual_time_out == datetime(2025, 11, 5, 17, 5)
    assert row.tardy_minutes is None
    assert row.overtime_minutes is None
    assert row.total_minutes_worked == 485
    assert row.bio_in_site_id == 1
    assert row.is_cross_site_bio is False
    assert row.warnings == ()


def test_tardy_with_undertime_keeps_tardy_primary():
    processor, attendance = build()

    processor.process_user(1, scans(1, "2025-11-05 08:10", "2025-11-05 16:30", site_id=1))

    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.TARDY
    assert row.secondary_status == AttendanceStatus.UNDERTIME
    assert row.tardy_minutes == 10
    assert row.undertime_minutes == 30


def test_late_past_grace_is_half_day():
    processor, _ = build()

    row = processor.compute(1, DAY_SHIFT, scans(1, "2025-11-05 08:20", "2025-11-05 17:00"), WED)

    assert row.status == AttendanceStatus.HALF_DAY_ABSENCE
    assert row.tardy_minutes == 20


def test_single_morning_scan_is_time_in_only():
    processor, _ = build()

    row = processor.compute(1, DAY_SHIFT, scans(1, "2025-11-05 10:00"), WED)

    assert row.actual_time_in == datetime(2025, 11, 5, 10, 0)
    assert row.actual_time_out is None
    assert row.status == AttendanceStatus.HALF_DAY_ABSENCE
    assert row.secondary_status == AttendanceStatus.FAILED_BIO_OUT


def test_single_evening_scan_is_time_out_only():
    processor, _ = build()

    row = processor.compute(1, DAY_SHIFT, scans(1, "2025-11-05 17:02"), WED)

    assert row.actual_time_in is None
    assert row.actual_time_out == datetime(2025, 11, 5, 17, 2)
    assert row.status == AttendanceStatus.FAILED_BIO_IN


def test_cross_site_scan_is_flagged():
    processor, _ = build()
    records = scans(1, "2025-11-05 07:58", site_id=2) + scans(1, "2025-11-05 17:01", site_id=1, start_id=2)

    row = processor.compute(1, DAY_SHIFT, records, WED)

    assert row.bio_in_site_id == 2
    assert row.is_cross_site_bio is True


def test_double_punch_clears_time_out():
    processor, _ = build()

    row = processor.compute(1, DAY_SHIFT, scans(1, "2025-11-05 08:55", "2025-11-05 09:02"), WED)

    assert row.actual_time_in == datetime(2025, 11, 5, 8, 55)
    assert row.actual_time_out is None
    assert row.secondary_status == AttendanceStatus.FAILED_BIO_OUT
    assert row.warnings[0].startswith("DOUBLE PUNCH DETECTED: 08:55:00 → 09:02:00 (7 minutes apart)")


def test_overtime_over_threshold_is_recorded_and_capped_when_unapproved():
    processor, _ = build()
    records = scans(1, "2025-11-05 08:00", "2025-11-05 18:00")

    unapproved = processor.compute(1, DAY_SHIFT, records, WED)
    approved = processor.compute(1, DAY_SHIFT, records, WED, overtime_approved=True)

    assert unapproved.overtime_minutes == 60
    assert unapproved.total_minutes_worked == 480
    assert approved.total_minutes_worked == 540


def test_night_shift_spans_midnight():
    night = make_schedule(1, time(22, 0), time(7, 0), shift_type=ShiftType.NIGHT)
    processor, attendance = build(schedules=(night,))

    result = processor.process_user(1, scans(1, "2025-11-05 21:50", "2025-11-06 07:05"))

    assert [o.shift_date for o in result.outcomes] == [WED]
    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.ON_TIME
    assert row.actual_time_out == datetime(2025, 11, 6, 7, 5)
    assert row.total_minutes_worked == 485


def test_graveyard_shift_recorded_on_previous_work_day():
    graveyard = make_schedule(1, time(0, 30), time(9, 30), shift_type=ShiftType.GRAVEYARD)
    processor, attendance = build(schedules=(graveyard,))

    processor.process_user(1, scans(1, "2025-11-08 00:25", "2025-11-08 09:35"))

    assert attendance.get_for_user_and_date(1, SAT) is None
    row = attendance.get_for_user_and_date(1, FRI)
    assert row.status == AttendanceStatus.ON_TIME
    assert row.actual_time_in == datetime(2025, 11, 8, 0, 25)


def test_utility_shift_uses_first_and_last_scan():
    utility = make_schedule(1, time(6, 0), time(18, 0), shift_type=ShiftType.UTILITY_24H)
    processor, _ = build(schedules=(utility,))

    row = processor.compute(
        1, utility, scans(1, "2025-11-05 06:00", "2025-11-05 12:00", "2025-11-05 13:00"), WED
    )

    assert row.actual_time_out == datetime(2025, 11, 5, 13, 0)
    assert row.status == AttendanceStatus.UNDERTIME
    assert row.tardy_minutes is None and row.undertime_minutes is None
    assert row.warnings[-1] == "24H UTILITY: Only 7.0 hours worked (minimum 8 hours expected)."


def test_scans_without_schedule_need_review():
    processor, attendance = build(schedules=())

    result = processor.process_user(1, scans(1, "2025-11-05 09:00", "2025-11-05 18:00"))

    assert result.outcomes[0].kind == "no_schedule"
    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.NEEDS_MANUAL_REVIEW
    assert row.notes.startswith("No schedule found for this employee.")
    assert row.total_minutes_worked == 480


def test_non_work_day_is_stored_but_not_counted():
    processor, attendance = build()

    result = processor.process_user(1, scans(1, "2025-11-08 08:00", "2025-11-08 12:00"))

    assert result.shifts_processed == 0
    assert result.non_work_days == [SAT]
    row = attendance.get_for_user_and_date(1, SAT)
    assert row.status == AttendanceStatus.NON_WORK_DAY
    assert "(Saturday)" in row.notes


def test_approved_leave_without_scans_activity():
    leave = LeaveRequest(leave_request_id=9, user_id=1, leave_type="VL", start_date=WED, end_date=WED, reason="Trip")
    processor, attendance = build(leaves=(leave,))

    processor.process_user(1, scans(1, "2025-11-05 08:00"))

    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.ON_LEAVE
    assert row.admin_verified is True
    assert row.leave_request_id == 9
    assert row.notes == "On approved VL - Trip"


def test_scans_during_leave_are_held_for_review():
    leave = LeaveRequest(leave_request_id=9, user_id=1, leave_type="SL", start_date=WED, end_date=WED)
    processor, attendance = build(leaves=(leave,))

    result = processor.process_user(1, scans(1, "2025-11-05 08:00", "2025-11-05 17:00"))

    assert result.outcomes[0].kind == "leave_conflict"
    row = attendance.get_for_user_and_date(1, WED)
    assert row.status == AttendanceStatus.ON_TIME
    assert row.admin_verified is False
    assert "Duration: 9 hrs. Pending HR review." in row.notes


def test_admin_verified_rows_are_left_alone():
    verified = Attendance(user_id=1, shift_date=WED, status=AttendanceStatus.ADVISED_ABSENCE, admin_verified=True)
    processor, attendance = build(rows=(verified,))

    result = processor.process_user(1, scans(1, "2025-11-05 08:00", "2025-11-05 17:00"))

    assert result.outcomes[0].kind == "verified"
    assert result.shifts_processed == 0
    assert attendance.get_for_user_and_date(1, WED).status == AttendanceStatus.ADVISED_ABSENCE


def test_reprocessing_keeps_overtime_approval():
    existing = Attendance(user_id=1, shift_date=WED, status=AttendanceStatus.ON_TIME, overtime_approved=True)
    processor, attendance = build(rows=(existing,))

    processor.process_user(1, scans(1, "2025-11-05 08:00", "2025-11-05 18:00"))

    row = attendance.get_for_user_and_date(1, WED)
    assert row.overtime_approved is True
    assert row.total_minutes_worked == 540
