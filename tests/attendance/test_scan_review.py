from datetime import date, datetime

from src.biometric_attendance.biometric_attendance.attendance.review import review_scan_patterns
from src.biometric_attendance.biometric_attendance.attendance.strategies.base import ShiftWindow
from tests.fakes import scans

WED = date(2025, 11, 5)


def day_window(time_in=None, time_out=None) -> ShiftWindow:
    return ShiftWindow(
        scheduled_in=datetime(2025, 11, 5, 8, 0),
        scheduled_out=datetime(2025, 11, 5, 17, 0),
        time_in=time_in,
        time_out=time_out,
    )


def test_normal_day_has_no_warnings():
    records = scans(1, "2025-11-05 07:58", "2025-11-05 17:03")
    assert review_scan_patterns(records, day_window(records[0], records[1]), WED) == []


def test_lone_scan_far_from_schedule():
    records = scans(1, "2025-11-05 12:30")

    warnings = review_scan_patterns(records, day_window(), WED)

    assert warnings[0].startswith("Employee has only 1 biometric scan(s) on this date (2025-11-05 12:30)")
    assert warnings[1] == "No valid time IN/OUT detected from 1 scan(s) at: 12:30"


def test_time_in_far_before_schedule():
    records = scans(1, "2025-11-05 04:00", "2025-11-05 17:00")

    warnings = review_scan_patterns(records, day_window(records[0], records[1]), WED)

    assert warnings == ["Time IN is 4 hours before scheduled time (2025-11-05 04:00 vs 2025-11-05 08:00)"]


def test_time_out_far_after_schedule():
    records = scans(1, "2025-11-05 08:00", "2025-11-05 21:30")

    warnings = review_scan_patterns(records, day_window(records[0], records[1]), WED)

    assert warnings == ["Time OUT is 4.5 hours after scheduled time (2025-11-05 21:30 vs 2025-11-05 17:00)"]


def test_time_out_far_before_schedule():
    records = scans(1, "2025-11-05 08:00", "2025-11-05 12:30")

    warnings = review_scan_patterns(records, day_window(records[0], records[1]), WED)

    assert len(warnings) == 1
    assert warnings[0].startswith("Time OUT is 4.5 hours before scheduled time (2025-11-05 12:30 vs 2025-11-05 17:00).")


def test_two_unmatched_scans_far_apart():
    records = scans(1, "2025-11-04 19:00", "2025-11-05 12:30")

    warnings = review_scan_patterns(records, day_window(), WED)

    assert "Only 2 scans found with 17.5 hours gap (19:00 and 12:30), neither matches schedule" in warnings
    assert warnings[-1] == "No valid time IN/OUT detected from 2 scan(s) at: 19:00, 12:30"


def test_scans_outside_neighbouring_days_are_ignored():
    records = scans(1, "2025-11-01 12:30")
    assert review_scan_patterns(records, day_window(), WED) == []
