from datetime import date, datetime

from src.biometric_attendance.biometric_attendance.anomalies.detector import (
    build_statistics,
    detect_duplicate_scans,
    detect_excessive_scans,
    detect_impossible_gaps,
    detect_simultaneous_sites,
    detect_unusual_hours,
)
from src.biometric_attendance.biometric_attendance.anomalies.service import AnomalyService
from src.biometric_attendance.biometric_attendance.core.enums import AnomalyType, Severity
from tests.fakes import InMemoryBiometrics, scans


def test_simultaneous_sites_severity_by_gap():
    records = scans(1, "2025-11-05 08:00", site_id=1) + scans(1, "2025-11-05 08:05", site_id=2, start_id=2)

    found = detect_simultaneous_sites(records)

    assert len(found) == 1
    assert found[0].severity == Severity.HIGH
    assert found[0].details["minutes_apart"] == 5


def test_simultaneous_sites_ignores_far_apart_scans():
    records = scans(1, "2025-11-05 08:00", site_id=1) + scans(1, "2025-11-05 08:45", site_id=2, start_id=2)
    assert detect_simultaneous_sites(records) == []


def test_impossible_gap_uses_storage_order():
    records = scans(1, "2025-11-05 17:00", "2025-11-05 08:00")

    found = detect_impossible_gaps(records)

    assert [a.type for a in found] == [AnomalyType.IMPOSSIBLE_GAPS]
    assert found[0].on == date(2025, 11, 5)


def test_duplicates_within_same_minute():
    records = scans(1, "2025-11-05 08:00", "2025-11-05 08:00")
    found = detect_duplicate_scans(records)

    assert len(found) == 1
    assert found[0].severity == Severity.LOW
    assert found[0].description == "2 scans within same minute"


def test_unusual_hours_between_two_and_five():
    records = scans(1, "2025-11-05 01:59", "2025-11-05 02:00", "2025-11-05 04:59", "2025-11-05 05:00")
    assert [a.record_ids for a in detect_unusual_hours(records)] == [(2,), (3,)]


def test_excessive_scans_over_six_per_day():
    times = [f"2025-11-05 {h:02d}:00" for h in range(8, 15)]
    found = detect_excessive_scans(scans(1, *times))

    assert len(found) == 1
    assert found[0].severity == Severity.MEDIUM
    assert found[0].details["scan_count"] == 7


def test_statistics_counts_every_type_and_severity():
    records = scans(1, "2025-11-05 03:00")
    stats = build_statistics(detect_unusual_hours(records))

    assert stats["total_anomalies"] == 1
    assert stats["by_type"]["unusual_hours"] == 1
    assert stats["by_type"]["duplicate_scans"] == 0
    assert stats["by_severity"] == {"high": 0, "medium": 0, "low": 1}


def test_service_filters_by_min_severity():
    records = scans(1, "2025-11-05 03:00", "2025-11-05 08:00", "2025-11-05 08:00")
    service = AnomalyService(InMemoryBiometrics(records), clock=lambda: datetime(2025, 11, 6, 12, 0))

    result = service.detect(
        start_date=date(2025, 11, 1),
        end_date=date(2025, 11, 6),
        min_severity=Severity.MEDIUM,
    )

    assert result.anomalies == []
    assert result.statistics["total_anomalies"] == 0
