from datetime import datetime

from src.biometric_attendance.biometric_attendance.biometrics.parser import (
    decode_export,
    normalize_name,
    parse_content,
    parse_datetime,
    parse_line,
)


def test_normalize_name_strips_periods_and_hyphens():
    assert normalize_name("Cabarliza M.") == "cabarliza m"
    assert normalize_name("  Ogao-ogao   J ") == "ogao ogao j"


def test_parse_datetime_drops_trailing_line_number_noise():
    assert parse_datetime("2025-01-13 22:26:181") == datetime(2025, 1, 13, 22, 26, 18)
    assert parse_datetime("2025-11-05  05:50:25") == datetime(2025, 11, 5, 5, 50, 25)
    assert parse_datetime("not a date") is None


def test_parse_line_tab_separated():
    scan = parse_line("1\t1\t10\tNodado A\tFP\t2025-11-05  05:50:25")

    assert scan is not None
    assert scan.name == "Nodado A"
    assert scan.device_user_id == "10"
    assert scan.mode == "FP"
    assert scan.scanned_at == datetime(2025, 11, 5, 5, 50, 25)
    assert scan.normalized_name == "nodado a"


def test_parse_line_space_separated_keeps_double_spaced_datetime():
    scan = parse_line("2  1  11  Santos M  FP  2025-11-05  06:01:00")

    assert scan is not None
    assert scan.name == "Santos M"
    assert scan.scanned_at == datetime(2025, 11, 5, 6, 1, 0)


def test_parse_content_skips_header_and_reports_bad_lines():
    content = (
        "No\tMchn\tEnNo\tName\tMode\tDateTime\r\n"
        "1\t1\t10\tNodado A\tFP\t2025-11-05  05:50:25\r\n"
        "garbage\r\n"
        "\r\n"
        "3\t1\t12\tReyes J\tFP\t2025-11-05 17:02:11\x00\r\n"
    )

    result = parse_content(content)

    assert [s.name for s in result.scans] == ["Nodado A", "Reyes J"]
    assert result.skipped_lines == [3]


def test_decode_export_falls_back_to_cp1252():
    raw = "Peña J".encode("cp1252")
    assert decode_export(raw) == "Peña J"
