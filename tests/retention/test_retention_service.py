from datetime import date, datetime

import pytest

from src.biometric_attendance.biometric_attendance.core.enums import PolicyScope, RecordType
from src.biometric_attendance.biometric_attendance.core.exceptions import NotFoundError, ValidationError
from src.biometric_attendance.biometric_attendance.retention.model import RetentionPolicy
from src.biometric_attendance.biometric_attendance.retention.service import RetentionService
from src.biometric_attendance.biometric_attendance.sites.model import Site
from tests.fakes import InMemoryBiometrics, InMemoryPolicies, InMemorySites, scans

TODAY = datetime(2025, 11, 15, 9, 0)
SITES = InMemorySites([Site(1, "Main"), Site(2, "North")])


def stored_records():
    return (
        scans(1, "2025-07-01 08:00", "2025-09-01 08:00", site_id=1, start_id=1)
        + scans(2, "2025-09-01 08:00", "2025-10-20 08:00", site_id=2, start_id=3)
        + scans(3, "2025-08-01 08:00", "2025-10-01 08:00", start_id=5)
    )


def build(policies=(), records=None):
    repo = InMemoryBiometrics(stored_records() if records is None else records)
    service = RetentionService(InMemoryPolicies(policies), repo, SITES, clock=lambda: TODAY)
    return service, repo


def north_policy():
    return RetentionPolicy(
        policy_id=1,
        name="North short",
        retention_months=1,
        applies_to_type=PolicyScope.SITE,
        applies_to_id=2,
        record_type=RecordType.BIOMETRIC_RECORD,
    )


def valid_form(**overrides):
    form = {
        "name": "Default",
        "retention_months": "6",
        "applies_to_type": "global",
        "record_type": "all",
        "priority": "0",
    }
    form.update(overrides)
    return form


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": "  "}, "Name is required"),
        ({"retention_months": "0"}, "Retention months must be between 1 and 120"),
        ({"retention_months": "121"}, "Retention months must be between 1 and 120"),
        ({"applies_to_type": "region"}, "Applies to must be global or site"),
        ({"applies_to_type": "site"}, "A site is required for site policies"),
        ({"applies_to_type": "site", "applies_to_id": "99"}, "Site does not exist"),
        ({"record_type": "payslip"}, "Unknown record type"),
        ({"priority": "-1"}, "Priority must be 0 or greater"),
    ],
)
def test_validate_rejects_bad_input(overrides, message):
    service, _ = build()
    with pytest.raises(ValidationError, match=message):
        service.validate(valid_form(**overrides))


def test_create_then_toggle():
    service, _ = build()

    policy_id = service.create_policy(valid_form(applies_to_type="site", applies_to_id="2", priority=""))
    created = service.get_policy(policy_id)
    assert created.applies_to_id == 2
    assert created.priority == 0
    assert created.is_active is True

    assert service.toggle_policy(policy_id).is_active is False
    assert service.toggle_policy(policy_id).is_active is True


def test_update_sets_or_keeps_active_flag():
    service, _ = build([north_policy()])

    service.update_policy(1, valid_form(is_active="0"))
    assert service.get_policy(1).is_active is False

    service.update_policy(1, valid_form(name="Renamed"))
    assert service.get_policy(1).name == "Renamed"
    assert service.get_policy(1).is_active is False

    service.update_policy(1, valid_form(is_active="on"))
    assert service.get_policy(1).is_active is True


def test_create_can_start_inactive():
    service, _ = build()

    policy_id = service.create_policy(valid_form(is_active="false"))

    assert service.get_policy(policy_id).is_active is False


def test_missing_policy_raises_not_found():
    service, _ = build()
    with pytest.raises(NotFoundError):
        service.delete_policy(42)


def test_cutoff_uses_resolved_months():
    service, _ = build([north_policy()])

    assert service.cutoff_date(site_id=2) == date(2025, 10, 15)
    assert service.cutoff_date(site_id=1) == date(2025, 8, 15)


def test_preview_counts_records_before_cutoff():
    service, _ = build([north_policy()])
    policy_id = service.create_policy(valid_form(retention_months="3"))

    preview = service.preview(policy_id)

    assert preview["cutoff_date"] == "2025-08-15"
    assert preview["total_affected"] == 2
    assert preview["preview"][0]["oldest_date"] == "2025-07-01"
    assert preview["preview"][0]["newest_date"] == "2025-08-01"


def test_preview_for_site_policy_only_counts_that_site():
    service, _ = build([north_policy()])

    preview = service.preview(1)

    assert preview["cutoff_date"] == "2025-10-15"
    assert preview["total_affected"] == 1


def test_preview_of_point_policy_has_nothing_to_delete():
    service, _ = build()
    policy_id = service.create_policy(valid_form(record_type="attendance_point"))

    assert service.preview(policy_id)["preview"] == []
    assert service.preview(policy_id)["total_affected"] == 0


def test_age_statistics_buckets():
    records = scans(1, "2025-11-15 08:00", "2025-10-01 08:00", "2025-06-01 08:00", "2023-01-01 08:00")
    service, _ = build(records=records)

    stats = service.age_statistics()["biometric_record"]

    assert stats["total"] == 4
    assert [b["count"] for b in stats["by_age"]] == [2, 1, 0, 0, 1]


def test_cleanup_dry_run_keeps_records():
    service, repo = build([north_policy()])

    report = service.cleanup(dry_run=True)

    assert report.total == 3
    assert [s.site_name for s in report.sites] == ["Main", "North", "Global (No Site)"]
    assert len(repo.records) == 6


def test_cleanup_deletes_per_site_cutoff():
    service, repo = build([north_policy()])

    report = service.cleanup()

    assert report.total == 3
    assert sorted(r.record_id for r in repo.records) == [2, 4, 6]
    assert service.eligible_count() == 0


def test_check_expiry_reports_records_near_cutoff():
    records = scans(1, "2025-08-20 08:00", "2025-09-30 08:00", site_id=1)
    service, _ = build(records=records)

    warnings = service.check_expiry(days=7)

    assert len(warnings) == 1
    assert warnings[0].site_name == "Main"
    assert warnings[0].count == 1
    assert warnings[0].oldest_date == date(2025, 8, 20)
    assert warnings[0].deletion_date == date(2025, 8, 15)


def test_check_expiry_rejects_negative_days():
    service, _ = build()
    with pytest.raises(ValidationError):
        service.check_expiry(days=-1)
