from src.biometric_attendance.biometric_attendance.core.enums import PolicyScope, RecordType
from src.biometric_attendance.biometric_attendance.retention.model import RetentionPolicy
from src.biometric_attendance.biometric_attendance.retention.resolver import resolve_retention_months


def policy(policy_id, months, *, site_id=None, record_type=RecordType.ALL, priority=0, active=True):
    return RetentionPolicy(
        policy_id=policy_id,
        name=f"Policy {policy_id}",
        retention_months=months,
        applies_to_type=PolicyScope.SITE if site_id else PolicyScope.GLOBAL,
        applies_to_id=site_id,
        record_type=record_type,
        priority=priority,
        is_active=active,
    )


def test_defaults_without_policies():
    assert resolve_retention_months([]) == 3
    assert resolve_retention_months([], record_type=RecordType.ATTENDANCE_POINT) == 12


def test_site_specific_type_wins():
    policies = [policy(1, 6), policy(2, 2, site_id=1, record_type=RecordType.BIOMETRIC_RECORD)]

    assert resolve_retention_months(policies, site_id=1) == 2
    assert resolve_retention_months(policies, site_id=2) == 6
    assert resolve_retention_months(policies) == 6


def test_global_exact_type_beats_site_catch_all():
    policies = [policy(1, 4, record_type=RecordType.BIOMETRIC_RECORD), policy(2, 9, site_id=1)]
    assert resolve_retention_months(policies, site_id=1) == 4


def test_site_catch_all_beats_global_catch_all():
    policies = [policy(1, 6), policy(2, 9, site_id=1)]
    assert resolve_retention_months(policies, site_id=1) == 9


def test_higher_priority_wins_within_a_level():
    policies = [policy(1, 6, priority=0), policy(2, 8, priority=5)]
    assert resolve_retention_months(policies) == 8


def test_inactive_policies_are_ignored():
    policies = [policy(1, 6, active=False)]
    assert resolve_retention_months(policies) == 3
