from __future__ import annotations

from typing import Iterable, Optional

from ..core.constants import DEFAULT_POINT_RETENTION_MONTHS, DEFAULT_RETENTION_MONTHS
from ..core.enums import RecordType
from .model import RetentionPolicy


def default_retention_months(record_type: RecordType) -> int:
    if record_type == RecordType.ATTENDANCE_POINT:
        return DEFAULT_POINT_RETENTION_MONTHS
    return DEFAULT_RETENTION_MONTHS


def resolve_retention_months(
    policies: Iterable[RetentionPolicy],
    *,
    site_id: Optional[int] = None,
    record_type: RecordType = RecordType.BIOMETRIC_RECORD,
) -> int:
    """Months to keep records of `record_type` at `site_id`.

    Resolution order over active policies, highest priority first:
    site + exact type, global + exact type, site + all, global + all, default.
    """
    active = sorted((p for p in policies if p.is_active), key=lambda p: p.priority, reverse=True)

    def first(candidates) -> Optional[RetentionPolicy]:
        return next(iter(candidates), None)

    lookups = []
    if record_type != RecordType.ALL:
        lookups.append([p for p in active if p.record_type == record_type and p.applies_to_site(site_id)])
        lookups.append([p for p in active if p.record_type == record_type and p.is_global])
    lookups.append([p for p in active if p.record_type == RecordType.ALL and p.applies_to_site(site_id)])
    lookups.append([p for p in active if p.record_type == RecordType.ALL and p.is_global])

    for candidates in lookups:
        match = first(candidates)
        if match:
            return int(match.retention_months)
    return default_retention_months(record_type)
