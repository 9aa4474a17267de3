"""Pick time in / time out scans out of a user's records.

Every finder works on the scans of one calendar date and returns the chosen
record (so the caller keeps its site) or None.
"""

from __future__ import annotations

from datetime import date, time, timedelta
from typing import Optional, Sequence

from ..biometrics.model import BiometricRecord
from ..common.datetime_utils import combine, minutes_between
from ..core.constants import EARLY_SCAN_LIMIT_MINUTES, TIME_OUT_SEARCH_MINUTES


def scans_on(records: Sequence[BiometricRecord], on: date) -> list[BiometricRecord]:
    return sorted((r for r in records if r.scanned_at.date() == on), key=lambda r: r.scanned_at)


def find_time_in(
    records: Sequence[BiometricRecord], on: date, scheduled_in: Optional[time] = None
) -> Optional[BiometricRecord]:
    """Earliest scan on `on`, ignoring scans more than two hours before the scheduled time in."""
    candidates = scans_on(records, on)
    if scheduled_in is not None:
        earliest = combine(on, scheduled_in) - timedelta(minutes=EARLY_SCAN_LIMIT_MINUTES)
        candidates = [r for r in candidates if r.scanned_at >= earliest]
    return candidates[0] if candidates else None


def find_in_hours(
    records: Sequence[BiometricRecord], on: date, start_hour: int, end_hour: int
) -> Optional[BiometricRecord]:
    """Earliest scan on `on` whose hour is within [start_hour, end_hour]."""
    for r in scans_on(records, on):
        if start_hour <= r.scanned_at.hour <= end_hour:
            return r
    return None


def find_time_out(
    records: Sequence[BiometricRecord],
    on: date,
    expected_hour: Optional[int] = None,
    scheduled_out: Optional[time] = None,
) -> Optional[BiometricRecord]:
    """First scan on `on` within eight hours either side of the scheduled time out.

    Morning time outs (01:00-11:59) ignore scans before 01:00, which are
    time ins of a graveyard start; a midnight time out keeps them. Without a
    scheduled time the earliest scan is used for early-morning outs and the
    latest otherwise.
    """
    candidates = scans_on(records, on)
    if not candidates:
        return None

    morning = expected_hour is not None and 1 <= expected_hour < 12
    if scheduled_out is None:
        if expected_hour is not None and 0 <= expected_hour < 6:
            return candidates[0]
        return candidates[-1]

    if morning:
        candidates = [r for r in candidates if r.scanned_at.hour >= 1]

    target = combine(on, scheduled_out)
    for r in candidates:
        diff = minutes_between(target, r.scanned_at)
        if -TIME_OUT_SEARCH_MINUTES <= diff <= TIME_OUT_SEARCH_MINUTES:
            return r
    return None
