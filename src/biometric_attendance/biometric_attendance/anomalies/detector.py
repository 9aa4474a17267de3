from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Callable, Iterable, Sequence

from ..biometrics.model import BiometricRecord
from ..core.constants import (
    DUPLICATE_HIGH_COUNT,
    EXCESSIVE_SCANS_HIGH,
    EXCESSIVE_SCANS_PER_DAY,
    SIMULTANEOUS_SITE_HIGH_MINUTES,
    SIMULTANEOUS_SITE_MINUTES,
    UNUSUAL_HOUR_END,
    UNUSUAL_HOUR_START,
)
from ..core.enums import AnomalyType, Severity
from .model import Anomaly


def _fmt(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")


def _name(record: BiometricRecord) -> str:
    return record.user_name or record.employee_name or "Unknown"


def _site(record: BiometricRecord) -> str:
    return record.site_name or f"Site {record.site_id}"


def _by_user(records: Iterable[BiometricRecord]) -> dict[int, list[BiometricRecord]]:
    grouped: dict[int, list[BiometricRecord]] = defaultdict(list)
    for r in records:
        grouped[r.user_id].append(r)
    return grouped


def detect_simultaneous_sites(records: Sequence[BiometricRecord]) -> list[Anomaly]:
    """Consecutive scans at different sites closer than travel time allows."""
    anomalies: list[Anomaly] = []
    sited = [r for r in records if r.site_id is not None]
    for user_id, user_records in sorted(_by_user(sited).items()):
        ordered = sorted(user_records, key=lambda r: (r.scanned_at, r.record_id))
        for current, nxt in zip(ordered, ordered[1:]):
            if current.site_id == nxt.site_id:
                continue
            minutes_apart = int(abs((nxt.scanned_at - current.scanned_at).total_seconds()) // 60)
            if minutes_apart >= SIMULTANEOUS_SITE_MINUTES:
                continue
            anomalies.append(
                Anomaly(
                    type=AnomalyType.SIMULTANEOUS_SITES,
                    severity=Severity.HIGH if minutes_apart < SIMULTANEOUS_SITE_HIGH_MINUTES else Severity.MEDIUM,
                    user_id=user_id,
                    user_name=_name(current),
                    description=f"Bio at {minutes_apart} minutes apart at different sites",
                    record_ids=(current.record_id, nxt.record_id),
                    on=current.record_date,
                    details={
                        "minutes_apart": minutes_apart,
                        "record_1": {"id": current.record_id, "datetime": _fmt(current.scanned_at), "site": _site(current)},
                        "record_2": {"id": nxt.record_id, "datetime": _fmt(nxt.scanned_at), "site": _site(nxt)},
                    },
                )
            )
    return anomalies


def detect_impossible_gaps(records: Sequence[BiometricRecord]) -> list[Anomaly]:
    """Time going backwards within a day, judged in the order the device stored the scans."""
    anomalies: list[Anomaly] = []
    for user_id, user_records in sorted(_by_user(records).items()):
        days: dict = defaultdict(list)
        for r in sorted(user_records, key=lambda r: r.record_id):
            days[r.record_date].append(r)

        for on, day_records in sorted(days.items()):
            if len(day_records) < 2:
                continue
            first, last = day_records[0], day_records[-1]
            if first.scanned_at.hour <= last.scanned_at.hour:
                continue
            anomalies.append(
                Anomaly(
                    type=AnomalyType.IMPOSSIBLE_GAPS,
                    severity=Severity.HIGH,
                    user_id=user_id,
                    user_name=_name(first),
                    description=f"Time appears to go backwards on {on.strftime('%Y-%m-%d')}",
                    record_ids=(first.record_id, last.record_id),
                    on=on,
                    details={"first_scan": _fmt(first.scanned_at), "last_scan": _fmt(last.scanned_at)},
                )
            )
    return anomalies


def detect_duplicate_scans(records: Sequence[BiometricRecord]) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    groups: dict[tuple[int, datetime], list[BiometricRecord]] = defaultdict(list)
    for r in records:
        groups[(r.user_id, r.scanned_at.replace(second=0, microsecond=0))].append(r)

    for (user_id, minute), group in sorted(groups.items(), key=lambda item: item[0]):
        if len(group) <= 1:
            continue
        anomalies.append(
            Anomaly(
                type=AnomalyType.DUPLICATE_SCANS,
                severity=Severity.HIGH if len(group) > DUPLICATE_HIGH_COUNT else Severity.LOW,
                user_id=user_id,
                user_name=_name(group[0]),
                description=f"{len(group)} scans within same minute",
                record_ids=tuple(r.record_id for r in group),
                on=minute.date(),
                details={"datetime": minute.strftime("%Y-%m-%d %H:%M"), "scan_count": len(group)},
            )
        )
    return anomalies


def detect_unusual_hours(records: Sequence[BiometricRecord]) -> list[Anomaly]:
    return [
        Anomaly(
            type=AnomalyType.UNUSUAL_HOURS,
            severity=Severity.LOW,
            user_id=r.user_id,
            user_name=_name(r),
            description=f"Scan at unusual hour ({r.scanned_at.strftime('%H:%M')})",
            record_ids=(r.record_id,),
            on=r.record_date,
            details={"datetime": _fmt(r.scanned_at)},
        )
        for r in records
        if UNUSUAL_HOUR_START <= r.scanned_at.hour < UNUSUAL_HOUR_END
    ]


def detect_excessive_scans(records: Sequence[BiometricRecord]) -> list[Anomaly]:
    anomalies: list[Anomaly] = []
    days: dict = defaultdict(list)
    for r in records:
        days[(r.user_id, r.record_date)].append(r)

    for (user_id, on), day_records in sorted(days.items(), key=lambda item: item[0]):
        count = len(day_records)
        if count <= EXCESSIVE_SCANS_PER_DAY:
            continue
        anomalies.append(
            Anomaly(
                type=AnomalyType.EXCESSIVE_SCANS,
                severity=Severity.HIGH if count > EXCESSIVE_SCANS_HIGH else Severity.MEDIUM,
                user_id=user_id,
                user_name=_name(day_records[0]),
                description=f"{count} scans on {on.strftime('%Y-%m-%d')} (expected ≤{EXCESSIVE_SCANS_PER_DAY})",
                record_ids=tuple(r.record_id for r in day_records),
                on=on,
                details={
                    "scan_count": count,
                    "scans": [
                        {"id": r.record_id, "datetime": _fmt(r.scanned_at), "site": _site(r)}
                        for r in sorted(day_records, key=lambda r: r.scanned_at)
                    ],
                },
            )
        )
    return anomalies


DETECTORS: dict[AnomalyType, Callable[[Sequence[BiometricRecord]], list[Anomaly]]] = {
    AnomalyType.SIMULTANEOUS_SITES: detect_simultaneous_sites,
    AnomalyType.IMPOSSIBLE_GAPS: detect_impossible_gaps,
    AnomalyType.DUPLICATE_SCANS: detect_duplicate_scans,
    AnomalyType.UNUSUAL_HOURS: detect_unusual_hours,
    AnomalyType.EXCESSIVE_SCANS: detect_excessive_scans,
}


def build_statistics(anomalies: Sequence[Anomaly]) -> dict:
    by_type = {t.value: 0 for t in AnomalyType}
    by_severity = {s.value: 0 for s in (Severity.HIGH, Severity.MEDIUM, Severity.LOW)}
    for a in anomalies:
        by_type[a.type.value] += 1
        by_severity[a.severity.value] += 1
    return {"total_anomalies": len(anomalies), "by_type": by_type, "by_severity": by_severity}
