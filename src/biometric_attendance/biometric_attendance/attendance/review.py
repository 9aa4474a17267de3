"""Scan patterns that make an automatic status unreliable.

Any warning returned here puts the shift into manual review.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Sequence

from ..biometrics.model import BiometricRecord
from .strategies.base import ShiftWindow

EARLY_IN_REVIEW_MINUTES = 180
LATE_OUT_REVIEW_MINUTES = 240
EARLY_OUT_REVIEW_MINUTES = 180
MATCH_TOLERANCE_HOURS = 2
LONE_PAIR_GAP_HOURS = 12


def _minutes(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def _hours_label(minutes: float) -> str:
    return f"{abs(round(minutes / 60, 1)):g}"


def _stamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M")


def review_scan_patterns(
    records: Sequence[BiometricRecord], window: ShiftWindow, shift_date: date
) -> list[str]:
    nearby = {shift_date - timedelta(days=1), shift_date, shift_date + timedelta(days=1)}
    relevant = sorted((r for r in records if r.scanned_at.date() in nearby), key=lambda r: r.scanned_at)
    count = len(relevant)
    warnings: list[str] = []

    if 0 < count <= 2:
        tolerance = MATCH_TOLERANCE_HOURS * 60
        all_off_schedule = all(
            abs(_minutes(window.scheduled_in, r.scanned_at)) > tolerance
            and abs(_minutes(window.scheduled_out, r.scanned_at)) > tolerance
            for r in relevant
        )
        if all_off_schedule:
            times = ", ".join(_stamp(r.scanned_at) for r in relevant)
            warnings.append(
                f"Employee has only {count} biometric scan(s) on this date ({times}), and the scan time(s) "
                "don't match the scheduled shift times. This may indicate: wrong shift assignment, "
                "scanner testing, or the employee worked a different shift."
            )

    if window.time_in:
        actual = window.time_in.scanned_at
        early = _minutes(window.scheduled_in, actual)
        if early < -EARLY_IN_REVIEW_MINUTES:
            warnings.append(
                f"Time IN is {_hours_label(early)} hours before scheduled time "
                f"({_stamp(actual)} vs {_stamp(window.scheduled_in)})"
            )

    if window.time_out:
        actual = window.time_out.scanned_at
        remaining = _minutes(actual, window.scheduled_out)
        if remaining < -LATE_OUT_REVIEW_MINUTES:
            warnings.append(
                f"Time OUT is {_hours_label(remaining)} hours after scheduled time "
                f"({_stamp(actual)} vs {_stamp(window.scheduled_out)})"
            )
        if remaining > EARLY_OUT_REVIEW_MINUTES:
            warnings.append(
                f"Time OUT is {_hours_label(remaining)} hours before scheduled time "
                f"({_stamp(actual)} vs {_stamp(window.scheduled_out)}). This may indicate: emergency, "
                "medical issue, or unauthorized early departure."
            )

    if not window.time_in and not window.time_out:
        if count == 2:
            first, last = relevant[0].scanned_at, relevant[-1].scanned_at
            gap = _minutes(first, last)
            if gap > LONE_PAIR_GAP_HOURS * 60:
                warnings.append(
                    f"Only 2 scans found with {_hours_label(gap)} hours gap "
                    f"({first.strftime('%H:%M')} and {last.strftime('%H:%M')}), neither matches schedule"
                )
        if count > 0:
            times = ", ".join(r.scanned_at.strftime("%H:%M") for r in relevant)
            warnings.append(f"No valid time IN/OUT detected from {count} scan(s) at: {times}")

    return warnings
