from __future__ import annotations

import re
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from ..users.model import User


def _name_patterns(user: User) -> list[str]:
    last = (user.last_name or "").strip().lower()
    first = (user.first_name or "").strip().lower()
    middle = (user.middle_name or "").strip().lower()

    # more specific patterns first
    patterns = [f"{last} {first[:2]}", f"{last} {first}", f"{first} {last}"]
    if middle:
        patterns += [
            f"{last} {first} {middle}",
            f"{first} {middle} {last}",
            f"{first} {middle[:1]} {last}",
            f"{last} {first} {middle[:1]}",
        ]
    if " " in first:
        first_word = first.split(" ")[0]
        patterns += [f"{last} {first_word}", f"{first_word} {last}"]
    patterns += [f"{last} {first[:1]}", last]
    return patterns


def _shift_band(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "night"


class NameMatcher:
    """Matches scanned employee names ("Santos M") to user accounts.

    `scheduled_hour` returns the hour of a user's active schedule start and is
    used to split users who share a name pattern.
    """

    def __init__(
        self,
        users: Iterable[User],
        *,
        scheduled_hour: Optional[Callable[[int], Optional[int]]] = None,
    ):
        self._scheduled_hour = scheduled_hour
        self._index: dict[str, list[User]] = {}
        for user in users:
            for pattern in _name_patterns(user):
                bucket = self._index.setdefault(pattern, [])
                if user not in bucket:
                    bucket.append(user)

    def match(self, normalized_name: str, scan_times: Sequence[datetime] = ()) -> Optional[User]:
        key = re.sub(r"\s+", " ", (normalized_name or "").replace(",", "")).strip().lower()
        matches = self._index.get(key)
        if not matches:
            return None
        if len(matches) == 1:
            return matches[0]
        return self._disambiguate(matches, key, scan_times)

    def _disambiguate(self, matches: list[User], key: str, scan_times: Sequence[datetime]) -> User:
        parts = key.split(" ")
        suffix = parts[1] if len(parts) > 1 else ""

        by_schedule = self._match_by_schedule(matches, scan_times)
        if by_schedule:
            return by_schedule

        if len(suffix) == 1:
            # siblings: "last m" belongs to the alphabetically first two-letter prefix
            return sorted(matches, key=lambda u: (u.first_name or "").strip().lower()[:2])[0]
        return matches[0]

    def _match_by_schedule(self, matches: list[User], scan_times: Sequence[datetime]) -> Optional[User]:
        if not scan_times or self._scheduled_hour is None:
            return None
        band = _shift_band(min(scan_times).hour)
        for user in matches:
            hour = self._scheduled_hour(user.user_id)
            if hour is not None and _shift_band(hour) == band:
                return user
        return None
