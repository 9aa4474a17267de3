from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional, Sequence

from src.biometric_attendance.biometric_attendance.attendance.model import Attendance
from src.biometric_attendance.biometric_attendance.biometrics.model import BiometricRecord, NewScan
from src.biometric_attendance.biometric_attendance.core.enums import Role, ShiftType
from src.biometric_attendance.biometric_attendance.leaves.model import LeaveRequest
from src.biometric_attendance.biometric_attendance.retention.model import PolicyInput, RetentionPolicy
from src.biometric_attendance.biometric_attendance.schedules.model import EmployeeSchedule
from src.biometric_attendance.biometric_attendance.sites.model import Campaign, Site
from src.biometric_attendance.biometric_attendance.users.model import User

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def make_user(user_id: int, first: str, last: str, *, middle: Optional[str] = None, role: Role = Role.STAFF) -> User:
    return User(
        user_id=user_id,
        first_name=first,
        last_name=last,
        middle_name=middle,
        username=f"{first.lower()}.{last.lower()}",
        password_hash="x",
        role=role,
    )


def make_schedule(
    user_id: int,
    time_in: time,
    time_out: time,
    *,
    shift_type: ShiftType = ShiftType.MORNING,
    work_days: Sequence[str] = WEEKDAYS,
    grace: int = 15,
    schedule_id: int = 1,
    site_id: Optional[int] = None,
    campaign_id: Optional[int] = None,
) -> EmployeeSchedule:
    return EmployeeSchedule(
        schedule_id=schedule_id,
        user_id=user_id,
        shift_type=shift_type,
        scheduled_time_in=time_in,
        scheduled_time_out=time_out,
        work_days=tuple(work_days),
        grace_period_minutes=grace,
        site_id=site_id,
        campaign_id=campaign_id,
    )


def scans(user_id: int, *values: str, site_id: Optional[int] = None, start_id: int = 1) -> list[BiometricRecord]:
    """Records from "YYYY-MM-DD HH:MM" strings, ids in the given order."""
    out = []
    for offset, value in enumerate(values):
        at = datetime.strptime(value, "%Y-%m-%d %H:%M")
        out.append(
            BiometricRecord(
                record_id=start_id + offset,
                user_id=user_id,
                employee_name=f"User {user_id}",
                scanned_at=at,
                record_date=at.date(),
                site_id=site_id,
            )
        )
    return out


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self._users = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    def get_many(self, user_ids):
        return [self._users[i] for i in user_ids if i in self._users]

    def list_active(self):
        return sorted((u for u in self._users.values() if u.is_active), key=lambda u: (u.first_name, u.last_name))


class InMemorySites:
    def __init__(self, sites: Sequence[Site] = (), campaigns: Sequence[Campaign] = ()):
        self._sites = list(sites)
        self._campaigns = list(campaigns)

    def list_all(self):
        return list(self._sites)

    def get_by_id(self, site_id: int):
        return next((s for s in self._sites if s.site_id == site_id), None)

    def list_campaigns(self):
        return list(self._campaigns)


class InMemorySchedules:
    def __init__(self, schedules: Sequence[EmployeeSchedule] = ()):
        self._schedules = list(schedules)

    def get_for_user_and_date(self, *, user_id: int, work_date: date):
        return next((s for s in self._schedules if s.user_id == user_id and s.is_effective_on(work_date)), None)

    def get_active_for_user(self, user_id: int):
        return next((s for s in self._schedules if s.user_id == user_id and s.is_active), None)

    def list_effective_on(self, work_date: date, *, site_id=None, campaign_id=None):
        return [
            s
            for s in self._schedules
            if s.is_effective_on(work_date)
            and (site_id is None or s.site_id == site_id)
            and (campaign_id is None or s.campaign_id == campaign_id)
        ]


class InMemoryLeaves:
    def __init__(self, leaves: Sequence[LeaveRequest] = ()):
        self._leaves = list(leaves)

    def get_approved_for(self, *, user_id: int, on: date):
        return next((lv for lv in self._leaves if lv.user_id == user_id and lv.covers(on)), None)

    def list_approved_on(self, on: date):
        return [lv for lv in self._leaves if lv.covers(on)]


class InMemoryAttendance:
    def __init__(self, rows: Sequence[Attendance] = (), *, names: Optional[dict[int, str]] = None):
        self._rows: dict[tuple[int, date], Attendance] = {}
        self._names = names or {}
        self._next_id = 1
        for row in rows:
            self.save(row)

    @property
    def rows(self) -> list[Attendance]:
        return sorted(self._rows.values(), key=lambda a: (a.user_id, a.shift_date))

    def get_by_id(self, attendance_id: int):
        return next((a for a in self._rows.values() if a.attendance_id == attendance_id), None)

    def get_for_user_and_date(self, user_id: int, shift_date: date):
        return self._rows.get((user_id, shift_date))

    def list_for_date(self, shift_date: date):
        return [a for a in self._rows.values() if a.shift_date == shift_date]

    def save(self, attendance: Attendance) -> int:
        key = (attendance.user_id, attendance.shift_date)
        existing = self._rows.get(key)
        if existing:
            attendance_id = existing.attendance_id
        else:
            attendance_id = self._next_id
            self._next_id += 1
        self._rows[key] = replace(attendance, attendance_id=attendance_id)
        return attendance_id

    def delete_between(self, start: date, end: date, *, user_ids=None) -> int:
        doomed = [
            key
            for key in self._rows
            if start <= key[1] <= end and (not user_ids or key[0] in user_ids)
        ]
        for key in doomed:
            del self._rows[key]
        return len(doomed)

    def count_by_status(self, start: date, end: date) -> dict[str, int]:
        counts: dict[str, int] = {}
        for a in self._rows.values():
            if start <= a.shift_date <= end:
                counts[a.status.value] = counts.get(a.status.value, 0) + 1
                if a.needs_verification:
                    counts["needs_verification"] = counts.get("needs_verification", 0) + 1
        return counts

    def delete_many(self, attendance_ids) -> int:
        doomed = [key for key, a in self._rows.items() if a.attendance_id in set(attendance_ids)]
        for key in doomed:
            del self._rows[key]
        return len(doomed)

    def list_for_review(self, filters, *, offset: int, limit: int):
        def keep(a: Attendance) -> bool:
            if filters.scope == "pending" and a.admin_verified:
                return False
            if filters.scope == "verified" and not a.admin_verified:
                return False
            if filters.scope not in ("pending", "verified", "all") and not a.needs_verification:
                return False
            if filters.status and a.status != filters.status:
                return False
            if filters.date_from and a.shift_date < filters.date_from:
                return False
            if filters.date_to and a.shift_date > filters.date_to:
                return False
            if filters.user_id and a.user_id != filters.user_id:
                return False
            if filters.search and filters.search.lower() not in self._names.get(a.user_id, "").lower():
                return False
            return True

        rows = sorted(
            (a for a in self._rows.values() if keep(a)),
            key=lambda a: (a.shift_date, a.attendance_id),
            reverse=True,
        )
        return rows[offset : offset + limit], len(rows)

    def list_for_export(self, filters):
        raise NotImplementedError


class InMemoryBiometrics:
    def __init__(self, records: Sequence[BiometricRecord] = ()):
        self.records = list(records)
        self._next_id = max((r.record_id for r in self.records), default=0) + 1

    def _matches(self, r, *, date_from=None, before=None, site_id=None, unsited=False) -> bool:
        if date_from and r.record_date < date_from:
            return False
        if before and r.record_date >= before:
            return False
        if unsited:
            return r.site_id is None
        return site_id is None or r.site_id == site_id

    def list_page(self, filters, *, offset: int, limit: int):
        rows = [r for r in self.records if filters.user_id is None or r.user_id == filters.user_id]
        rows.sort(key=lambda r: r.scanned_at, reverse=True)
        return rows[offset : offset + limit], len(rows)

    def list_for_user_on(self, *, user_id: int, on: date):
        return sorted((r for r in self.records if r.user_id == user_id and r.record_date == on), key=lambda r: r.scanned_at)

    def list_between(self, start: date, end: date, *, user_ids=None):
        return [
            r
            for r in sorted(self.records, key=lambda r: r.record_id)
            if start <= r.record_date <= end and (not user_ids or r.user_id in user_ids)
        ]

    def count(self, **kwargs) -> int:
        return sum(1 for r in self.records if self._matches(r, **kwargs))

    def date_bounds(self, **kwargs):
        dates = [r.record_date for r in self.records if self._matches(r, **kwargs)]
        return (min(dates), max(dates)) if dates else (None, None)

    def delete_before(self, cutoff: date, *, site_id=None, unsited=False) -> int:
        doomed = [r for r in self.records if self._matches(r, before=cutoff, site_id=site_id, unsited=unsited)]
        self.records = [r for r in self.records if r not in doomed]
        return len(doomed)

    def insert_many(self, new_scans: Sequence[NewScan]) -> int:
        seen = {(r.user_id, r.scanned_at) for r in self.records}
        inserted = 0
        for scan in new_scans:
            if (scan.user_id, scan.scanned_at) in seen:
                continue
            seen.add((scan.user_id, scan.scanned_at))
            self.records.append(
                BiometricRecord(
                    record_id=self._next_id,
                    user_id=scan.user_id,
                    employee_name=scan.employee_name,
                    scanned_at=scan.scanned_at,
                    record_date=scan.scanned_at.date(),
                    site_id=scan.site_id,
                )
            )
            self._next_id += 1
            inserted += 1
        return inserted


class InMemoryPolicies:
    def __init__(self, policies: Sequence[RetentionPolicy] = ()):
        self._policies = {p.policy_id: p for p in policies}
        self._next_id = max(self._policies, default=0) + 1

    def list_all(self):
        return sorted(self._policies.values(), key=lambda p: (-p.priority, p.policy_id))

    def list_active(self):
        return [p for p in self.list_all() if p.is_active]

    def get_by_id(self, policy_id: int):
        return self._policies.get(policy_id)

    def _from_input(self, policy_id: int, data: PolicyInput, is_active: bool = True) -> RetentionPolicy:
        return RetentionPolicy(
            policy_id=policy_id,
            name=data.name,
            retention_months=data.retention_months,
            applies_to_type=data.applies_to_type,
            applies_to_id=data.applies_to_id,
            record_type=data.record_type,
            priority=data.priority,
            is_active=is_active,
            description=data.description,
        )

    def create(self, data: PolicyInput) -> int:
        policy_id = self._next_id
        self._next_id += 1
        self._policies[policy_id] = self._from_input(policy_id, data, data.is_active is not False)
        return policy_id

    def update(self, policy_id: int, data: PolicyInput) -> bool:
        current = self._policies.get(policy_id)
        if not current:
            return False
        is_active = current.is_active if data.is_active is None else data.is_active
        self._policies[policy_id] = self._from_input(policy_id, data, is_active)
        return True

    def delete(self, policy_id: int) -> bool:
        return self._policies.pop(policy_id, None) is not None

    def set_active(self, policy_id: int, is_active: bool) -> bool:
        current = self._policies.get(policy_id)
        if not current:
            return False
        self._policies[policy_id] = replace(current, is_active=is_active)
        return True
