from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from ..attendance.processor import AttendanceProcessor
from ..common.datetime_utils import now_local, start_of_week
from ..common.pagination import Page, clamp_page
from ..core.constants import CLEANUP_HOUR, RECORDS_PER_PAGE
from ..core.exceptions import NotFoundError, ValidationError
from ..retention.service import RetentionService
from ..schedules.repository import ScheduleRepository
from ..sites.repository import SiteRepository
from ..users.repository import UserRepository
from .model import BiometricFilters, BiometricRecord, NewScan
from .name_matcher import NameMatcher
from .parser import decode_export, parse_content
from .repository import BiometricRecordRepository

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    total_lines: int = 0
    inserted: int = 0
    duplicates: int = 0
    skipped_lines: list[int] = field(default_factory=list)
    unmatched_names: list[str] = field(default_factory=list)
    matched_users: int = 0
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    processed_users: int = 0
    processed_shifts: int = 0
    errors: list[dict] = field(default_factory=list)


class BiometricRecordService:
    """Review and import of raw time-clock scans."""

    def __init__(
        self,
        records: BiometricRecordRepository,
        users: UserRepository,
        sites: SiteRepository,
        schedules: ScheduleRepository,
        retention: RetentionService,
        *,
        processor: Optional[AttendanceProcessor] = None,
        per_page: int = RECORDS_PER_PAGE,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._users = users
        self._sites = sites
        self._schedules = schedules
        self._retention = retention
        self._processor = processor
        self._per_page = int(per_page)
        self._clock = clock

    def list_records(self, filters: BiometricFilters, page: int = 1) -> Page[BiometricRecord]:
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise ValidationError("Date from must be on or before date to")

        page = clamp_page(page)
        rows, total = self._records.list_page(filters, offset=(page - 1) * self._per_page, limit=self._per_page)
        return Page(items=list(rows), page=page, per_page=self._per_page, total=int(total))

    def statistics(self) -> dict:
        now = self._clock()
        today = now.date()
        oldest, newest = self._records.date_bounds()
        return {
            "total": self._records.count(),
            "today": self._records.count(date_from=today, before=today + timedelta(days=1)),
            "this_week": self._records.count(date_from=start_of_week(today), before=start_of_week(today) + timedelta(days=7)),
            "this_month": self._records.count(date_from=today.replace(day=1), before=_next_month(today)),
            "old_records": self._retention.eligible_count(),
            "oldest_date": oldest.strftime("%b %d, %Y") if oldest else "N/A",
            "newest_date": newest.strftime("%b %d, %Y") if newest else "N/A",
            "next_cleanup": datetime.combine(today + timedelta(days=1), time(hour=CLEANUP_HOUR)).strftime(
                "%b %d, %Y %I:%M %p"
            ),
        }

    def records_for_user_on(self, user_id: int, on: date) -> dict:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("Employee not found")
        records = list(self._records.list_for_user_on(user_id=user_id, on=on))
        return {"user": user, "date": on, "records": records}

    def filter_options(self) -> dict:
        users = sorted(self._users.list_active(), key=lambda u: (u.last_name.lower(), u.first_name.lower()))
        return {
            "users": [{"id": u.user_id, "name": u.full_name} for u in users],
            "sites": [{"id": s.site_id, "name": s.name} for s in self._sites.list_all()],
        }

    def import_export_file(self, raw: bytes, *, site_id: Optional[int]) -> ImportResult:
        """Store the scans of a device export for one site.

        Names are matched to accounts; unmatched names are reported, not stored.
        With a processor, the matched employees' attendance over the file's
        date range is rebuilt from the stored scans.
        """
        if site_id is not None and not self._sites.get_by_id(site_id):
            raise ValidationError("Site does not exist")

        parsed = parse_content(decode_export(raw))
        if not parsed.scans:
            raise ValidationError("No scan records found in the uploaded file")

        result = ImportResult(
            total_lines=len(parsed.scans) + len(parsed.skipped_lines),
            skipped_lines=list(parsed.skipped_lines),
        )

        by_name: dict[str, list] = defaultdict(list)
        for scan in parsed.scans:
            by_name[scan.normalized_name].append(scan)

        matcher = NameMatcher(self._users.list_active(), scheduled_hour=self._scheduled_hour)
        to_store: list[NewScan] = []
        matched: set[int] = set()
        for name, scans in by_name.items():
            user = matcher.match(name, [s.scanned_at for s in scans])
            if not user:
                result.unmatched_names.append(scans[0].name)
                continue
            matched.add(user.user_id)
            to_store.extend(
                NewScan(user_id=user.user_id, employee_name=s.name, scanned_at=s.scanned_at, site_id=site_id)
                for s in scans
            )

        result.inserted = self._records.insert_many(to_store)
        result.duplicates = len(to_store) - result.inserted
        result.matched_users = len(matched)
        result.date_from = min(s.scanned_at for s in parsed.scans).date()
        result.date_to = max(s.scanned_at for s in parsed.scans).date()
        if self._processor and matched:
            self._process_matched(result, sorted(matched))

        logger.info(
            "Imported %s scan(s) for site %s (%s duplicate, %s unmatched name(s))",
            result.inserted,
            site_id,
            result.duplicates,
            len(result.unmatched_names),
        )
        if result.unmatched_names:
            logger.warning("Unmatched employee names: %s", ", ".join(sorted(result.unmatched_names)))
        return result

    def _process_matched(self, result: ImportResult, user_ids: list[int]) -> None:
        per_user: dict[int, list[BiometricRecord]] = defaultdict(list)
        for r in self._records.list_between(result.date_from, result.date_to, user_ids=user_ids):
            per_user[r.user_id].append(r)

        for user_id, records in per_user.items():
            try:
                outcome = self._processor.process_user(user_id, records)
            except Exception as e:
                logger.exception("Attendance processing failed for user %s after import", user_id)
                result.errors.append({"user_id": user_id, "error": str(e)})
                continue
            result.processed_users += 1
            result.processed_shifts += outcome.shifts_processed

        logger.info(
            "Processed attendance for %s employee(s), %s shift(s) from %s to %s",
            result.processed_users,
            result.processed_shifts,
            result.date_from,
            result.date_to,
        )

    def _scheduled_hour(self, user_id: int) -> Optional[int]:
        schedule = self._schedules.get_active_for_user(user_id)
        return schedule.scheduled_time_in.hour if schedule else None


def _next_month(on: date) -> date:
    return date(on.year + 1, 1, 1) if on.month == 12 else date(on.year, on.month + 1, 1)
