from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..attendance.processor import AttendanceProcessor
from ..attendance.repository import AttendanceRepository
from ..biometrics.model import BiometricRecord
from ..biometrics.repository import BiometricRecordRepository
from ..common.validators import require_date_order
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class ReprocessResult:
    processed: int = 0
    failed: int = 0
    deleted: int = 0
    errors: list[dict] = field(default_factory=list)
    details: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "failed": self.failed,
            "deleted": self.deleted,
            "errors": self.errors,
            "details": self.details,
        }


class ReprocessingService:
    """Recompute attendance rows from stored scans for a date range."""

    def __init__(
        self,
        records: BiometricRecordRepository,
        attendance: AttendanceRepository,
        users: UserRepository,
        processor: AttendanceProcessor,
    ):
        self._records = records
        self._attendance = attendance
        self._users = users
        self._processor = processor

    def statistics(self) -> dict:
        oldest, newest = self._records.date_bounds()
        return {"total_records": self._records.count(), "oldest_record": oldest, "newest_record": newest}

    def _validate(self, start: date, end: date, user_ids: Optional[Sequence[int]]) -> list[int]:
        require_date_order(start, end)
        ids = sorted({int(u) for u in user_ids or []})
        if ids:
            known = {u.user_id for u in self._users.get_many(ids)}
            missing = [i for i in ids if i not in known]
            if missing:
                raise ValidationError(f"Unknown employee id(s): {', '.join(str(i) for i in missing)}")
        return ids

    def preview(self, start: date, end: date, user_ids: Optional[Sequence[int]] = None) -> dict:
        ids = self._validate(start, end, user_ids)
        records = self._records.list_between(start, end, user_ids=ids or None)

        per_user: dict[int, list[BiometricRecord]] = defaultdict(list)
        for r in records:
            per_user[r.user_id].append(r)
        dates = sorted({r.record_date for r in records})
        names = {u.user_id: u.full_name for u in self._users.get_many(list(per_user))}

        return {
            "total_records": len(records),
            "affected_users": len(per_user),
            "affected_dates": len(dates),
            "date_range": {
                "start": dates[0].isoformat() if dates else None,
                "end": dates[-1].isoformat() if dates else None,
            },
            "users": [
                {"id": user_id, "name": names.get(user_id, f"#{user_id}"), "record_count": len(rows)}
                for user_id, rows in sorted(per_user.items(), key=lambda kv: names.get(kv[0], "").lower())
            ],
        }

    def reprocess(
        self,
        start: date,
        end: date,
        user_ids: Optional[Sequence[int]] = None,
        *,
        delete_existing: bool = True,
    ) -> ReprocessResult:
        ids = self._validate(start, end, user_ids)
        records = self._records.list_between(start, end, user_ids=ids or None)

        per_user: dict[int, list[BiometricRecord]] = defaultdict(list)
        for r in records:
            per_user[r.user_id].append(r)
        users = {u.user_id: u for u in self._users.get_many(list(per_user))}

        result = ReprocessResult()
        for user_id, user_records in per_user.items():
            user = users.get(user_id)
            name = user.full_name if user else f"#{user_id}"
            try:
                if delete_existing:
                    result.deleted += self._attendance.delete_between(start, end, user_ids=[user_id])
                outcome = self._processor.process_user(user_id, user_records)
                result.processed += 1
                result.details.append(
                    {
                        "user": name,
                        "shifts_processed": outcome.shifts_processed,
                        "records_count": outcome.records_count,
                    }
                )
            except Exception as e:
                logger.exception("Reprocessing failed for user %s", user_id)
                result.failed += 1
                result.errors.append({"user": name, "error": str(e)})

        logger.info(
            "Reprocessed %s employee(s) from %s to %s (%s failed, %s attendance row(s) deleted)",
            result.processed,
            start,
            end,
            result.failed,
            result.deleted,
        )
        return result
