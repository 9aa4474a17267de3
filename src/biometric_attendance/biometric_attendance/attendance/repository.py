from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Attendance, AttendanceExportRow, ExportFilters, ReviewFilters


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, shift_date: date) -> Optional[Attendance]:
        raise NotImplementedError

    def list_for_date(self, shift_date: date) -> Sequence[Attendance]:
        raise NotImplementedError

    def save(self, attendance: Attendance) -> int:
        """Insert or replace the row for (user_id, shift_date). Returns its id."""

        raise NotImplementedError

    def delete_between(self, start: date, end: date, *, user_ids: Optional[Sequence[int]] = None) -> int:
        raise NotImplementedError

    def count_by_status(self, start: date, end: date) -> dict[str, int]:
        """Status value -> count, plus "needs_verification" for unverified review rows."""

        raise NotImplementedError

    def list_for_export(self, filters: ExportFilters) -> Sequence[AttendanceExportRow]:
        raise NotImplementedError

    def list_for_review(
        self, filters: ReviewFilters, *, offset: int, limit: int
    ) -> tuple[Sequence[Attendance], int]:
        """Rows newest shift first plus the total count matching the filters."""

        raise NotImplementedError

    def delete_many(self, attendance_ids: Sequence[int]) -> int:
        raise NotImplementedError
