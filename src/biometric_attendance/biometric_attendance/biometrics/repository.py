from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import BiometricFilters, BiometricRecord, NewScan


class BiometricRecordRepository(Protocol):
    """Storage for raw scans.

    `site_id` narrows counts and deletes to one site; `unsited=True` targets
    records that have no site at all.
    """

    def list_page(self, filters: BiometricFilters, *, offset: int, limit: int) -> tuple[Sequence[BiometricRecord], int]:
        """Rows newest first plus the total count matching the filters."""

        raise NotImplementedError

    def list_for_user_on(self, *, user_id: int, on: date) -> Sequence[BiometricRecord]:
        raise NotImplementedError

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[BiometricRecord]:
        """Records whose record_date is within [start, end], in insertion order."""

        raise NotImplementedError

    def count(
        self,
        *,
        date_from: Optional[date] = None,
        before: Optional[date] = None,
        site_id: Optional[int] = None,
        unsited: bool = False,
    ) -> int:
        raise NotImplementedError

    def date_bounds(
        self,
        *,
        date_from: Optional[date] = None,
        before: Optional[date] = None,
        site_id: Optional[int] = None,
        unsited: bool = False,
    ) -> tuple[Optional[date], Optional[date]]:
        """(oldest, newest) record_date."""

        raise NotImplementedError

    def delete_before(self, cutoff: date, *, site_id: Optional[int] = None, unsited: bool = False) -> int:
        raise NotImplementedError

    def insert_many(self, scans: Sequence[NewScan]) -> int:
        """Store scans, skipping (user, datetime) duplicates. Returns inserted count."""

        raise NotImplementedError
