from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import BiometricFilters, BiometricRecord, NewScan
from .repository import BiometricRecordRepository

_SELECT = """
    SELECT br.record_id, br.user_id, br.site_id, br.employee_name, br.scanned_at, br.record_date,
           CONCAT(u.first_name, ' ', u.last_name) AS user_name, s.name AS site_name
    FROM biometric_records br
    LEFT JOIN users u ON u.user_id = br.user_id
    LEFT JOIN sites s ON s.site_id = br.site_id
"""


def _to_record(r: dict) -> BiometricRecord:
    return BiometricRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        site_id=r.get("site_id"),
        employee_name=r["employee_name"],
        scanned_at=r["scanned_at"],
        record_date=r["record_date"],
        user_name=r.get("user_name"),
        site_name=r.get("site_name"),
    )


def _scope_clauses(
    *,
    date_from: Optional[date] = None,
    before: Optional[date] = None,
    site_id: Optional[int] = None,
    unsited: bool = False,
) -> tuple[list[str], list[object]]:
    clauses: list[str] = []
    params: list[object] = []
    if date_from is not None:
        clauses.append("record_date>=%s")
        params.append(date_from)
    if before is not None:
        clauses.append("record_date<%s")
        params.append(before)
    if unsited:
        clauses.append("site_id IS NULL")
    elif site_id is not None:
        clauses.append("site_id=%s")
        params.append(int(site_id))
    return clauses, params


def _where(clauses: list[str]) -> str:
    return f" WHERE {' AND '.join(clauses)}" if clauses else ""


class MySQLBiometricRecordRepository(BiometricRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_page(self, filters: BiometricFilters, *, offset: int, limit: int) -> tuple[Sequence[BiometricRecord], int]:
        clauses: list[str] = []
        params: list[object] = []
        if filters.user_id is not None:
            clauses.append("br.user_id=%s")
            params.append(int(filters.user_id))
        if filters.site_id is not None:
            clauses.append("br.site_id=%s")
            params.append(int(filters.site_id))
        if filters.date_from is not None:
            clauses.append("br.record_date>=%s")
            params.append(filters.date_from)
        if filters.date_to is not None:
            clauses.append("br.record_date<=%s")
            params.append(filters.date_to)
        if filters.search:
            clauses.append("(br.employee_name LIKE %s OR CONCAT(u.first_name, ' ', u.last_name) LIKE %s)")
            params.extend([f"%{filters.search}%", f"%{filters.search}%"])

        where = _where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM biometric_records br LEFT JOIN users u ON u.user_id = br.user_id{where}", tuple(params))
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                _SELECT + where + " ORDER BY br.scanned_at DESC, br.record_id DESC LIMIT %s OFFSET %s",
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_record(r) for r in fetchall(cur)], total

    def list_for_user_on(self, *, user_id: int, on: date) -> Sequence[BiometricRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE br.user_id=%s AND br.record_date=%s ORDER BY br.scanned_at ASC",
                (int(user_id), on),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_between(
        self,
        start: date,
        end: date,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[BiometricRecord]:
        sql = _SELECT + " WHERE br.record_date BETWEEN %s AND %s"
        params: list[object] = [start, end]
        if user_ids:
            clause, ids = in_clause("br.user_id", [int(u) for u in user_ids])
            sql += f" AND {clause}"
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY br.record_id ASC", tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def count(
        self,
        *,
        date_from: Optional[date] = None,
        before: Optional[date] = None,
        site_id: Optional[int] = None,
        unsited: bool = False,
    ) -> int:
        clauses, params = _scope_clauses(date_from=date_from, before=before, site_id=site_id, unsited=unsited)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM biometric_records" + _where(clauses), tuple(params))
            return int((fetchone(cur) or {}).get("total") or 0)

    def date_bounds(
        self,
        *,
        date_from: Optional[date] = None,
        before: Optional[date] = None,
        site_id: Optional[int] = None,
        unsited: bool = False,
    ) -> tuple[Optional[date], Optional[date]]:
        clauses, params = _scope_clauses(date_from=date_from, before=before, site_id=site_id, unsited=unsited)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT MIN(record_date) AS oldest, MAX(record_date) AS newest FROM biometric_records" + _where(clauses),
                tuple(params),
            )
            r = fetchone(cur) or {}
            return r.get("oldest"), r.get("newest")

    def delete_before(self, cutoff: date, *, site_id: Optional[int] = None, unsited: bool = False) -> int:
        clauses, params = _scope_clauses(before=cutoff, site_id=site_id, unsited=unsited)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM biometric_records" + _where(clauses), tuple(params))
            return int(cur.rowcount or 0)

    def insert_many(self, scans: Sequence[NewScan]) -> int:
        if not scans:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            inserted = 0
            for scan in scans:
                cur.execute(
                    """
                    INSERT IGNORE INTO biometric_records(user_id, site_id, employee_name, scanned_at, record_date)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(scan.user_id), scan.site_id, scan.employee_name, scan.scanned_at, scan.scanned_at.date()),
                )
                inserted += int(cur.rowcount or 0)
            return inserted
