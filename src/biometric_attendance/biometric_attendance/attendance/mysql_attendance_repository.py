from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    dump_json_list,
    fetchall,
    fetchone,
    in_clause,
    load_json_list,
    normalize_mysql_time,
)
from .model import VERIFICATION_STATUSES, Attendance, AttendanceExportRow, ExportFilters, ReviewFilters
from .repository import AttendanceRepository

_COLUMNS = (
    "attendance_id, user_id, schedule_id, leave_request_id, shift_date, scheduled_time_in, scheduled_time_out, "
    "actual_time_in, actual_time_out, bio_in_site_id, bio_out_site_id, status, secondary_status, tardy_minutes, "
    "undertime_minutes, overtime_minutes, overtime_approved, is_cross_site_bio, total_minutes_worked, "
    "admin_verified, warnings, notes, verification_notes"
)


def _to_attendance(r: dict) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        schedule_id=r.get("schedule_id"),
        leave_request_id=r.get("leave_request_id"),
        shift_date=r["shift_date"],
        scheduled_time_in=normalize_mysql_time(r.get("scheduled_time_in")),
        scheduled_time_out=normalize_mysql_time(r.get("scheduled_time_out")),
        actual_time_in=r.get("actual_time_in"),
        actual_time_out=r.get("actual_time_out"),
        bio_in_site_id=r.get("bio_in_site_id"),
        bio_out_site_id=r.get("bio_out_site_id"),
        status=AttendanceStatus(r["status"]),
        secondary_status=AttendanceStatus(r["secondary_status"]) if r.get("secondary_status") else None,
        tardy_minutes=r.get("tardy_minutes"),
        undertime_minutes=r.get("undertime_minutes"),
        overtime_minutes=r.get("overtime_minutes"),
        overtime_approved=bool(r.get("overtime_approved")),
        is_cross_site_bio=bool(r.get("is_cross_site_bio")),
        total_minutes_worked=r.get("total_minutes_worked"),
        admin_verified=bool(r.get("admin_verified")),
        warnings=tuple(load_json_list(r.get("warnings"))),
        notes=r.get("notes"),
        verification_notes=r.get("verification_notes"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_attendance(r) if r else None

    def get_for_user_and_date(self, user_id: int, shift_date: date) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendances WHERE user_id=%s AND shift_date=%s",
                (int(user_id), shift_date),
            )
            r = fetchone(cur)
            return _to_attendance(r) if r else None

    def list_for_date(self, shift_date: date) -> Sequence[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendances WHERE shift_date=%s", (shift_date,))
            return [_to_attendance(r) for r in fetchall(cur)]

    def save(self, attendance: Attendance) -> int:
        a = attendance
        values = (
            int(a.user_id),
            a.schedule_id,
            a.leave_request_id,
            a.shift_date,
            a.scheduled_time_in,
            a.scheduled_time_out,
            a.actual_time_in,
            a.actual_time_out,
            a.bio_in_site_id,
            a.bio_out_site_id,
            a.status.value,
            a.secondary_status.value if a.secondary_status else None,
            a.tardy_minutes,
            a.undertime_minutes,
            a.overtime_minutes,
            1 if a.overtime_approved else 0,
            1 if a.is_cross_site_bio else 0,
            a.total_minutes_worked,
            1 if a.admin_verified else 0,
            dump_json_list(a.warnings),
            a.notes,
            a.verification_notes,
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendances(
                    user_id, schedule_id, leave_request_id, shift_date, scheduled_time_in, scheduled_time_out,
                    actual_time_in, actual_time_out, bio_in_site_id, bio_out_site_id, status, secondary_status,
                    tardy_minutes, undertime_minutes, overtime_minutes, overtime_approved, is_cross_site_bio,
                    total_minutes_worked, admin_verified, warnings, notes, verification_notes
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    attendance_id=LAST_INSERT_ID(attendance_id),
                    schedule_id=VALUES(schedule_id), leave_request_id=VALUES(leave_request_id),
                    scheduled_time_in=VALUES(scheduled_time_in), scheduled_time_out=VALUES(scheduled_time_out),
                    actual_time_in=VALUES(actual_time_in), actual_time_out=VALUES(actual_time_out),
                    bio_in_site_id=VALUES(bio_in_site_id), bio_out_site_id=VALUES(bio_out_site_id),
                    status=VALUES(status), secondary_status=VALUES(secondary_status),
                    tardy_minutes=VALUES(tardy_minutes), undertime_minutes=VALUES(undertime_minutes),
                    overtime_minutes=VALUES(overtime_minutes), overtime_approved=VALUES(overtime_approved),
                    is_cross_site_bio=VALUES(is_cross_site_bio), total_minutes_worked=VALUES(total_minutes_worked),
                    admin_verified=VALUES(admin_verified), warnings=VALUES(warnings),
                    notes=VALUES(notes), verification_notes=VALUES(verification_notes)
                """,
                values,
            )
            return int(cur.lastrowid)

    def delete_between(self, start: date, end: date, *, user_ids: Optional[Sequence[int]] = None) -> int:
        sql = "DELETE FROM attendances WHERE shift_date BETWEEN %s AND %s"
        params: list[object] = [start, end]
        if user_ids:
            clause, ids = in_clause("user_id", [int(u) for u in user_ids])
            sql += f" AND {clause}"
            params.extend(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return int(cur.rowcount or 0)

    def delete_many(self, attendance_ids: Sequence[int]) -> int:
        if not attendance_ids:
            return 0
        clause, ids = in_clause("attendance_id", [int(i) for i in attendance_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM attendances WHERE {clause}", tuple(ids))
            return int(cur.rowcount or 0)

    def count_by_status(self, start: date, end: date) -> dict[str, int]:
        review_clause, review_params = in_clause("status", [s.value for s in VERIFICATION_STATUSES])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, COUNT(*) AS total FROM attendances WHERE shift_date BETWEEN %s AND %s GROUP BY status",
                (start, end),
            )
            counts = {r["status"]: int(r["total"]) for r in fetchall(cur)}

            cur.execute(
                f"""
                SELECT COUNT(*) AS total FROM attendances
                WHERE shift_date BETWEEN %s AND %s AND admin_verified=0 AND {review_clause}
                """,
                tuple([start, end] + review_params),
            )
            counts["needs_verification"] = int((fetchone(cur) or {}).get("total") or 0)
            return counts

    def list_for_review(
        self, filters: ReviewFilters, *, offset: int, limit: int
    ) -> tuple[Sequence[Attendance], int]:
        clauses: list[str] = []
        params: list[object] = []
        if filters.scope == "pending":
            clauses.append("a.admin_verified=0")
        elif filters.scope == "verified":
            clauses.append("a.admin_verified=1")
        elif filters.scope != "all":
            review_clause, review_params = in_clause("a.status", [s.value for s in VERIFICATION_STATUSES])
            clauses.append(f"a.admin_verified=0 AND {review_clause}")
            params.extend(review_params)
        if filters.status:
            clauses.append("a.status=%s")
            params.append(filters.status.value)
        if filters.date_from:
            clauses.append("a.shift_date >= %s")
            params.append(filters.date_from)
        if filters.date_to:
            clauses.append("a.shift_date <= %s")
            params.append(filters.date_to)
        if filters.user_id:
            clauses.append("a.user_id=%s")
            params.append(int(filters.user_id))
        if filters.search:
            clauses.append("CONCAT(u.first_name, ' ', u.last_name) LIKE %s")
            params.append(f"%{filters.search}%")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        columns = ", ".join(f"a.{c.strip()}" for c in _COLUMNS.split(","))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM attendances a JOIN users u ON u.user_id = a.user_id {where}",
                tuple(params),
            )
            total = int((fetchone(cur) or {}).get("total") or 0)

            cur.execute(
                f"""
                SELECT {columns} FROM attendances a
                JOIN users u ON u.user_id = a.user_id
                {where}
                ORDER BY a.shift_date DESC, a.attendance_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_to_attendance(r) for r in fetchall(cur)], total

    def list_for_export(self, filters: ExportFilters) -> Sequence[AttendanceExportRow]:
        clauses = ["a.shift_date BETWEEN %s AND %s"]
        params: list[object] = [filters.start_date, filters.end_date]
        for column, values in (
            ("a.user_id", filters.user_ids),
            ("es.site_id", filters.site_ids),
            ("es.campaign_id", filters.campaign_ids),
        ):
            if values:
                clause, ids = in_clause(column, list(values))
                clauses.append(clause)
                params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.user_id, CONCAT(u.first_name, ' ', u.last_name) AS employee_name, c.name AS campaign_name,
                       a.shift_date, a.scheduled_time_in, a.scheduled_time_out, a.actual_time_in, a.actual_time_out,
                       si.name AS time_in_site, so.name AS time_out_site, a.status, a.secondary_status,
                       a.tardy_minutes, a.undertime_minutes, a.overtime_minutes, a.overtime_approved,
                       a.is_cross_site_bio, a.admin_verified
                FROM attendances a
                JOIN users u ON u.user_id = a.user_id
                LEFT JOIN employee_schedules es ON es.schedule_id = a.schedule_id
                LEFT JOIN campaigns c ON c.campaign_id = es.campaign_id
                LEFT JOIN sites si ON si.site_id = a.bio_in_site_id
                LEFT JOIN sites so ON so.site_id = a.bio_out_site_id
                WHERE {' AND '.join(clauses)}
                ORDER BY a.shift_date ASC, u.last_name ASC, u.first_name ASC
                """,
                tuple(params),
            )
            return [
                AttendanceExportRow(
                    user_id=int(r["user_id"]),
                    employee_name=r["employee_name"],
                    campaign_name=r.get("campaign_name"),
                    shift_date=r["shift_date"],
                    scheduled_time_in=normalize_mysql_time(r.get("scheduled_time_in")),
                    scheduled_time_out=normalize_mysql_time(r.get("scheduled_time_out")),
                    actual_time_in=r.get("actual_time_in"),
                    actual_time_out=r.get("actual_time_out"),
                    time_in_site=r.get("time_in_site"),
                    time_out_site=r.get("time_out_site"),
                    status=AttendanceStatus(r["status"]),
                    secondary_status=AttendanceStatus(r["secondary_status"]) if r.get("secondary_status") else None,
                    tardy_minutes=r.get("tardy_minutes"),
                    undertime_minutes=r.get("undertime_minutes"),
                    overtime_minutes=r.get("overtime_minutes"),
                    overtime_approved=bool(r.get("overtime_approved")),
                    is_cross_site_bio=bool(r.get("is_cross_site_bio")),
                    admin_verified=bool(r.get("admin_verified")),
                )
                for r in fetchall(cur)
            ]
