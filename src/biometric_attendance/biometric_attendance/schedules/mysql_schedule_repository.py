from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ShiftType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import EmployeeSchedule
from .repository import ScheduleRepository

_SELECT = """
    SELECT es.schedule_id, es.user_id, es.site_id, es.campaign_id, es.shift_type,
           es.scheduled_time_in, es.scheduled_time_out, es.work_days, es.grace_period_minutes,
           es.effective_date, es.end_date, es.is_active,
           s.name AS site_name, c.name AS campaign_name
    FROM employee_schedules es
    LEFT JOIN sites s ON s.site_id = es.site_id
    LEFT JOIN campaigns c ON c.campaign_id = es.campaign_id
"""


def _to_schedule(r: dict) -> EmployeeSchedule:
    work_days = tuple(d.strip().lower() for d in (r.get("work_days") or "").split(",") if d.strip())
    return EmployeeSchedule(
        schedule_id=int(r["schedule_id"]),
        user_id=int(r["user_id"]),
        shift_type=ShiftType(r["shift_type"]),
        scheduled_time_in=normalize_mysql_time(r["scheduled_time_in"]),
        scheduled_time_out=normalize_mysql_time(r["scheduled_time_out"]),
        work_days=work_days,
        grace_period_minutes=int(r.get("grace_period_minutes") if r.get("grace_period_minutes") is not None else 15),
        site_id=r.get("site_id"),
        campaign_id=r.get("campaign_id"),
        effective_date=r.get("effective_date"),
        end_date=r.get("end_date"),
        is_active=bool(r.get("is_active", True)),
        site_name=r.get("site_name"),
        campaign_name=r.get("campaign_name"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[EmployeeSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE es.user_id=%s AND es.is_active=1
                  AND es.effective_date<=%s
                  AND (es.end_date IS NULL OR es.end_date>=%s)
                ORDER BY es.effective_date DESC
                LIMIT 1
                """,
                (int(user_id), work_date, work_date),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def get_active_for_user(self, user_id: int) -> Optional[EmployeeSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE es.user_id=%s AND es.is_active=1 ORDER BY es.effective_date DESC LIMIT 1",
                (int(user_id),),
            )
            r = fetchone(cur)
            return _to_schedule(r) if r else None

    def list_effective_on(
        self,
        work_date: date,
        *,
        site_id: Optional[int] = None,
        campaign_id: Optional[int] = None,
    ) -> Sequence[EmployeeSchedule]:
        clauses = [
            "es.is_active=1",
            "es.effective_date<=%s",
            "(es.end_date IS NULL OR es.end_date>=%s)",
        ]
        params: list[object] = [work_date, work_date]
        if site_id is not None:
            clauses.append("es.site_id=%s")
            params.append(int(site_id))
        if campaign_id is not None:
            clauses.append("es.campaign_id=%s")
            params.append(int(campaign_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY es.user_id ASC, es.effective_date DESC",
                tuple(params),
            )
            return [_to_schedule(r) for r in fetchall(cur)]
