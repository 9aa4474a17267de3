from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_request_id=int(r["leave_request_id"]),
        user_id=int(r["user_id"]),
        leave_type=r["leave_type"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r.get("reason"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_approved_for(self, *, user_id: int, on: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_request_id, user_id, leave_type, start_date, end_date, reason
                FROM leave_requests
                WHERE user_id=%s AND status='approved' AND start_date<=%s AND end_date>=%s
                ORDER BY start_date DESC
                LIMIT 1
                """,
                (int(user_id), on, on),
            )
            r = fetchone(cur)
            return _to_leave(r) if r else None

    def list_approved_on(self, on: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_request_id, user_id, leave_type, start_date, end_date, reason
                FROM leave_requests
                WHERE status='approved' AND start_date<=%s AND end_date>=%s
                """,
                (on, on),
            )
            return [_to_leave(r) for r in fetchall(cur)]
