from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PolicyScope, RecordType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PolicyInput, RetentionPolicy
from .repository import RetentionPolicyRepository

_SELECT = """
    SELECT p.policy_id, p.name, p.description, p.retention_months, p.applies_to_type, p.applies_to_id,
           p.record_type, p.priority, p.is_active, s.name AS site_name
    FROM biometric_retention_policies p
    LEFT JOIN sites s ON s.site_id = p.applies_to_id
"""


def _to_policy(r: dict) -> RetentionPolicy:
    return RetentionPolicy(
        policy_id=int(r["policy_id"]),
        name=r["name"],
        description=r.get("description"),
        retention_months=int(r["retention_months"]),
        applies_to_type=PolicyScope(r["applies_to_type"]),
        applies_to_id=r.get("applies_to_id"),
        record_type=RecordType(r.get("record_type") or RecordType.ALL.value),
        priority=int(r.get("priority") or 0),
        is_active=bool(r.get("is_active", True)),
        site_name=r.get("site_name"),
    )


class MySQLRetentionPolicyRepository(RetentionPolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[RetentionPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " ORDER BY p.priority DESC, p.policy_id ASC")
            return [_to_policy(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[RetentionPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.is_active=1 ORDER BY p.priority DESC, p.policy_id ASC")
            return [_to_policy(r) for r in fetchall(cur)]

    def get_by_id(self, policy_id: int) -> Optional[RetentionPolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE p.policy_id=%s", (int(policy_id),))
            r = fetchone(cur)
            return _to_policy(r) if r else None

    def create(self, data: PolicyInput) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO biometric_retention_policies(
                    name, description, retention_months, applies_to_type, applies_to_id, record_type, priority, is_active
                ) VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    data.name,
                    data.description,
                    int(data.retention_months),
                    data.applies_to_type.value,
                    data.applies_to_id,
                    data.record_type.value,
                    int(data.priority),
                    0 if data.is_active is False else 1,
                ),
            )
            return int(cur.lastrowid)

    def update(self, policy_id: int, data: PolicyInput) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE biometric_retention_policies
                SET name=%s, description=%s, retention_months=%s, applies_to_type=%s,
                    applies_to_id=%s, record_type=%s, priority=%s, is_active=COALESCE(%s, is_active)
                WHERE policy_id=%s
                """,
                (
                    data.name,
                    data.description,
                    int(data.retention_months),
                    data.applies_to_type.value,
                    data.applies_to_id,
                    data.record_type.value,
                    int(data.priority),
                    None if data.is_active is None else int(data.is_active),
                    int(policy_id),
                ),
            )
            return cur.rowcount > 0

    def delete(self, policy_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM biometric_retention_policies WHERE policy_id=%s", (int(policy_id),))
            return cur.rowcount > 0

    def set_active(self, policy_id: int, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE biometric_retention_policies SET is_active=%s WHERE policy_id=%s",
                (1 if is_active else 0, int(policy_id)),
            )
            return cur.rowcount > 0
