from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Campaign, Site
from .repository import SiteRepository


class MySQLSiteRepository(SiteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT site_id, name FROM sites ORDER BY name ASC")
            return [Site(site_id=int(r["site_id"]), name=r["name"]) for r in fetchall(cur)]

    def get_by_id(self, site_id: int) -> Optional[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT site_id, name FROM sites WHERE site_id=%s", (int(site_id),))
            r = fetchone(cur)
            return Site(site_id=int(r["site_id"]), name=r["name"]) if r else None

    def list_campaigns(self) -> Sequence[Campaign]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT campaign_id, name FROM campaigns ORDER BY name ASC")
            return [Campaign(campaign_id=int(r["campaign_id"]), name=r["name"]) for r in fetchall(cur)]
