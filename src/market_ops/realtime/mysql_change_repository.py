from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .repository import ChangeEventRepository


class MySQLChangeEventRepository(ChangeEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def latest_event_id(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(MAX(event_id), 0) AS latest FROM change_events")
            row = fetchone(cur) or {}
            return int(row.get("latest") or 0)

    def changed_tables_since(self, *, since: int, tables: Sequence[str]) -> Sequence[str]:
        if not tables:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT table_name FROM change_events
                WHERE event_id > %s AND table_name IN ({placeholders(tables)})
                """,
                (int(since), *tables),
            )
            return sorted(r["table_name"] for r in fetchall(cur))

    def delete_older_than(self, *, days: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM change_events WHERE created_at < NOW() - INTERVAL %s DAY",
                (int(days),),
            )
            return int(cur.rowcount)
