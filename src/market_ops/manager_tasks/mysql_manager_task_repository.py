from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from ..market_reports.model import SessionContext
from .model import TASK_TABLES, ManagerTask
from .repository import ManagerTaskRepository

# Table and column names only ever come from TASK_TABLES.
_BASE_COLUMNS = ("user_id", "session_id", "market_id", "market_date")


def _select(task: ManagerTask) -> str:
    t = TASK_TABLES[task]
    columns = ", ".join(f"t.{c}" for c in _BASE_COLUMNS + t.columns)
    return (
        f"SELECT t.{t.key} AS record_id, {columns}, t.created_at, u.full_name, m.name AS market_name "
        f"FROM {t.table} t JOIN users u ON u.user_id = t.user_id "
        "LEFT JOIN markets m ON m.market_id = t.market_id"
    )


class MySQLManagerTaskRepository(ManagerTaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, task: ManagerTask, ctx: SessionContext, values: Mapping[str, Any]) -> int:
        t = TASK_TABLES[task]
        columns = _BASE_COLUMNS + t.columns
        params = (ctx.user_id, ctx.session_id, ctx.market_id, ctx.market_date) + tuple(values.get(c) for c in t.columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO {t.table} ({', '.join(columns)}) VALUES ({placeholders(columns)})",
                params,
            )
            return int(cur.lastrowid)

    def get(self, task: ManagerTask, record_id: int) -> Optional[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_select(task)} WHERE t.{TASK_TABLES[task].key}=%s", (int(record_id),))
            return fetchone(cur)

    def delete(self, task: ManagerTask, record_id: int) -> bool:
        t = TASK_TABLES[task]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM {t.table} WHERE {t.key}=%s", (int(record_id),))
            return cur.rowcount > 0

    def list_for_session(self, task: ManagerTask, session_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_select(task)} WHERE t.session_id=%s ORDER BY t.created_at", (int(session_id),))
            return fetchall(cur)

    def list_for_day(self, task: ManagerTask, day: date, *, market_id: Optional[int] = None) -> Sequence[dict]:
        sql = f"{_select(task)} WHERE t.market_date=%s"
        params: list = [day]
        if market_id is not None:
            sql += " AND t.market_id=%s"
            params.append(int(market_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY t.created_at DESC", tuple(params))
            return fetchall(cur)
