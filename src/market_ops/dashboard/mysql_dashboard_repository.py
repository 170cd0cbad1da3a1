from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import SessionStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import MARKET_RECORD_KINDS, DashboardRepository

_MARKET_RECORD_SQL = {
    "stalls": """
        SELECT sc.stall_id, sc.farmer_name, sc.stall_name, sc.stall_no, sc.created_at, u.full_name
        FROM stall_confirmations sc JOIN users u ON u.user_id = sc.user_id
        WHERE sc.market_id=%s AND sc.market_date=%s ORDER BY sc.stall_no
    """,
    "inspections": """
        SELECT si.inspection_id, si.farmer_name, si.stall_name, si.stall_no, si.rating, si.feedback, u.full_name
        FROM stall_inspections si JOIN users u ON u.user_id = si.user_id
        WHERE si.market_id=%s AND si.market_date=%s ORDER BY si.created_at
    """,
    "allocations": """
        SELECT ea.allocation_id, ea.employee_name, u.full_name AS allocated_by
        FROM employee_allocations ea JOIN users u ON u.user_id = ea.user_id
        WHERE ea.market_id=%s AND ea.market_date=%s ORDER BY ea.employee_name
    """,
    "media": """
        SELECT md.media_id, md.media_type, md.file_path, md.file_name, md.content_type, md.captured_at,
               md.is_late, u.full_name
        FROM media md JOIN users u ON u.user_id = md.user_id
        WHERE md.market_id=%s AND md.market_date=%s ORDER BY md.captured_at DESC
    """,
    "offers": """
        SELECT o.offer_id, o.category, o.commodity_name, o.price, o.notes, u.full_name
        FROM offers o JOIN users u ON u.user_id = o.user_id
        WHERE o.market_id=%s AND o.market_date=%s ORDER BY o.category, o.commodity_name
    """,
    "commodities": """
        SELECT c.commodity_id, c.commodity_name, c.notes, u.full_name
        FROM non_available_commodities c JOIN users u ON u.user_id = c.user_id
        WHERE c.market_id=%s AND c.market_date=%s ORDER BY c.commodity_name
    """,
    "feedback": """
        SELECT f.feedback_id, f.difficulties, f.feedback, f.updated_at, u.full_name
        FROM organiser_feedback f JOIN users u ON u.user_id = f.user_id
        WHERE f.market_id=%s AND f.market_date=%s ORDER BY f.updated_at DESC
    """,
    "collections": """
        SELECT c.collection_id, c.amount, c.notes, c.created_at, u.full_name AS collected_by_name
        FROM collections c JOIN users u ON u.user_id = c.collected_by
        WHERE c.market_id=%s AND c.collection_date=%s ORDER BY c.created_at DESC
    """,
}


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _query(self, sql: str, params: tuple) -> list[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return fetchall(cur)

    def attendance_rows(self, day: date) -> Sequence[dict]:
        return self._query(
            """
            SELECT a.attendance_id, a.user_id, u.full_name, a.session_id, m.market_id, m.name AS market_name,
                   a.punch_in_time, a.punch_out_time, a.status, a.is_late, a.selfie_path
            FROM attendance_records a
            JOIN users u ON u.user_id = a.user_id
            LEFT JOIN sessions s ON s.session_id = a.session_id
            LEFT JOIN markets m ON m.market_id = s.market_id
            WHERE a.attendance_date=%s
            """,
            (day,),
        )

    def live_market_rows(self, day: date) -> Sequence[dict]:
        return self._query(
            """
            SELECT m.market_id, m.name, m.city,
                   COUNT(DISTINCT s.session_id) AS active_sessions,
                   (SELECT MAX(md.captured_at) FROM media md
                     WHERE md.market_id = m.market_id AND md.market_date = %s) AS last_upload_time
            FROM markets m
            JOIN sessions s ON s.market_id = m.market_id AND s.session_date = %s AND s.status = %s
            GROUP BY m.market_id, m.name, m.city
            """,
            (day, day, SessionStatus.ACTIVE.value),
        )

    def session_rows(self, day: date, market_id: Optional[int] = None) -> Sequence[dict]:
        sql = """
            SELECT s.session_id, s.user_id, u.full_name, s.market_id, m.name AS market_name,
                   s.status, s.punch_in_time, s.punch_out_time, s.finalized_at
            FROM sessions s
            JOIN users u ON u.user_id = s.user_id
            LEFT JOIN markets m ON m.market_id = s.market_id
            WHERE s.session_date=%s
        """
        params: list = [day]
        if market_id is not None:
            sql += " AND s.market_id=%s"
            params.append(int(market_id))
        return self._query(sql, tuple(params))

    def media_counts(self, day: date) -> Sequence[dict]:
        return self._query(
            """
            SELECT session_id, media_type, COUNT(*) AS total, SUM(is_late) AS late
            FROM media WHERE market_date=%s
            GROUP BY session_id, media_type
            """,
            (day,),
        )

    def stall_rows(self, day: date) -> Sequence[dict]:
        return self._query(
            """
            SELECT sc.session_id, sc.market_id, m.name AS market_name, u.full_name
            FROM stall_confirmations sc
            JOIN users u ON u.user_id = sc.user_id
            LEFT JOIN markets m ON m.market_id = sc.market_id
            WHERE sc.market_date=%s
            """,
            (day,),
        )

    def collection_market_ids(self, day: date) -> Sequence[int]:
        rows = self._query("SELECT DISTINCT market_id FROM collections WHERE collection_date=%s", (day,))
        return [int(r["market_id"]) for r in rows]

    def media_feed_rows(self, day: date, limit: int) -> Sequence[dict]:
        return self._query(
            """
            SELECT md.media_id, md.media_type, md.file_path, md.file_name, md.content_type, md.captured_at,
                   md.is_late, u.full_name, m.name AS market_name
            FROM media md
            JOIN users u ON u.user_id = md.user_id
            LEFT JOIN markets m ON m.market_id = md.market_id
            WHERE md.market_date=%s
            ORDER BY md.captured_at DESC, md.media_id DESC
            LIMIT %s
            """,
            (day, int(limit)),
        )

    def market_records(self, kind: str, *, market_id: int, day: date) -> Sequence[dict]:
        sql = _MARKET_RECORD_SQL.get(kind)
        if sql is None:
            raise ValueError(f"Unknown market record kind: {kind}")
        return self._query(sql, (int(market_id), day))
