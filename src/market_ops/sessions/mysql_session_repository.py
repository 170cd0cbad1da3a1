from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import SessionStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Session, SessionActivity
from .repository import SessionRepository

_COLUMNS = "session_id, user_id, market_id, session_date, status, punch_in_time, punch_out_time, finalized_at"


def _to_session(r: dict) -> Session:
    return Session(
        session_id=int(r["session_id"]),
        user_id=int(r["user_id"]),
        market_id=None if r.get("market_id") is None else int(r["market_id"]),
        session_date=r["session_date"],
        status=SessionStatus(r["status"]),
        punch_in_time=r.get("punch_in_time"),
        punch_out_time=r.get("punch_out_time"),
        finalized_at=r.get("finalized_at"),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM sessions WHERE session_id=%s", (int(session_id),))
            row = fetchone(cur)
            return _to_session(row) if row else None

    def get_for_user_and_date(self, user_id: int, session_date: date) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM sessions WHERE user_id=%s AND session_date=%s",
                (int(user_id), session_date),
            )
            row = fetchone(cur)
            return _to_session(row) if row else None

    def create(self, *, user_id: int, market_id: Optional[int], session_date: date) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO sessions (user_id, market_id, session_date, status) VALUES (%s, %s, %s, %s)",
                    (int(user_id), market_id, session_date, SessionStatus.ACTIVE.value),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConflictError("You already have a session for today")
            raise

    def set_punch_in(self, *, session_id: int, punch_in_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET punch_in_time=%s WHERE session_id=%s AND punch_in_time IS NULL AND status=%s",
                (punch_in_time, int(session_id), SessionStatus.ACTIVE.value),
            )
            return cur.rowcount > 0

    def clear_punch_in(self, *, session_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET punch_in_time=NULL WHERE session_id=%s AND punch_out_time IS NULL",
                (int(session_id),),
            )

    def set_punch_out(self, *, session_id: int, punch_out_time: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE sessions SET punch_out_time=%s, status=%s
                WHERE session_id=%s AND punch_in_time IS NOT NULL AND punch_out_time IS NULL
                  AND status IN (%s, %s)
                """,
                (
                    punch_out_time,
                    SessionStatus.COMPLETED.value,
                    int(session_id),
                    SessionStatus.ACTIVE.value,
                    SessionStatus.COMPLETED.value,
                ),
            )
            return cur.rowcount > 0

    def clear_punch_out(self, *, session_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET punch_out_time=NULL, status=%s WHERE session_id=%s AND status=%s",
                (SessionStatus.ACTIVE.value, int(session_id), SessionStatus.COMPLETED.value),
            )

    def set_status(self, *, session_id: int, status: SessionStatus, finalized_at: Optional[datetime] = None) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE sessions SET status=%s, finalized_at=COALESCE(%s, finalized_at) WHERE session_id=%s",
                (status.value, finalized_at, int(session_id)),
            )
            return cur.rowcount > 0

    def get_activity(self, session_id: int) -> SessionActivity:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM stall_confirmations WHERE session_id=%s) AS stalls,
                    (SELECT COUNT(*) FROM media WHERE session_id=%s) AS media
                """,
                (int(session_id), int(session_id)),
            )
            row = fetchone(cur) or {}
            return SessionActivity(stalls=int(row.get("stalls") or 0), media=int(row.get("media") or 0))

    def list_history(self, *, user_id: int, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT s.session_id, s.session_date, s.status, s.punch_in_time, s.punch_out_time, s.finalized_at,
                       m.name AS market_name,
                       (SELECT COUNT(*) FROM stall_confirmations sc WHERE sc.session_id = s.session_id) AS stall_count,
                       (SELECT COUNT(*) FROM media md WHERE md.session_id = s.session_id) AS media_count
                FROM sessions s
                LEFT JOIN markets m ON m.market_id = s.market_id
                WHERE s.user_id=%s
                ORDER BY s.session_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return fetchall(cur)

    def list_for_date(self, *, session_date: date, market_id: Optional[int] = None) -> Sequence[dict]:
        sql = """
            SELECT s.session_id, s.user_id, s.market_id, s.session_date, s.status,
                   s.punch_in_time, s.punch_out_time, s.finalized_at,
                   u.full_name, u.username, m.name AS market_name
            FROM sessions s
            JOIN users u ON u.user_id = s.user_id
            LEFT JOIN markets m ON m.market_id = s.market_id
            WHERE s.session_date=%s
        """
        params: list = [session_date]
        if market_id is not None:
            sql += " AND s.market_id=%s"
            params.append(int(market_id))
        sql += " ORDER BY u.full_name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def add_comment(self, *, session_id: int, user_id: int, body: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO session_comments (session_id, user_id, body) VALUES (%s, %s, %s)",
                (int(session_id), int(user_id), body),
            )
            return int(cur.lastrowid)

    def list_comments(self, session_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.comment_id, c.session_id, c.user_id, c.body, c.created_at, u.full_name
                FROM session_comments c
                JOIN users u ON u.user_id = c.user_id
                WHERE c.session_id=%s
                ORDER BY c.created_at, c.comment_id
                """,
                (int(session_id),),
            )
            return fetchall(cur)
