from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest
from .repository import LeaveRepository

_COLUMNS = "leave_id, user_id, leave_date, reason, status, created_at, decided_by, decided_at, admin_note"


def _to_leave(r: dict) -> LeaveRequest:
    return LeaveRequest(
        leave_id=int(r["leave_id"]),
        user_id=int(r["user_id"]),
        leave_date=r["leave_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
        admin_note=r.get("admin_note"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, user_id: int, leave_date: date, reason: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO employee_leaves (user_id, leave_date, reason, status) VALUES (%s, %s, %s, %s)",
                (int(user_id), leave_date, reason, RequestStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get(self, leave_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employee_leaves WHERE leave_id=%s", (int(leave_id),))
            row = fetchone(cur)
            return _to_leave(row) if row else None

    def find_pending(self, *, user_id: int, leave_date: date) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employee_leaves WHERE user_id=%s AND leave_date=%s AND status=%s",
                (int(user_id), leave_date, RequestStatus.PENDING.value),
            )
            row = fetchone(cur)
            return _to_leave(row) if row else None

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        sql = """
            SELECT l.leave_id, l.user_id, u.full_name, u.username, l.leave_date, l.reason, l.status,
                   l.created_at, l.decided_at, l.admin_note, d.full_name AS decided_by_name
            FROM employee_leaves l
            JOIN users u ON u.user_id = l.user_id
            LEFT JOIN users d ON d.user_id = l.decided_by
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND l.status=%s"
            params.append(status.value)
        if user_id is not None:
            sql += " AND l.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY l.created_at DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def decide(
        self,
        *,
        leave_id: int,
        status: RequestStatus,
        decided_by: int,
        admin_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employee_leaves
                SET status=%s, decided_by=%s, decided_at=NOW(), admin_note=%s
                WHERE leave_id=%s AND status=%s
                """,
                (status.value, int(decided_by), admin_note, int(leave_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
