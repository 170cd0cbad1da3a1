from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceReportRow
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, session_id, attendance_date, punch_in_time, punch_out_time, status, is_late,
    punch_in_lat, punch_in_lng, punch_out_lat, punch_out_lng, selfie_path
"""


def _float_or_none(value) -> Optional[float]:
    return None if value is None else float(value)


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        session_id=None if r.get("session_id") is None else int(r["session_id"]),
        attendance_date=r["attendance_date"],
        punch_in_time=r.get("punch_in_time"),
        punch_out_time=r.get("punch_out_time"),
        status=AttendanceStatus(r["status"]),
        is_late=bool(r.get("is_late")),
        punch_in_lat=_float_or_none(r.get("punch_in_lat")),
        punch_in_lng=_float_or_none(r.get("punch_in_lng")),
        punch_out_lat=_float_or_none(r.get("punch_out_lat")),
        punch_out_lng=_float_or_none(r.get("punch_out_lng")),
        selfie_path=r.get("selfie_path"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_user_and_date(self, user_id: int, attendance_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND attendance_date=%s",
                (int(user_id), attendance_date),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s
                ORDER BY attendance_date DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM attendance_records
                WHERE user_id=%s AND attendance_date BETWEEN %s AND %s
                ORDER BY attendance_date
                """,
                (int(user_id), start_date, end_date),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def create_punch_in(
        self,
        *,
        user_id: int,
        session_id: Optional[int],
        attendance_date: date,
        punch_in_time: datetime,
        lat: Optional[float],
        lng: Optional[float],
        selfie_path: Optional[str],
        status: AttendanceStatus,
        is_late: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records
                    (user_id, session_id, attendance_date, punch_in_time, punch_in_lat, punch_in_lng,
                     selfie_path, status, is_late)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    session_id,
                    attendance_date,
                    punch_in_time,
                    lat,
                    lng,
                    selfie_path,
                    status.value,
                    1 if is_late else 0,
                ),
            )
            return int(cur.lastrowid)

    def update_punch_out(
        self,
        *,
        attendance_id: int,
        punch_out_time: datetime,
        lat: Optional[float],
        lng: Optional[float],
        status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET punch_out_time=%s, punch_out_lat=%s, punch_out_lng=%s, status=%s
                WHERE attendance_id=%s AND punch_out_time IS NULL
                """,
                (punch_out_time, lat, lng, status.value, int(attendance_id)),
            )
            return cur.rowcount > 0

    def get_report_rows(
        self,
        *,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None,
        market_id: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        sql = """
            SELECT a.user_id, u.full_name, u.username, m.name AS market_name,
                   a.attendance_date, a.punch_in_time, a.punch_out_time, a.status, a.is_late
            FROM attendance_records a
            JOIN users u ON u.user_id = a.user_id
            LEFT JOIN sessions s ON s.session_id = a.session_id
            LEFT JOIN markets m ON m.market_id = s.market_id
            WHERE a.attendance_date BETWEEN %s AND %s
        """
        params: list = [start_date, end_date]
        if user_id is not None:
            sql += " AND a.user_id=%s"
            params.append(int(user_id))
        if market_id is not None:
            sql += " AND s.market_id=%s"
            params.append(int(market_id))
        sql += " ORDER BY a.attendance_date DESC, u.full_name"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AttendanceReportRow(
                    user_id=int(r["user_id"]),
                    full_name=r["full_name"],
                    username=r["username"],
                    market_name=r.get("market_name"),
                    attendance_date=r["attendance_date"],
                    punch_in_time=r.get("punch_in_time"),
                    punch_out_time=r.get("punch_out_time"),
                    status=AttendanceStatus(r["status"]),
                    is_late=bool(r.get("is_late")),
                )
                for r in fetchall(cur)
            ]
