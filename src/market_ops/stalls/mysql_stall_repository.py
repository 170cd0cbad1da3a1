from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import StallConfirmation, StallInspection
from .repository import StallRepository

_COLUMNS = "stall_id, user_id, session_id, market_id, market_date, farmer_name, stall_name, stall_no, created_at"
_INSPECTION_COLUMNS = (
    "inspection_id, user_id, session_id, market_id, market_date, farmer_name, stall_name, stall_no, rating, feedback, created_at"
)


def _to_stall(r: dict) -> StallConfirmation:
    return StallConfirmation(
        stall_id=int(r["stall_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        market_id=None if r.get("market_id") is None else int(r["market_id"]),
        market_date=r["market_date"],
        farmer_name=r["farmer_name"],
        stall_name=r["stall_name"],
        stall_no=r["stall_no"],
        created_at=r.get("created_at"),
    )


def _to_inspection(r: dict) -> StallInspection:
    return StallInspection(
        inspection_id=int(r["inspection_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        market_id=None if r.get("market_id") is None else int(r["market_id"]),
        market_date=r["market_date"],
        farmer_name=r["farmer_name"],
        stall_name=r["stall_name"],
        stall_no=r.get("stall_no"),
        rating=None if r.get("rating") is None else int(r["rating"]),
        feedback=r.get("feedback"),
        created_at=r.get("created_at"),
    )


class MySQLStallRepository(StallRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        farmer_name: str,
        stall_name: str,
        stall_no: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO stall_confirmations
                    (user_id, session_id, market_id, market_date, farmer_name, stall_name, stall_no)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), int(session_id), market_id, market_date, farmer_name, stall_name, stall_no),
            )
            return int(cur.lastrowid)

    def get_by_id(self, stall_id: int) -> Optional[StallConfirmation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM stall_confirmations WHERE stall_id=%s", (int(stall_id),))
            row = fetchone(cur)
            return _to_stall(row) if row else None

    def update(self, *, stall_id: int, farmer_name: str, stall_name: str, stall_no: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE stall_confirmations SET farmer_name=%s, stall_name=%s, stall_no=%s WHERE stall_id=%s",
                (farmer_name, stall_name, stall_no, int(stall_id)),
            )
            return cur.rowcount > 0

    def delete(self, stall_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM stall_confirmations WHERE stall_id=%s", (int(stall_id),))
            return cur.rowcount > 0

    def list_for_session(self, session_id: int) -> Sequence[StallConfirmation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM stall_confirmations WHERE session_id=%s ORDER BY stall_id",
                (int(session_id),),
            )
            return [_to_stall(r) for r in fetchall(cur)]

    def create_inspection(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        farmer_name: str,
        stall_name: str,
        stall_no: Optional[str],
        rating: Optional[int],
        feedback: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO stall_inspections
                    (user_id, session_id, market_id, market_date, farmer_name, stall_name, stall_no, rating, feedback)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), int(session_id), market_id, market_date, farmer_name, stall_name, stall_no, rating, feedback),
            )
            return int(cur.lastrowid)

    def get_inspection(self, inspection_id: int) -> Optional[StallInspection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSPECTION_COLUMNS} FROM stall_inspections WHERE inspection_id=%s", (int(inspection_id),)
            )
            row = fetchone(cur)
            return _to_inspection(row) if row else None

    def delete_inspection(self, inspection_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM stall_inspections WHERE inspection_id=%s", (int(inspection_id),))
            return cur.rowcount > 0

    def list_inspections_for_session(self, session_id: int) -> Sequence[StallInspection]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_INSPECTION_COLUMNS} FROM stall_inspections WHERE session_id=%s ORDER BY inspection_id",
                (int(session_id),),
            )
            return [_to_inspection(r) for r in fetchall(cur)]
