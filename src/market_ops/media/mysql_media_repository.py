from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import MediaType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Media
from .repository import MediaRepository

_COLUMNS = """
    media_id, user_id, session_id, market_id, market_date, media_type, file_path, file_name,
    content_type, file_size, captured_at, is_late, gps_lat, gps_lng
"""


def _to_media(r: dict) -> Media:
    return Media(
        media_id=int(r["media_id"]),
        user_id=int(r["user_id"]),
        session_id=int(r["session_id"]),
        market_id=None if r.get("market_id") is None else int(r["market_id"]),
        market_date=r["market_date"],
        media_type=MediaType(r["media_type"]),
        file_path=r["file_path"],
        file_name=r["file_name"],
        content_type=r["content_type"],
        file_size=int(r["file_size"]),
        captured_at=r["captured_at"],
        is_late=bool(r.get("is_late")),
        gps_lat=None if r.get("gps_lat") is None else float(r["gps_lat"]),
        gps_lng=None if r.get("gps_lng") is None else float(r["gps_lng"]),
    )


class MySQLMediaRepository(MediaRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        media_type: MediaType,
        file_path: str,
        file_name: str,
        content_type: str,
        file_size: int,
        gps_lat: Optional[float],
        gps_lng: Optional[float],
        captured_at: datetime,
        is_late: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO media
                    (user_id, session_id, market_id, market_date, media_type, file_path, file_name,
                     content_type, file_size, gps_lat, gps_lng, captured_at, is_late)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    int(session_id),
                    market_id,
                    market_date,
                    media_type.value,
                    file_path,
                    file_name,
                    content_type,
                    int(file_size),
                    gps_lat,
                    gps_lng,
                    captured_at,
                    1 if is_late else 0,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, media_id: int) -> Optional[Media]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM media WHERE media_id=%s", (int(media_id),))
            row = fetchone(cur)
            return _to_media(row) if row else None

    def list_for_session(self, session_id: int) -> Sequence[Media]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM media WHERE session_id=%s ORDER BY captured_at DESC, media_id DESC",
                (int(session_id),),
            )
            return [_to_media(r) for r in fetchall(cur)]

    def delete(self, media_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM media WHERE media_id=%s", (int(media_id),))
            return cur.rowcount > 0
