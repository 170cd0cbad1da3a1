from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Market
from .repository import MarketRepository


def _to_market(r: dict) -> Market:
    dow = r.get("day_of_week")
    return Market(
        market_id=int(r["market_id"]),
        name=r["name"],
        location=r["location"],
        city=r.get("city"),
        day_of_week=None if dow is None else int(dow),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLMarketRepository(MarketRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, market_id: int) -> Optional[Market]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT market_id, name, location, city, day_of_week, is_active FROM markets WHERE market_id=%s",
                (int(market_id),),
            )
            row = fetchone(cur)
            return _to_market(row) if row else None

    def list_all(self, *, active_only: bool = False) -> Sequence[Market]:
        sql = "SELECT market_id, name, location, city, day_of_week, is_active FROM markets"
        if active_only:
            sql += " WHERE is_active=1"
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return [_to_market(r) for r in fetchall(cur)]

    def list_for_weekday(self, weekday: int) -> Sequence[Market]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT m.market_id, m.name, m.location, m.city, m.day_of_week, m.is_active
                FROM markets m
                LEFT JOIN market_schedule s
                       ON s.market_id = m.market_id AND s.is_active = 1 AND s.day_of_week = %s
                WHERE m.is_active = 1
                  AND (m.day_of_week = %s OR s.schedule_id IS NOT NULL)
                ORDER BY m.name
                """,
                (int(weekday), int(weekday)),
            )
            return [_to_market(r) for r in fetchall(cur)]

    def create(self, *, name: str, location: str, city: Optional[str], day_of_week: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO markets (name, location, city, day_of_week) VALUES (%s, %s, %s, %s)",
                (name, location, city, day_of_week),
            )
            return int(cur.lastrowid)

    def update(self, *, market_id: int, name: str, location: str, city: Optional[str], day_of_week: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE markets SET name=%s, location=%s, city=%s, day_of_week=%s WHERE market_id=%s",
                (name, location, city, day_of_week, int(market_id)),
            )
            return cur.rowcount > 0

    def set_active(self, market_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE markets SET is_active=%s WHERE market_id=%s", (1 if is_active else 0, int(market_id)))
            return cur.rowcount > 0

    def delete(self, market_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM markets WHERE market_id=%s", (int(market_id),))
            return cur.rowcount > 0

    def get_schedule(self, market_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT day_of_week FROM market_schedule WHERE market_id=%s AND is_active=1 ORDER BY day_of_week",
                (int(market_id),),
            )
            return [int(r["day_of_week"]) for r in fetchall(cur)]

    def set_schedule(self, market_id: int, days: Sequence[int]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE market_schedule SET is_active=0 WHERE market_id=%s", (int(market_id),))
            for day in days:
                cur.execute(
                    """
                    INSERT INTO market_schedule (market_id, day_of_week, is_active)
                    VALUES (%s, %s, 1)
                    ON DUPLICATE KEY UPDATE is_active=1
                    """,
                    (int(market_id), int(day)),
                )
