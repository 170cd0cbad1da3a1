from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AssetUsage, Collection, CommodityItem, OfferItem, OrganiserFeedback, SessionContext
from .repository import MarketReportRepository


class MySQLMarketReportRepository(MarketReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Non-available commodities --------
    def add_commodities(self, ctx: SessionContext, items: Sequence[CommodityItem]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO non_available_commodities
                    (user_id, session_id, market_id, market_date, commodity_name, notes)
                VALUES (%s, %s, %s, %s, %s, %s)
                """,
                [
                    (ctx.user_id, ctx.session_id, ctx.market_id, ctx.market_date, i.commodity_name, i.notes)
                    for i in items
                ],
            )
            return len(items)

    def list_commodities(self, session_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT commodity_id, commodity_name, notes, created_at
                FROM non_available_commodities
                WHERE session_id=%s
                ORDER BY commodity_id
                """,
                (int(session_id),),
            )
            return fetchall(cur)

    # -------- Offers --------
    def add_offers(self, ctx: SessionContext, items: Sequence[OfferItem]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO offers
                    (user_id, session_id, market_id, market_date, category, commodity_name, price, notes)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                [
                    (
                        ctx.user_id,
                        ctx.session_id,
                        ctx.market_id,
                        ctx.market_date,
                        i.category.value,
                        i.commodity_name,
                        i.price,
                        i.notes,
                    )
                    for i in items
                ],
            )
            return len(items)

    def list_offers(self, session_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT offer_id, category, commodity_name, price, notes, created_at
                FROM offers
                WHERE session_id=%s
                ORDER BY category, commodity_name
                """,
                (int(session_id),),
            )
            return fetchall(cur)

    # -------- Organiser feedback --------
    def get_feedback(self, *, user_id: int, market_id: int, market_date: date) -> Optional[OrganiserFeedback]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT feedback_id, user_id, session_id, market_id, market_date, difficulties, feedback, updated_at
                FROM organiser_feedback
                WHERE user_id=%s AND market_id=%s AND market_date=%s
                """,
                (int(user_id), int(market_id), market_date),
            )
            r = fetchone(cur)
            if not r:
                return None
            return OrganiserFeedback(
                feedback_id=int(r["feedback_id"]),
                user_id=int(r["user_id"]),
                session_id=int(r["session_id"]),
                market_id=int(r["market_id"]),
                market_date=r["market_date"],
                difficulties=r.get("difficulties"),
                feedback=r.get("feedback"),
                updated_at=r.get("updated_at"),
            )

    def upsert_feedback(self, ctx: SessionContext, *, difficulties: Optional[str], feedback: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO organiser_feedback
                    (user_id, session_id, market_id, market_date, difficulties, feedback)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    feedback_id=LAST_INSERT_ID(feedback_id),
                    session_id=VALUES(session_id),
                    difficulties=VALUES(difficulties),
                    feedback=VALUES(feedback)
                """,
                (ctx.user_id, ctx.session_id, ctx.market_id, ctx.market_date, difficulties, feedback),
            )
            return int(cur.lastrowid)

    def delete_feedback(self, feedback_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM organiser_feedback WHERE feedback_id=%s", (int(feedback_id),))
            return cur.rowcount > 0

    # -------- Next-day planning --------
    def add_next_day_plan(self, ctx: SessionContext, *, next_day_market_name: str, stall_list: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO next_day_planning (user_id, session_id, market_date, next_day_market_name, stall_list)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (ctx.user_id, ctx.session_id, ctx.market_date, next_day_market_name, stall_list),
            )
            return int(cur.lastrowid)

    def list_next_day_plans(self, session_id: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT planning_id, next_day_market_name, stall_list, created_at
                FROM next_day_planning
                WHERE session_id=%s
                ORDER BY planning_id DESC
                """,
                (int(session_id),),
            )
            return fetchall(cur)

    # -------- Asset usage --------
    def add_asset_usage(
        self,
        *,
        user_id: int,
        session_id: Optional[int],
        market_id: Optional[int],
        usage_date: date,
        employee_name: str,
        asset_name: str,
        quantity: int,
        return_date: Optional[date],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO assets_usage
                    (user_id, session_id, market_id, usage_date, employee_name, asset_name, quantity, return_date)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (int(user_id), session_id, market_id, usage_date, employee_name, asset_name, int(quantity), return_date),
            )
            return int(cur.lastrowid)

    def list_asset_usage(self, *, usage_date: Optional[date] = None, user_id: Optional[int] = None) -> Sequence[AssetUsage]:
        sql = """
            SELECT usage_id, user_id, usage_date, employee_name, asset_name, quantity, return_date, market_id
            FROM assets_usage WHERE 1=1
        """
        params: list = []
        if usage_date is not None:
            sql += " AND usage_date=%s"
            params.append(usage_date)
        if user_id is not None:
            sql += " AND user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY usage_date DESC, usage_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AssetUsage(
                    usage_id=int(r["usage_id"]),
                    user_id=int(r["user_id"]),
                    usage_date=r["usage_date"],
                    employee_name=r["employee_name"],
                    asset_name=r["asset_name"],
                    quantity=int(r["quantity"]),
                    return_date=r.get("return_date"),
                    market_id=r.get("market_id"),
                )
                for r in fetchall(cur)
            ]

    # -------- Collections --------
    def add_collection(
        self,
        *,
        market_id: int,
        collection_date: date,
        amount: Decimal,
        notes: Optional[str],
        collected_by: int,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO collections (market_id, collection_date, amount, notes, collected_by)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(market_id), collection_date, amount, notes, int(collected_by)),
            )
            return int(cur.lastrowid)

    def list_collections(self, *, collection_date: Optional[date] = None, market_id: Optional[int] = None) -> Sequence[Collection]:
        sql = "SELECT collection_id, market_id, collection_date, amount, notes, collected_by FROM collections WHERE 1=1"
        params: list = []
        if collection_date is not None:
            sql += " AND collection_date=%s"
            params.append(collection_date)
        if market_id is not None:
            sql += " AND market_id=%s"
            params.append(int(market_id))
        sql += " ORDER BY collection_date DESC, collection_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                Collection(
                    collection_id=int(r["collection_id"]),
                    market_id=int(r["market_id"]),
                    collection_date=r["collection_date"],
                    amount=Decimal(str(r["amount"])),
                    notes=r.get("notes"),
                    collected_by=int(r["collected_by"]),
                )
                for r in fetchall(cur)
            ]
