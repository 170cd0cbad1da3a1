from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import AssetUsage, Collection, CommodityItem, OfferItem, OrganiserFeedback, SessionContext


class MarketReportRepository(Protocol):
    # Non-available commodities
    def add_commodities(self, ctx: SessionContext, items: Sequence[CommodityItem]) -> int:
        raise NotImplementedError

    def list_commodities(self, session_id: int) -> Sequence[dict]:
        raise NotImplementedError

    # Today's offers
    def add_offers(self, ctx: SessionContext, items: Sequence[OfferItem]) -> int:
        raise NotImplementedError

    def list_offers(self, session_id: int) -> Sequence[dict]:
        raise NotImplementedError

    # Organiser feedback (one per user, market, date)
    def get_feedback(self, *, user_id: int, market_id: int, market_date: date) -> Optional[OrganiserFeedback]:
        raise NotImplementedError

    def upsert_feedback(self, ctx: SessionContext, *, difficulties: Optional[str], feedback: Optional[str]) -> int:
        raise NotImplementedError

    def delete_feedback(self, feedback_id: int) -> bool:
        raise NotImplementedError

    # Next-day planning
    def add_next_day_plan(self, ctx: SessionContext, *, next_day_market_name: str, stall_list: str) -> int:
        raise NotImplementedError

    def list_next_day_plans(self, session_id: int) -> Sequence[dict]:
        raise NotImplementedError

    # Asset usage
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
        raise NotImplementedError

    def list_asset_usage(self, *, usage_date: Optional[date] = None, user_id: Optional[int] = None) -> Sequence[AssetUsage]:
        raise NotImplementedError

    # Collections
    def add_collection(
        self,
        *,
        market_id: int,
        collection_date: date,
        amount: Decimal,
        notes: Optional[str],
        collected_by: int,
    ) -> int:
        raise NotImplementedError

    def list_collections(self, *, collection_date: Optional[date] = None, market_id: Optional[int] = None) -> Sequence[Collection]:
        raise NotImplementedError
