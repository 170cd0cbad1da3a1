from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import OfferCategory


@dataclass(frozen=True)
class SessionContext:
    """Where a session-scoped report row belongs."""

    user_id: int
    session_id: int
    market_id: Optional[int]
    market_date: date


@dataclass(frozen=True)
class CommodityItem:
    commodity_name: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class OfferItem:
    category: OfferCategory
    commodity_name: str
    price: Decimal
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrganiserFeedback:
    feedback_id: int
    user_id: int
    session_id: int
    market_id: int
    market_date: date
    difficulties: Optional[str]
    feedback: Optional[str]
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AssetUsage:
    usage_id: int
    user_id: int
    usage_date: date
    employee_name: str
    asset_name: str
    quantity: int
    return_date: Optional[date] = None
    market_id: Optional[int] = None


@dataclass(frozen=True)
class Collection:
    collection_id: int
    market_id: int
    collection_date: date
    amount: Decimal
    notes: Optional[str]
    collected_by: int
