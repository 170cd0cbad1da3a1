from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from ..audit.service import AuditService
from ..common.datetime_utils import parse_iso_date
from ..common.validators import (
    optional_text,
    require_amount,
    require_positive_int,
    require_text,
)
from ..core.constants import (
    COMMODITY_NAME_MAX_LENGTH,
    COMMODITY_NOTES_MAX_LENGTH,
    FEEDBACK_MAX_LENGTH,
    MAX_AMOUNT,
    MAX_PRICE,
)
from ..core.enums import OfferCategory, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..markets.repository import MarketRepository
from ..sessions.service import SessionService
from .model import CommodityItem, OfferItem, SessionContext
from .repository import MarketReportRepository

logger = logging.getLogger(__name__)

ASSET_ROLES = frozenset({Role.MARKET_MANAGER, Role.ADMIN})


class MarketReportService:
    """Session-scoped market reports plus asset usage and collections."""

    def __init__(
        self,
        reports: MarketReportRepository,
        sessions: SessionService,
        markets: MarketRepository,
        audit: AuditService,
    ):
        self._reports = reports
        self._sessions = sessions
        self._markets = markets
        self._audit = audit

    def _context(self, user_id: int, now: Optional[datetime]) -> SessionContext:
        s = self._sessions.require_open_today(user_id, now=now)
        return SessionContext(user_id=int(user_id), session_id=s.session_id, market_id=s.market_id, market_date=s.session_date)

    # -------- Non-available commodities --------
    def submit_commodities(
        self,
        *,
        user_id: int,
        items: Iterable[Mapping[str, str]],
        now: Optional[datetime] = None,
    ) -> int:
        cleaned: list[CommodityItem] = []
        for raw in items:
            name = (raw.get("commodity_name") or "").strip()
            notes = raw.get("notes")
            if not name and not (notes or "").strip():
                continue  # blank row left in the form
            cleaned.append(
                CommodityItem(
                    commodity_name=require_text(name, "Commodity name", COMMODITY_NAME_MAX_LENGTH),
                    notes=optional_text(notes, "Notes", COMMODITY_NOTES_MAX_LENGTH),
                )
            )
        if not cleaned:
            raise ValidationError("Add at least one commodity")

        return self._reports.add_commodities(self._context(user_id, now), cleaned)

    # -------- Today's offers --------
    def submit_offers(
        self,
        *,
        user_id: int,
        items: Iterable[Mapping[str, str]],
        now: Optional[datetime] = None,
    ) -> int:
        cleaned: list[OfferItem] = []
        for raw in items:
            name = (raw.get("commodity_name") or "").strip()
            if not name and not (raw.get("price") or "").strip():
                continue
            try:
                category = OfferCategory((raw.get("category") or "").strip())
            except ValueError:
                raise ValidationError(f"Unknown offer category: {raw.get('category')!r}")
            cleaned.append(
                OfferItem(
                    category=category,
                    commodity_name=require_text(name, "Commodity name", COMMODITY_NAME_MAX_LENGTH),
                    price=require_amount(raw.get("price"), "Price", max_value=MAX_PRICE),
                    notes=optional_text(raw.get("notes"), "Notes", COMMODITY_NOTES_MAX_LENGTH),
                )
            )
        if not cleaned:
            raise ValidationError("Add at least one offer")

        return self._reports.add_offers(self._context(user_id, now), cleaned)

    # -------- Organiser feedback --------
    def submit_feedback(
        self,
        *,
        user_id: int,
        difficulties: str = "",
        feedback: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        """Create or replace today's feedback for the session's market."""
        ctx = self._context(user_id, now)
        if ctx.market_id is None:
            raise ValidationError("Today's session has no market")

        difficulties_v = optional_text(difficulties, "Difficulties", FEEDBACK_MAX_LENGTH)
        feedback_v = optional_text(feedback, "Feedback", FEEDBACK_MAX_LENGTH)
        if not difficulties_v and not feedback_v:
            raise ValidationError("Enter difficulties or feedback")

        return self._reports.upsert_feedback(ctx, difficulties=difficulties_v, feedback=feedback_v)

    def get_feedback(self, *, user_id: int, now: Optional[datetime] = None):
        session = self._sessions.get_today(user_id, now=now)
        if not session or session.market_id is None:
            return None
        return self._reports.get_feedback(user_id=int(user_id), market_id=session.market_id, market_date=session.session_date)

    def delete_feedback(self, *, user_id: int, now: Optional[datetime] = None) -> None:
        ctx = self._context(user_id, now)
        existing = None
        if ctx.market_id is not None:
            existing = self._reports.get_feedback(user_id=ctx.user_id, market_id=ctx.market_id, market_date=ctx.market_date)
        if not existing:
            raise NotFoundError("No feedback to delete for today")
        self._reports.delete_feedback(existing.feedback_id)

    # -------- Next-day planning --------
    def submit_next_day_plan(
        self,
        *,
        user_id: int,
        next_day_market_name: str,
        stall_list: str,
        now: Optional[datetime] = None,
    ) -> int:
        market_name = require_text(next_day_market_name, "Next day market", 200)
        stalls = require_text(stall_list, "Stall list", FEEDBACK_MAX_LENGTH)
        return self._reports.add_next_day_plan(self._context(user_id, now), next_day_market_name=market_name, stall_list=stalls)

    def today_summary(self, *, user_id: int, now: Optional[datetime] = None) -> dict:
        session = self._sessions.get_today(user_id, now=now)
        if not session:
            return {"commodities": [], "offers": [], "plans": [], "feedback": None}
        return {
            "commodities": self._reports.list_commodities(session.session_id),
            "offers": self._reports.list_offers(session.session_id),
            "plans": self._reports.list_next_day_plans(session.session_id),
            "feedback": self.get_feedback(user_id=user_id, now=now),
        }

    # -------- Asset usage --------
    def record_asset_usage(
        self,
        *,
        current_role: Role,
        user_id: int,
        employee_name: str,
        asset_name: str,
        quantity,
        return_date: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        if current_role not in ASSET_ROLES:
            raise AuthorizationError("Only market managers can record asset usage")

        usage_date = self._sessions.local_today(now)
        return_d: Optional[date] = parse_iso_date(return_date) if (return_date or "").strip() else None
        if return_d and return_d < usage_date:
            raise ValidationError("Return date cannot be before today")

        session = self._sessions.get_today(user_id, now=now)
        return self._reports.add_asset_usage(
            user_id=int(user_id),
            session_id=session.session_id if session else None,
            market_id=session.market_id if session else None,
            usage_date=usage_date,
            employee_name=require_text(employee_name, "Employee name", 120),
            asset_name=require_text(asset_name, "Asset name", 120),
            quantity=require_positive_int(quantity, "Quantity"),
            return_date=return_d,
        )

    def list_asset_usage(self, *, current_role: Role, user_id: int, usage_date: Optional[date] = None):
        if current_role == Role.ADMIN:
            return self._reports.list_asset_usage(usage_date=usage_date)
        if current_role in ASSET_ROLES:
            return self._reports.list_asset_usage(usage_date=usage_date, user_id=int(user_id))
        raise AuthorizationError("You do not have permission")

    # -------- Collections --------
    def record_collection(
        self,
        *,
        current_role: Role,
        actor_id: int,
        market_id: int,
        collection_date: str,
        amount,
        notes: str = "",
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        market = self._markets.get_by_id(int(market_id))
        if not market:
            raise ValidationError("Market does not exist")
        day = parse_iso_date(collection_date)
        value = require_amount(amount, "Amount", max_value=MAX_AMOUNT)
        notes_v = optional_text(notes, "Notes", 500)

        collection_id = self._reports.add_collection(
            market_id=market.market_id,
            collection_date=day,
            amount=value,
            notes=notes_v,
            collected_by=int(actor_id),
        )
        self._audit.record(
            actor_id=actor_id,
            action="create",
            entity="collection",
            entity_id=collection_id,
            details={"market_id": market.market_id, "date": day, "amount": value},
        )
        return collection_id

    def list_collections(self, *, current_role: Role, collection_date: Optional[date] = None, market_id: Optional[int] = None):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._reports.list_collections(collection_date=collection_date, market_id=market_id)
