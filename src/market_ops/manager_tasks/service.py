from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import (
    non_negative_amount,
    optional_rating,
    require_phone,
    require_text,
)
from ..core.constants import FEEDBACK_MAX_LENGTH, MAX_AMOUNT, STALL_FIELD_MAX_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..market_reports.model import SessionContext
from ..markets.repository import MarketRepository
from ..sessions.service import SessionService
from .model import ManagerTask
from .repository import ManagerTaskRepository

logger = logging.getLogger(__name__)

MANAGER_ROLES = frozenset({Role.MARKET_MANAGER, Role.ADMIN})

_TRUE = {"1", "true", "on", "yes"}


def _flag(value) -> bool:
    return str(value or "").strip().lower() in _TRUE


def _optional_date(value) -> Optional[date]:
    raw = str(value or "").strip()
    return parse_iso_date(raw) if raw else None


class ManagerTaskService:
    """Market manager task forms, each tied to the manager's open session for today.

    A form may name a different market than the session's own (allocations,
    inspection updates, stall feedback); that market must exist and be active.
    """

    def __init__(self, tasks: ManagerTaskRepository, sessions: SessionService, markets: MarketRepository):
        self._tasks = tasks
        self._sessions = sessions
        self._markets = markets

    def _context(
        self,
        *,
        current_role: Role,
        user_id: int,
        now: Optional[datetime],
        market_id=None,
        market_required: bool = False,
    ) -> SessionContext:
        if current_role not in MANAGER_ROLES:
            raise AuthorizationError("Only market managers can file these updates")
        session = self._sessions.require_open_today(user_id, now=now)

        chosen = session.market_id
        if market_id not in (None, ""):
            try:
                market = self._markets.get_by_id(int(market_id))
            except (TypeError, ValueError):
                market = None
            if not market or not market.is_active:
                raise ValidationError("Please choose an active market")
            chosen = market.market_id
        if market_required and chosen is None:
            raise ValidationError("Please choose a market")
        return SessionContext(user_id=int(user_id), session_id=session.session_id, market_id=chosen, market_date=session.session_date)

    def _add(self, task: ManagerTask, ctx: SessionContext, values: dict[str, Any]) -> int:
        record_id = self._tasks.add(task, ctx, values)
        logger.info("%s %s filed by user %s (session %s)", task.value, record_id, ctx.user_id, ctx.session_id)
        return record_id

    def add_allocation(
        self, *, current_role: Role, user_id: int, employee_name: str, market_id=None, now: Optional[datetime] = None
    ) -> int:
        ctx = self._context(current_role=current_role, user_id=user_id, now=now, market_id=market_id, market_required=True)
        return self._add(ManagerTask.ALLOCATION, ctx, {"employee_name": require_text(employee_name, "Employee name", 120)})

    def add_land_search(
        self,
        *,
        current_role: Role,
        user_id: int,
        place_name: str,
        address: str,
        contact_name: str,
        contact_phone: str = "",
        is_finalized=False,
        opening_date: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        ctx = self._context(current_role=current_role, user_id=user_id, now=now)
        finalized = _flag(is_finalized)
        values = {
            "place_name": require_text(place_name, "Place name", 200),
            "address": require_text(address, "Address", 500),
            "contact_name": require_text(contact_name, "Contact name", 120),
            "contact_phone": require_phone(contact_phone),
            "is_finalized": finalized,
            # an opening date only means something once the place is finalized
            "opening_date": _optional_date(opening_date) if finalized else None,
        }
        return self._add(ManagerTask.LAND_SEARCH, ctx, values)

    def add_stall_search(
        self,
        *,
        current_role: Role,
        user_id: int,
        farmer_name: str,
        stall_name: str,
        contact_phone: str = "",
        is_interested=False,
        joining_date: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        ctx = self._context(current_role=current_role, user_id=user_id, now=now)
        interested = _flag(is_interested)
        joining = _optional_date(joining_date) if interested else None
        if joining and joining < ctx.market_date:
            raise ValidationError("Joining date cannot be in the past")
        values = {
            "farmer_name": require_text(farmer_name, "Farmer name", STALL_FIELD_MAX_LENGTH),
            "stall_name": require_text(stall_name, "Stall name", STALL_FIELD_MAX_LENGTH),
            "contact_phone": require_phone(contact_phone),
            "is_interested": interested,
            "joining_date": joining,
        }
        return self._add(ManagerTask.STALL_SEARCH, ctx, values)

    def add_inspection_update(
        self, *, current_role: Role, user_id: int, market_id, update_notes: str, now: Optional[datetime] = None
    ) -> int:
        if market_id in (None, ""):
            raise ValidationError("Please choose a market")
        ctx = self._context(current_role=current_role, user_id=user_id, now=now, market_id=market_id)
        return self._add(
            ManagerTask.INSPECTION_UPDATE,
            ctx,
            {"update_notes": require_text(update_notes, "Update notes", FEEDBACK_MAX_LENGTH)},
        )

    def add_money_recovery(
        self,
        *,
        current_role: Role,
        user_id: int,
        farmer_name: str,
        stall_name: str,
        item_name: str,
        received_amount="",
        pending_amount="",
        now: Optional[datetime] = None,
    ) -> int:
        ctx = self._context(current_role=current_role, user_id=user_id, now=now)
        values = {
            "farmer_name": require_text(farmer_name, "Farmer name", STALL_FIELD_MAX_LENGTH),
            "stall_name": require_text(stall_name, "Stall name", STALL_FIELD_MAX_LENGTH),
            "item_name": require_text(item_name, "Item name", 200),
            "received_amount": non_negative_amount(received_amount, "Received amount", max_value=MAX_AMOUNT),
            "pending_amount": non_negative_amount(pending_amount, "Pending amount", max_value=MAX_AMOUNT),
        }
        return self._add(ManagerTask.MONEY_RECOVERY, ctx, values)

    def add_stall_feedback(
        self,
        *,
        current_role: Role,
        user_id: int,
        customer_name: str,
        feedback_text: str,
        rating=None,
        market_id=None,
        now: Optional[datetime] = None,
    ) -> int:
        ctx = self._context(current_role=current_role, user_id=user_id, now=now, market_id=market_id, market_required=True)
        values = {
            "customer_name": require_text(customer_name, "Customer name", 120),
            "feedback_text": require_text(feedback_text, "Feedback", FEEDBACK_MAX_LENGTH),
            "rating": optional_rating(rating),
        }
        return self._add(ManagerTask.STALL_FEEDBACK, ctx, values)

    def delete(self, *, user_id: int, task: ManagerTask, record_id: int, now: Optional[datetime] = None) -> None:
        row = self._tasks.get(task, int(record_id))
        if not row:
            raise NotFoundError("Record does not exist")
        if int(row["user_id"]) != int(user_id):
            raise AuthorizationError("You can only change your own records")
        session = self._sessions.require_open_today(user_id, now=now)
        if int(row["session_id"]) != session.session_id:
            raise ValidationError("Only today's records can be changed")
        self._tasks.delete(task, int(record_id))

    def today(self, user_id: int, *, now: Optional[datetime] = None) -> dict[str, list]:
        session = self._sessions.get_today(user_id, now=now)
        return {
            task.value: list(self._tasks.list_for_session(task, session.session_id)) if session else []
            for task in ManagerTask
        }

    def list_for_day(self, *, current_role: Role, task: ManagerTask, day: date, market_id: Optional[int] = None):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return list(self._tasks.list_for_day(task, day, market_id=market_id))
