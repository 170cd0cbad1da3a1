from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..audit.service import AuditService
from ..common.datetime_utils import weekday_sunday_first
from ..common.validators import optional_text, require_text
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import Market
from .repository import MarketRepository


def _parse_weekday(value) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Day of week must be a number between 0 and 6")
    if not 0 <= day <= 6:
        raise ValidationError("Day of week must be between 0 (Sunday) and 6 (Saturday)")
    return day


class MarketService:
    def __init__(self, markets: MarketRepository, audit: AuditService):
        self._markets = markets
        self._audit = audit

    def get(self, market_id: int) -> Optional[Market]:
        return self._markets.get_by_id(int(market_id))

    def list_all(self, *, active_only: bool = False):
        return self._markets.list_all(active_only=active_only)

    def markets_for_date(self, day: date) -> list[Market]:
        """Markets operating on a local date, by own weekday or by schedule."""
        seen: dict[int, Market] = {}
        for m in self._markets.list_for_weekday(weekday_sunday_first(day)):
            if m.is_active:
                seen.setdefault(m.market_id, m)
        return sorted(seen.values(), key=lambda m: m.name.lower())

    def _require_admin(self, current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

    def create(
        self,
        *,
        current_role: Role,
        actor_id: int,
        name: str,
        location: str,
        city: str = "",
        day_of_week=None,
    ) -> int:
        self._require_admin(current_role)
        name = require_text(name, "Market name", 160)
        location = require_text(location, "Location", 255)
        city_v = optional_text(city, "City", 120)
        dow = _parse_weekday(day_of_week)

        market_id = self._markets.create(name=name, location=location, city=city_v, day_of_week=dow)
        self._audit.record(
            actor_id=actor_id,
            action="create",
            entity="market",
            entity_id=market_id,
            details={"name": name, "day_of_week": dow},
        )
        return market_id

    def update(
        self,
        *,
        current_role: Role,
        actor_id: int,
        market_id: int,
        name: str,
        location: str,
        city: str = "",
        day_of_week=None,
    ) -> None:
        self._require_admin(current_role)
        name = require_text(name, "Market name", 160)
        location = require_text(location, "Location", 255)
        city_v = optional_text(city, "City", 120)
        dow = _parse_weekday(day_of_week)

        if not self._markets.update(market_id=int(market_id), name=name, location=location, city=city_v, day_of_week=dow):
            raise ValidationError("Market does not exist")
        self._audit.record(actor_id=actor_id, action="update", entity="market", entity_id=market_id,
                           details={"name": name, "location": location, "city": city_v, "day_of_week": dow})

    def set_active(self, *, current_role: Role, actor_id: int, market_id: int, is_active: bool) -> None:
        self._require_admin(current_role)
        if not self._markets.set_active(int(market_id), is_active=bool(is_active)):
            raise ValidationError("Market does not exist")
        self._audit.record(
            actor_id=actor_id,
            action="activate" if is_active else "deactivate",
            entity="market",
            entity_id=market_id,
        )

    def delete(self, *, current_role: Role, actor_id: int, market_id: int) -> None:
        self._require_admin(current_role)
        market = self._markets.get_by_id(int(market_id))
        if not market:
            raise ValidationError("Market does not exist")
        self._markets.delete(int(market_id))
        self._audit.record(actor_id=actor_id, action="delete", entity="market", entity_id=market_id,
                           details={"name": market.name})

    def get_schedule(self, market_id: int) -> list[int]:
        return list(self._markets.get_schedule(int(market_id)))

    def set_schedule(self, *, current_role: Role, actor_id: int, market_id: int, days: Iterable) -> list[int]:
        self._require_admin(current_role)
        if not self._markets.get_by_id(int(market_id)):
            raise ValidationError("Market does not exist")
        parsed = sorted({d for d in (_parse_weekday(v) for v in days) if d is not None})
        self._markets.set_schedule(int(market_id), parsed)
        self._audit.record(actor_id=actor_id, action="set_schedule", entity="market", entity_id=market_id,
                           details={"days": parsed})
        return parsed
