from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Market


class MarketRepository(Protocol):
    def get_by_id(self, market_id: int) -> Optional[Market]:
        raise NotImplementedError

    def list_all(self, *, active_only: bool = False) -> Sequence[Market]:
        raise NotImplementedError

    def list_for_weekday(self, weekday: int) -> Sequence[Market]:
        """Active markets whose own day or an active schedule row matches (0 = Sunday)."""
        raise NotImplementedError

    def create(self, *, name: str, location: str, city: Optional[str], day_of_week: Optional[int]) -> int:
        raise NotImplementedError

    def update(self, *, market_id: int, name: str, location: str, city: Optional[str], day_of_week: Optional[int]) -> bool:
        raise NotImplementedError

    def set_active(self, market_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete(self, market_id: int) -> bool:
        raise NotImplementedError

    def get_schedule(self, market_id: int) -> Sequence[int]:
        raise NotImplementedError

    def set_schedule(self, market_id: int, days: Sequence[int]) -> None:
        raise NotImplementedError
