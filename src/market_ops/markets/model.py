from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Market:
    market_id: int
    name: str
    location: str
    city: Optional[str] = None
    day_of_week: Optional[int] = None  # 0 = Sunday
    is_active: bool = True


WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
