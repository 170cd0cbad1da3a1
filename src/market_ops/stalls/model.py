from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class StallConfirmation:
    stall_id: int
    user_id: int
    session_id: int
    market_id: Optional[int]
    market_date: date
    farmer_name: str
    stall_name: str
    stall_no: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class StallInspection:
    inspection_id: int
    user_id: int
    session_id: int
    market_id: Optional[int]
    market_date: date
    farmer_name: str
    stall_name: str
    stall_no: Optional[str] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    created_at: Optional[datetime] = None
