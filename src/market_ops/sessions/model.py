from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import SessionStatus

OPEN_STATUSES = frozenset({SessionStatus.ACTIVE, SessionStatus.COMPLETED})


@dataclass(frozen=True)
class Session:
    """One attendance/task session per user per local date."""

    session_id: int
    user_id: int
    market_id: Optional[int]
    session_date: date
    status: SessionStatus
    punch_in_time: Optional[datetime] = None
    punch_out_time: Optional[datetime] = None
    finalized_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES


@dataclass(frozen=True)
class SessionActivity:
    stalls: int = 0
    media: int = 0


@dataclass(frozen=True)
class ChecklistItem:
    label: str
    met: bool
