from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SessionStatus
from .model import Session, SessionActivity


class SessionRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, session_date: date) -> Optional[Session]:
        raise NotImplementedError

    def create(self, *, user_id: int, market_id: Optional[int], session_date: date) -> int:
        """Insert an active session; raise ConflictError when (user_id, session_date) exists."""
        raise NotImplementedError

    def set_punch_in(self, *, session_id: int, punch_in_time: datetime) -> bool:
        raise NotImplementedError

    def clear_punch_in(self, *, session_id: int) -> None:
        raise NotImplementedError

    def set_punch_out(self, *, session_id: int, punch_out_time: datetime) -> bool:
        """Record punch-out on an active or completed session only."""
        raise NotImplementedError

    def clear_punch_out(self, *, session_id: int) -> None:
        raise NotImplementedError

    def set_status(self, *, session_id: int, status: SessionStatus, finalized_at: Optional[datetime] = None) -> bool:
        raise NotImplementedError

    def get_activity(self, session_id: int) -> SessionActivity:
        raise NotImplementedError

    def list_history(self, *, user_id: int, limit: int) -> Sequence[dict]:
        raise NotImplementedError

    def list_for_date(self, *, session_date: date, market_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError

    def add_comment(self, *, session_id: int, user_id: int, body: str) -> int:
        raise NotImplementedError

    def list_comments(self, session_id: int) -> Sequence[dict]:
        raise NotImplementedError
