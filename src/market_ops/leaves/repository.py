from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create(self, *, user_id: int, leave_date: date, reason: str) -> int:
        raise NotImplementedError

    def get(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def find_pending(self, *, user_id: int, leave_date: date) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[dict]:
        """Return UI rows (joined with user)."""

        raise NotImplementedError

    def decide(
        self,
        *,
        leave_id: int,
        status: RequestStatus,
        decided_by: int,
        admin_note: Optional[str] = None,
    ) -> bool:
        """Only pending requests change; returns False otherwise."""
        raise NotImplementedError
