from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..market_reports.model import SessionContext
from .model import ManagerTask


class ManagerTaskRepository(Protocol):
    """Rows come back as dicts with a uniform ``record_id`` key."""

    def add(self, task: ManagerTask, ctx: SessionContext, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, task: ManagerTask, record_id: int) -> Optional[dict]:
        raise NotImplementedError

    def delete(self, task: ManagerTask, record_id: int) -> bool:
        raise NotImplementedError

    def list_for_session(self, task: ManagerTask, session_id: int) -> Sequence[dict]:
        raise NotImplementedError

    def list_for_day(self, task: ManagerTask, day: date, *, market_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError
