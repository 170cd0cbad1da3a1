from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    is_late: bool = False
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Decides the day status: present or late at punch-in, full or half day at punch-out."""

    @abstractmethod
    def decide_punch_in(self, *, punch_in: datetime) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_punch_out(self, *, worked_minutes: int, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
