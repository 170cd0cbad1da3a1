from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import StallConfirmation, StallInspection


class StallRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        farmer_name: str,
        stall_name: str,
        stall_no: str,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, stall_id: int) -> Optional[StallConfirmation]:
        raise NotImplementedError

    def update(self, *, stall_id: int, farmer_name: str, stall_name: str, stall_no: str) -> bool:
        raise NotImplementedError

    def delete(self, stall_id: int) -> bool:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[StallConfirmation]:
        raise NotImplementedError

    def create_inspection(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        farmer_name: str,
        stall_name: str,
        stall_no: Optional[str],
        rating: Optional[int],
        feedback: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_inspection(self, inspection_id: int) -> Optional[StallInspection]:
        raise NotImplementedError

    def delete_inspection(self, inspection_id: int) -> bool:
        raise NotImplementedError

    def list_inspections_for_session(self, session_id: int) -> Sequence[StallInspection]:
        raise NotImplementedError
