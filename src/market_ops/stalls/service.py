from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.validators import optional_rating, optional_text, require_text
from ..core.constants import FEEDBACK_MAX_LENGTH, STALL_FIELD_MAX_LENGTH
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..sessions.service import SessionService
from .model import StallConfirmation, StallInspection
from .repository import StallRepository


def _clean(farmer_name: str, stall_name: str, stall_no: str) -> tuple[str, str, str]:
    return (
        require_text(farmer_name, "Farmer name", STALL_FIELD_MAX_LENGTH),
        require_text(stall_name, "Stall name", STALL_FIELD_MAX_LENGTH),
        require_text(stall_no, "Stall number", STALL_FIELD_MAX_LENGTH),
    )


class StallService:
    def __init__(self, stalls: StallRepository, sessions: SessionService):
        self._stalls = stalls
        self._sessions = sessions

    def create(
        self,
        *,
        user_id: int,
        farmer_name: str,
        stall_name: str,
        stall_no: str,
        now: Optional[datetime] = None,
    ) -> int:
        session = self._sessions.require_open_today(user_id, now=now)
        farmer, stall, number = _clean(farmer_name, stall_name, stall_no)
        return self._stalls.create(
            user_id=int(user_id),
            session_id=session.session_id,
            market_id=session.market_id,
            market_date=session.session_date,
            farmer_name=farmer,
            stall_name=stall,
            stall_no=number,
        )

    def _own_today(self, *, user_id: int, stall_id: int, now: Optional[datetime]) -> StallConfirmation:
        record = self._stalls.get_by_id(int(stall_id))
        if not record:
            raise NotFoundError("Stall confirmation does not exist")
        if record.user_id != int(user_id):
            raise AuthorizationError("You can only change your own stall confirmations")
        session = self._sessions.require_open_today(user_id, now=now)
        if record.session_id != session.session_id:
            raise ValidationError("Only today's stall confirmations can be changed")
        return record

    def update(
        self,
        *,
        user_id: int,
        stall_id: int,
        farmer_name: str,
        stall_name: str,
        stall_no: str,
        now: Optional[datetime] = None,
    ) -> None:
        self._own_today(user_id=user_id, stall_id=stall_id, now=now)
        farmer, stall, number = _clean(farmer_name, stall_name, stall_no)
        self._stalls.update(stall_id=int(stall_id), farmer_name=farmer, stall_name=stall, stall_no=number)

    def delete(self, *, user_id: int, stall_id: int, now: Optional[datetime] = None) -> None:
        self._own_today(user_id=user_id, stall_id=stall_id, now=now)
        self._stalls.delete(int(stall_id))

    def list_today(self, user_id: int, *, now: Optional[datetime] = None):
        session = self._sessions.get_today(user_id, now=now)
        if not session:
            return []
        return list(self._stalls.list_for_session(session.session_id))

    # -------- Stall inspections --------
    def inspect(
        self,
        *,
        user_id: int,
        farmer_name: str,
        stall_name: str,
        stall_no: str = "",
        rating=None,
        feedback: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        session = self._sessions.require_open_today(user_id, now=now)
        return self._stalls.create_inspection(
            user_id=int(user_id),
            session_id=session.session_id,
            market_id=session.market_id,
            market_date=session.session_date,
            farmer_name=require_text(farmer_name, "Farmer name", STALL_FIELD_MAX_LENGTH),
            stall_name=require_text(stall_name, "Stall name", STALL_FIELD_MAX_LENGTH),
            stall_no=optional_text(stall_no, "Stall number", STALL_FIELD_MAX_LENGTH),
            rating=optional_rating(rating),
            feedback=optional_text(feedback, "Feedback", FEEDBACK_MAX_LENGTH),
        )

    def delete_inspection(self, *, user_id: int, inspection_id: int, now: Optional[datetime] = None) -> None:
        record: Optional[StallInspection] = self._stalls.get_inspection(int(inspection_id))
        if not record:
            raise NotFoundError("Stall inspection does not exist")
        if record.user_id != int(user_id):
            raise AuthorizationError("You can only change your own stall inspections")
        session = self._sessions.require_open_today(user_id, now=now)
        if record.session_id != session.session_id:
            raise ValidationError("Only today's stall inspections can be changed")
        self._stalls.delete_inspection(record.inspection_id)

    def list_inspections_today(self, user_id: int, *, now: Optional[datetime] = None):
        session = self._sessions.get_today(user_id, now=now)
        if not session:
            return []
        return list(self._stalls.list_inspections_for_session(session.session_id))
