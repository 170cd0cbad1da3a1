from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import local_date, local_date_string, local_naive, now_utc
from ..common.validators import require_text
from ..core.constants import COMMENT_MAX_LENGTH, DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE
from ..core.enums import Role, SessionStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..markets.repository import MarketRepository
from ..settings.service import SettingsService
from .model import ChecklistItem, Session
from .repository import SessionRepository

logger = logging.getLogger(__name__)

# Roles that work without a market assignment (office, BDO scouting).
MARKETLESS_ROLES = frozenset({Role.ADMIN, Role.BDO, Role.BMS_EXECUTIVE, Role.MARKET_MANAGER})


class SessionService:
    """Per-user, per-local-day session lifecycle.

    All `now` arguments are instants (aware, or naive UTC). The session key is the
    local calendar date in `tz`; stored timestamps are local wall-clock times.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        markets: MarketRepository,
        settings: SettingsService,
        audit: AuditService,
        *,
        tz: str = DEFAULT_TIMEZONE,
    ):
        self._sessions = sessions
        self._markets = markets
        self._settings = settings
        self._audit = audit
        self._tz = tz

    @property
    def tz(self) -> str:
        return self._tz

    def local_today(self, now: Optional[datetime] = None) -> date:
        return local_date(now or now_utc(), self._tz)

    def local_today_string(self, now: Optional[datetime] = None) -> str:
        """YYYY-MM-DD of the local day, as sent to the browser."""
        return local_date_string(now or now_utc(), self._tz)

    def local_now(self, now: Optional[datetime] = None) -> datetime:
        return local_naive(now or now_utc(), self._tz)

    def start_session(
        self,
        *,
        user_id: int,
        current_role: Role,
        market_id: Optional[int],
        now: Optional[datetime] = None,
    ) -> Session:
        today = self.local_today(now)

        if market_id:
            market = self._markets.get_by_id(int(market_id))
            if not market or not market.is_active:
                raise ValidationError("Selected market is not available")
        elif current_role not in MARKETLESS_ROLES:
            raise ValidationError("Please select a market")

        if self._sessions.get_for_user_and_date(int(user_id), today):
            raise ConflictError("You already have a session for today")

        session_id = self._sessions.create(
            user_id=int(user_id),
            market_id=int(market_id) if market_id else None,
            session_date=today,
        )
        logger.info("session %s started: user=%s market=%s date=%s", session_id, user_id, market_id, today)
        return self._sessions.get_by_id(session_id)

    def get_today(self, user_id: int, *, now: Optional[datetime] = None) -> Optional[Session]:
        return self._sessions.get_for_user_and_date(int(user_id), self.local_today(now))

    def require_open_today(self, user_id: int, *, now: Optional[datetime] = None) -> Session:
        """Today's session if task submissions are still allowed."""
        session = self.get_today(user_id, now=now)
        if not session:
            raise NotFoundError("No session found for today. Please start a session first.")
        if not session.is_open:
            raise ValidationError(f"Today's session is {session.status.value}; no further changes are allowed")
        return session

    def mark_punched_in(self, session: Session, punch_in_time: datetime) -> None:
        if not self._sessions.set_punch_in(session_id=session.session_id, punch_in_time=punch_in_time):
            raise ValidationError("You have already punched in today")

    def release_punch_in(self, session: Session) -> None:
        """Undo a punch-in claim whose selfie or attendance record failed."""
        self._sessions.clear_punch_in(session_id=session.session_id)

    def mark_punched_out(self, session: Session, punch_out_time: datetime) -> None:
        if self._sessions.set_punch_out(session_id=session.session_id, punch_out_time=punch_out_time):
            return
        current = self._sessions.get_by_id(session.session_id)
        if current and not current.is_open:
            raise ValidationError(f"Today's session is {current.status.value}; no further changes are allowed")
        raise ValidationError("You have already punched out today")

    def release_punch_out(self, session: Session) -> None:
        self._sessions.clear_punch_out(session_id=session.session_id)

    def finalize_checklist(self, session: Session, *, now: Optional[datetime] = None) -> list[ChecklistItem]:
        activity = self._sessions.get_activity(session.session_id)
        cutoff = self._settings.get().finalize_cutoff
        return [
            ChecklistItem("Punch in time", session.punch_in_time is not None),
            ChecklistItem("At least one stall", activity.stalls > 0),
            ChecklistItem("At least one media file", activity.media > 0),
            ChecklistItem(f"Before {cutoff.strftime('%H:%M')}", self.local_now(now).time() <= cutoff),
        ]

    def finalize(self, user_id: int, *, now: Optional[datetime] = None) -> Session:
        session = self.get_today(user_id, now=now)
        if not session:
            raise NotFoundError("No session found for today")
        if session.status in (SessionStatus.FINALIZED, SessionStatus.LOCKED):
            raise ValidationError("Today's session is already finalized")

        # The checklist is advisory; only the session itself is required.
        self._sessions.set_status(
            session_id=session.session_id,
            status=SessionStatus.FINALIZED,
            finalized_at=self.local_now(now),
        )
        logger.info("session %s finalized by user %s", session.session_id, user_id)
        return self._sessions.get_by_id(session.session_id)

    def list_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT):
        return self._sessions.list_history(user_id=int(user_id), limit=int(limit))

    def _visible_session(self, *, session_id: int, user_id: int, current_role: Role) -> Session:
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session does not exist")
        if current_role != Role.ADMIN and session.user_id != int(user_id):
            raise AuthorizationError("You do not have permission")
        return session

    def add_comment(self, *, session_id: int, user_id: int, current_role: Role, body: str) -> int:
        self._visible_session(session_id=session_id, user_id=user_id, current_role=current_role)
        text = require_text(body, "Comment", COMMENT_MAX_LENGTH)
        return self._sessions.add_comment(session_id=int(session_id), user_id=int(user_id), body=text)

    def list_comments(self, *, session_id: int, user_id: int, current_role: Role):
        self._visible_session(session_id=session_id, user_id=user_id, current_role=current_role)
        return self._sessions.list_comments(int(session_id))

    def list_for_date(self, *, current_role: Role, day: date, market_id: Optional[int] = None):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._sessions.list_for_date(session_date=day, market_id=market_id)

    def lock(self, *, current_role: Role, actor_id: int, session_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        session = self._sessions.get_by_id(int(session_id))
        if not session:
            raise NotFoundError("Session does not exist")
        if session.status == SessionStatus.LOCKED:
            raise ValidationError("Session is already locked")

        self._sessions.set_status(session_id=session.session_id, status=SessionStatus.LOCKED)
        self._audit.record(
            actor_id=actor_id,
            action="lock",
            entity="session",
            entity_id=session.session_id,
            details={"user_id": session.user_id, "session_date": session.session_date, "from": session.status.value},
        )
