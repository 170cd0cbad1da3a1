from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..attendance.service import AttendanceService
from ..common.validators import optional_coordinates, require_coordinates
from ..core.enums import MediaType, SessionStatus
from ..core.exceptions import ValidationError
from ..media.model import UploadedFile
from ..media.service import MediaService
from .service import SessionService

logger = logging.getLogger(__name__)


class PunchService:
    """Punch in (selfie + GPS) and punch out against today's session."""

    def __init__(self, sessions: SessionService, media: MediaService, attendance: AttendanceService):
        self._sessions = sessions
        self._media = media
        self._attendance = attendance

    def punch_in(
        self,
        *,
        user_id: int,
        selfie: Optional[UploadedFile],
        lat,
        lng,
        accuracy=None,
        now: Optional[datetime] = None,
    ):
        session = self._sessions.require_open_today(user_id, now=now)
        if session.status != SessionStatus.ACTIVE:
            raise ValidationError("Today's session is no longer active")
        if session.punch_in_time is not None:
            raise ValidationError("You have already punched in today")
        if selfie is None or not selfie.data:
            raise ValidationError("A selfie is required to punch in")

        lat_f, lng_f = require_coordinates(lat, lng)
        self._attendance.check_gps_accuracy(accuracy)

        punched_at = self._sessions.local_now(now)
        # Claimed before the selfie is stored; a second submit stops here.
        self._sessions.mark_punched_in(session, punched_at)
        media = None
        try:
            media = self._media.upload(
                user_id=user_id,
                file=selfie,
                media_type=MediaType.SELFIE_GPS,
                lat=lat_f,
                lng=lng_f,
                now=now,
            )
            decision = self._attendance.record_punch_in(
                user_id=user_id,
                session_id=session.session_id,
                attendance_date=session.session_date,
                punch_in_time=punched_at,
                lat=lat_f,
                lng=lng_f,
                selfie_path=media.file_path,
            )
        except Exception:
            if media is not None:
                self._media.discard(media)
            self._sessions.release_punch_in(session)
            raise
        logger.info("user %s punched in at %s (%s)", user_id, punched_at, decision.status.value)
        return decision

    def punch_out(self, *, user_id: int, lat=None, lng=None, now: Optional[datetime] = None):
        session = self._sessions.require_open_today(user_id, now=now)
        if session.punch_in_time is None:
            raise ValidationError("You have not punched in today")
        if session.punch_out_time is not None:
            raise ValidationError("You have already punched out today")

        lat_f, lng_f = optional_coordinates(lat, lng)
        punched_at = self._sessions.local_now(now)
        self._sessions.mark_punched_out(session, punched_at)
        try:
            decision = self._attendance.record_punch_out(
                user_id=user_id,
                attendance_date=session.session_date,
                punch_out_time=punched_at,
                lat=lat_f,
                lng=lng_f,
            )
        except Exception:
            self._sessions.release_punch_out(session)
            raise
        logger.info("user %s punched out at %s (%s)", user_id, punched_at, decision.status.value)
        return decision
