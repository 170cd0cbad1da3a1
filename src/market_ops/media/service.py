from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Optional

from ..common.datetime_utils import now_utc
from ..common.validators import optional_coordinates
from ..core.enums import MediaType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..settings.model import AppSettings
from ..sessions.service import SessionService
from ..settings.service import SettingsService
from .model import Media, UploadedFile
from .repository import MediaRepository
from .storage import MediaStorage
from .validation import IMAGE_RULE, VIDEO_RULE, generate_upload_path, validate_file

logger = logging.getLogger(__name__)

VIDEO_MEDIA = frozenset({MediaType.MARKET_VIDEO, MediaType.CLEANING_VIDEO})


def upload_window(media_type: MediaType, settings: AppSettings) -> Optional[tuple[time, time]]:
    """The allowed capture window for a media type; None when any time is fine."""
    if media_type == MediaType.OUTSIDE_RATES:
        return settings.outside_rates_start, settings.outside_rates_end
    if media_type == MediaType.MARKET_VIDEO:
        return settings.market_video_start, settings.market_video_end
    return None


def is_late_upload(media_type: MediaType, captured_at: datetime, settings: AppSettings) -> bool:
    window = upload_window(media_type, settings)
    if window is None:
        return False
    start, end = window
    return not (start <= captured_at.time() <= end)


def rule_for(media_type: MediaType, content_type: str):
    if media_type in VIDEO_MEDIA:
        return VIDEO_RULE
    if media_type == MediaType.CUSTOMER_FEEDBACK and content_type.startswith("video/"):
        return VIDEO_RULE
    return IMAGE_RULE


class MediaService:
    def __init__(
        self,
        media: MediaRepository,
        sessions: SessionService,
        settings: SettingsService,
        storage: MediaStorage,
    ):
        self._media = media
        self._sessions = sessions
        self._settings = settings
        self._storage = storage

    def upload(
        self,
        *,
        user_id: int,
        file: Optional[UploadedFile],
        media_type: MediaType,
        lat=None,
        lng=None,
        now: Optional[datetime] = None,
    ) -> Media:
        now = now or now_utc()
        session = self._sessions.require_open_today(user_id, now=now)
        if file is None:
            raise ValidationError("Please choose a file to upload")

        validate_file(file, rule_for(media_type, file.content_type))
        gps_lat, gps_lng = optional_coordinates(lat, lng)

        captured_at = self._sessions.local_now(now)
        late = is_late_upload(media_type, captured_at, self._settings.get())
        path = generate_upload_path(int(user_id), file.filename, prefix=media_type.value, now=now)

        self._storage.save(path, file.data)
        try:
            media_id = self._media.create(
                user_id=int(user_id),
                session_id=session.session_id,
                market_id=session.market_id,
                market_date=session.session_date,
                media_type=media_type,
                file_path=path,
                file_name=file.filename,
                content_type=file.content_type,
                file_size=file.size,
                gps_lat=gps_lat,
                gps_lng=gps_lng,
                captured_at=captured_at,
                is_late=late,
            )
        except Exception:
            self._storage.delete(path)
            raise

        logger.info("media %s uploaded: user=%s type=%s late=%s", media_id, user_id, media_type.value, late)
        return self._media.get_by_id(media_id)

    def list_today(self, user_id: int, *, now: Optional[datetime] = None) -> list[dict]:
        session = self._sessions.get_today(user_id, now=now)
        if not session:
            return []
        return [self.to_ui(m) for m in self._media.list_for_session(session.session_id)]

    def delete(self, *, user_id: int, media_id: int, now: Optional[datetime] = None) -> None:
        media = self._media.get_by_id(int(media_id))
        if not media:
            raise NotFoundError("Media does not exist")
        if media.user_id != int(user_id):
            raise AuthorizationError("You can only delete your own uploads")

        session = self._sessions.require_open_today(user_id, now=now)
        if media.session_id != session.session_id:
            raise ValidationError("Only today's uploads can be deleted")

        self._media.delete(media.media_id)
        self._storage.delete(media.file_path)

    def discard(self, media: Media) -> None:
        """Remove a just-uploaded row and its file when the surrounding action fails."""
        self._media.delete(media.media_id)
        self._storage.delete(media.file_path)
        logger.info("media %s discarded", media.media_id)

    def sign(self, path: str) -> str:
        return self._storage.sign(path)

    def to_ui(self, m: Media) -> dict:
        return {
            "media_id": m.media_id,
            "media_type": m.media_type.value,
            "file_name": m.file_name,
            "content_type": m.content_type,
            "captured_at": m.captured_at.strftime("%Y-%m-%d %H:%M:%S"),
            "is_late": m.is_late,
            "token": self._storage.sign(m.file_path),
        }
