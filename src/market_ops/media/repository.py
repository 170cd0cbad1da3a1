from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import MediaType
from .model import Media


class MediaRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        session_id: int,
        market_id: Optional[int],
        market_date: date,
        media_type: MediaType,
        file_path: str,
        file_name: str,
        content_type: str,
        file_size: int,
        gps_lat: Optional[float],
        gps_lng: Optional[float],
        captured_at: datetime,
        is_late: bool,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, media_id: int) -> Optional[Media]:
        raise NotImplementedError

    def list_for_session(self, session_id: int) -> Sequence[Media]:
        raise NotImplementedError

    def delete(self, media_id: int) -> bool:
        raise NotImplementedError
