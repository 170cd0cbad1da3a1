from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import MediaType


@dataclass(frozen=True)
class UploadedFile:
    """An uploaded file held in memory, independent of the web framework."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_storage(cls, storage) -> Optional["UploadedFile"]:
        """Build from a werkzeug FileStorage; None when the field was left empty."""
        if storage is None or not storage.filename:
            return None
        return cls(
            filename=storage.filename,
            content_type=(storage.mimetype or "").lower(),
            data=storage.read(),
        )


@dataclass(frozen=True)
class Media:
    media_id: int
    user_id: int
    session_id: int
    market_id: Optional[int]
    market_date: date
    media_type: MediaType
    file_path: str
    file_name: str
    content_type: str
    file_size: int
    captured_at: datetime
    is_late: bool = False
    gps_lat: Optional[float] = None
    gps_lng: Optional[float] = None
