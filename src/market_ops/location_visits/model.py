from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus, VisitLocationType


@dataclass(frozen=True)
class LocationVisit:
    """A field visit to scout a possible market site, with selfie and GPS proof."""

    visit_id: int
    user_id: int
    visit_date: date
    selfie_path: str
    gps_lat: float
    gps_lng: float
    location_name: str
    location_type: VisitLocationType
    status: RequestStatus
    created_at: datetime
    occupied_flats: Optional[int] = None
    nearby_population: Optional[int] = None
    nearest_local_mandi: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
