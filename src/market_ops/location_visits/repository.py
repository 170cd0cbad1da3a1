from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, VisitLocationType
from .model import LocationVisit


class LocationVisitRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        visit_date: date,
        selfie_path: str,
        gps_lat: float,
        gps_lng: float,
        location_name: str,
        location_type: VisitLocationType,
        occupied_flats: Optional[int],
        nearby_population: Optional[int],
        nearest_local_mandi: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, visit_id: int) -> Optional[LocationVisit]:
        raise NotImplementedError

    def list_visits(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        visit_date: Optional[date] = None,
    ) -> Sequence[dict]:
        raise NotImplementedError

    def review(self, *, visit_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]) -> bool:
        raise NotImplementedError
