from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import LocationType, RequestStatus
from .model import MarketSubmission, StallSubmission


class MarketSubmissionRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        market_name: str,
        google_map_location: str,
        location_type: LocationType,
        rent: Optional[Decimal],
        customer_reach: Optional[int],
        flats_occupancy: Optional[int],
        opening_date: Optional[date],
        stalls_accommodation_count: Optional[int],
        video_path: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get(self, submission_id: int) -> Optional[MarketSubmission]:
        raise NotImplementedError

    def list_submissions(self, *, status: Optional[RequestStatus] = None, user_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError

    def review(self, *, submission_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]) -> bool:
        raise NotImplementedError

    def save_documents(
        self,
        *,
        submission_id: int,
        service_agreement_path: Optional[str],
        stalls_accommodation_count: Optional[int],
        complete: bool,
    ) -> bool:
        """Store the post-approval documents; only approved submissions are touched."""
        raise NotImplementedError


class StallSubmissionRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        farmer_name: str,
        stall_name: str,
        contact_number: str,
        address: str,
        date_of_starting_markets: date,
    ) -> int:
        raise NotImplementedError

    def get(self, stall_submission_id: int) -> Optional[StallSubmission]:
        raise NotImplementedError

    def list_submissions(self, *, status: Optional[RequestStatus] = None, user_id: Optional[int] = None) -> Sequence[dict]:
        raise NotImplementedError

    def review(
        self, *, stall_submission_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]
    ) -> bool:
        raise NotImplementedError
