from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import DocumentsStatus, LocationType, RequestStatus


@dataclass(frozen=True)
class MarketSubmission:
    """A prospective market location proposed by a BDO."""

    submission_id: int
    user_id: int
    market_name: str
    google_map_location: str
    location_type: LocationType
    status: RequestStatus
    created_at: datetime
    rent: Optional[Decimal] = None
    customer_reach: Optional[int] = None
    flats_occupancy: Optional[int] = None
    opening_date: Optional[date] = None
    stalls_accommodation_count: Optional[int] = None
    video_path: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    # filled in after approval
    service_agreement_path: Optional[str] = None
    documents_status: DocumentsStatus = DocumentsStatus.PENDING
    documents_uploaded_at: Optional[datetime] = None


@dataclass(frozen=True)
class StallSubmission:
    """A farmer stall signed up by a BDO for an upcoming market."""

    stall_submission_id: int
    user_id: int
    farmer_name: str
    stall_name: str
    contact_number: str
    address: str
    date_of_starting_markets: date
    status: RequestStatus
    created_at: datetime
    review_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
