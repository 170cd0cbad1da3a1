from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import DocumentsStatus, LocationType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import MarketSubmission, StallSubmission
from .repository import MarketSubmissionRepository, StallSubmissionRepository

_COLUMNS = """
    submission_id, user_id, market_name, google_map_location, location_type, status, created_at,
    rent, customer_reach, flats_occupancy, opening_date, stalls_accommodation_count, video_path,
    review_notes, reviewed_by, reviewed_at, service_agreement_path, documents_status, documents_uploaded_at
"""

_STALL_COLUMNS = """
    stall_submission_id, user_id, farmer_name, stall_name, contact_number, address, date_of_starting_markets,
    status, created_at, review_notes, reviewed_by, reviewed_at
"""


class MySQLMarketSubmissionRepository(MarketSubmissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO bdo_market_submissions
                    (user_id, market_name, google_map_location, location_type, rent, customer_reach,
                     flats_occupancy, opening_date, stalls_accommodation_count, video_path, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    market_name,
                    google_map_location,
                    location_type.value,
                    rent,
                    customer_reach,
                    flats_occupancy,
                    opening_date,
                    stalls_accommodation_count,
                    video_path,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, submission_id: int) -> Optional[MarketSubmission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM bdo_market_submissions WHERE submission_id=%s", (int(submission_id),))
            r = fetchone(cur)
            if not r:
                return None
            return MarketSubmission(
                submission_id=int(r["submission_id"]),
                user_id=int(r["user_id"]),
                market_name=r["market_name"],
                google_map_location=r["google_map_location"],
                location_type=LocationType(r["location_type"]),
                status=RequestStatus(r["status"]),
                created_at=r["created_at"],
                rent=r.get("rent"),
                customer_reach=r.get("customer_reach"),
                flats_occupancy=r.get("flats_occupancy"),
                opening_date=r.get("opening_date"),
                stalls_accommodation_count=r.get("stalls_accommodation_count"),
                video_path=r.get("video_path"),
                review_notes=r.get("review_notes"),
                reviewed_by=r.get("reviewed_by"),
                reviewed_at=r.get("reviewed_at"),
                service_agreement_path=r.get("service_agreement_path"),
                documents_status=DocumentsStatus(r.get("documents_status") or DocumentsStatus.PENDING.value),
                documents_uploaded_at=r.get("documents_uploaded_at"),
            )

    def list_submissions(self, *, status: Optional[RequestStatus] = None, user_id: Optional[int] = None) -> Sequence[dict]:
        sql = """
            SELECT b.submission_id, b.user_id, u.full_name, b.market_name, b.google_map_location,
                   b.location_type, b.rent, b.customer_reach, b.flats_occupancy, b.opening_date,
                   b.stalls_accommodation_count, b.video_path, b.status, b.review_notes, b.created_at,
                   b.service_agreement_path, b.documents_status, b.documents_uploaded_at
            FROM bdo_market_submissions b
            JOIN users u ON u.user_id = b.user_id
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND b.status=%s"
            params.append(status.value)
        if user_id is not None:
            sql += " AND b.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY b.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def review(self, *, submission_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bdo_market_submissions
                SET status=%s, reviewed_by=%s, reviewed_at=NOW(), review_notes=%s
                WHERE submission_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), review_notes, int(submission_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def save_documents(
        self,
        *,
        submission_id: int,
        service_agreement_path: Optional[str],
        stalls_accommodation_count: Optional[int],
        complete: bool,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bdo_market_submissions
                SET service_agreement_path=%s, stalls_accommodation_count=%s, documents_status=%s,
                    documents_uploaded_at=IF(%s, NOW(), NULL)
                WHERE submission_id=%s AND status=%s
                """,
                (
                    service_agreement_path,
                    stalls_accommodation_count,
                    (DocumentsStatus.UPLOADED if complete else DocumentsStatus.PENDING).value,
                    bool(complete),
                    int(submission_id),
                    RequestStatus.APPROVED.value,
                ),
            )
            return cur.rowcount > 0


def _to_stall(r: dict) -> StallSubmission:
    return StallSubmission(
        stall_submission_id=int(r["stall_submission_id"]),
        user_id=int(r["user_id"]),
        farmer_name=r["farmer_name"],
        stall_name=r["stall_name"],
        contact_number=r["contact_number"],
        address=r["address"],
        date_of_starting_markets=r["date_of_starting_markets"],
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        review_notes=r.get("review_notes"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
    )


class MySQLStallSubmissionRepository(StallSubmissionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO bdo_stall_submissions
                    (user_id, farmer_name, stall_name, contact_number, address, date_of_starting_markets, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    farmer_name,
                    stall_name,
                    contact_number,
                    address,
                    date_of_starting_markets,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, stall_submission_id: int) -> Optional[StallSubmission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_STALL_COLUMNS} FROM bdo_stall_submissions WHERE stall_submission_id=%s",
                (int(stall_submission_id),),
            )
            r = fetchone(cur)
            return _to_stall(r) if r else None

    def list_submissions(self, *, status: Optional[RequestStatus] = None, user_id: Optional[int] = None) -> Sequence[dict]:
        sql = """
            SELECT s.stall_submission_id, s.user_id, u.full_name, s.farmer_name, s.stall_name, s.contact_number,
                   s.address, s.date_of_starting_markets, s.status, s.review_notes, s.created_at
            FROM bdo_stall_submissions s
            JOIN users u ON u.user_id = s.user_id
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND s.status=%s"
            params.append(status.value)
        if user_id is not None:
            sql += " AND s.user_id=%s"
            params.append(int(user_id))
        sql += " ORDER BY s.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def review(
        self, *, stall_submission_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bdo_stall_submissions
                SET status=%s, reviewed_by=%s, reviewed_at=NOW(), review_notes=%s
                WHERE stall_submission_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), review_notes, int(stall_submission_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
