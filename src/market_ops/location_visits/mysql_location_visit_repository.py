from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus, VisitLocationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LocationVisit
from .repository import LocationVisitRepository

_COLUMNS = """
    visit_id, user_id, visit_date, selfie_path, gps_lat, gps_lng, location_name, location_type, status, created_at,
    occupied_flats, nearby_population, nearest_local_mandi, review_notes, reviewed_by, reviewed_at
"""


class MySQLLocationVisitRepository(LocationVisitRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO location_visits
                    (user_id, visit_date, selfie_path, gps_lat, gps_lng, location_name, location_type,
                     occupied_flats, nearby_population, nearest_local_mandi, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(user_id),
                    visit_date,
                    selfie_path,
                    gps_lat,
                    gps_lng,
                    location_name,
                    location_type.value,
                    occupied_flats,
                    nearby_population,
                    nearest_local_mandi,
                    RequestStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, visit_id: int) -> Optional[LocationVisit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM location_visits WHERE visit_id=%s", (int(visit_id),))
            r = fetchone(cur)
            if not r:
                return None
            return LocationVisit(
                visit_id=int(r["visit_id"]),
                user_id=int(r["user_id"]),
                visit_date=r["visit_date"],
                selfie_path=r["selfie_path"],
                gps_lat=float(r["gps_lat"]),
                gps_lng=float(r["gps_lng"]),
                location_name=r["location_name"],
                location_type=VisitLocationType(r["location_type"]),
                status=RequestStatus(r["status"]),
                created_at=r["created_at"],
                occupied_flats=r.get("occupied_flats"),
                nearby_population=r.get("nearby_population"),
                nearest_local_mandi=r.get("nearest_local_mandi"),
                review_notes=r.get("review_notes"),
                reviewed_by=r.get("reviewed_by"),
                reviewed_at=r.get("reviewed_at"),
            )

    def list_visits(
        self,
        *,
        status: Optional[RequestStatus] = None,
        user_id: Optional[int] = None,
        visit_date: Optional[date] = None,
    ) -> Sequence[dict]:
        sql = """
            SELECT v.visit_id, v.user_id, u.full_name, v.visit_date, v.selfie_path, v.gps_lat, v.gps_lng,
                   v.location_name, v.location_type, v.occupied_flats, v.nearby_population, v.nearest_local_mandi,
                   v.status, v.review_notes, v.created_at
            FROM location_visits v
            JOIN users u ON u.user_id = v.user_id
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND v.status=%s"
            params.append(status.value)
        if user_id is not None:
            sql += " AND v.user_id=%s"
            params.append(int(user_id))
        if visit_date is not None:
            sql += " AND v.visit_date=%s"
            params.append(visit_date)
        sql += " ORDER BY v.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def review(self, *, visit_id: int, status: RequestStatus, reviewed_by: int, review_notes: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE location_visits
                SET status=%s, reviewed_by=%s, reviewed_at=NOW(), review_notes=%s
                WHERE visit_id=%s AND status=%s
                """,
                (status.value, int(reviewed_by), review_notes, int(visit_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
