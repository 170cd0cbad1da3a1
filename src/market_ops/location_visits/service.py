from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import local_date, now_utc
from ..common.validators import optional_text, require_coordinates, require_text
from ..core.constants import DEFAULT_TIMEZONE, REVIEW_NOTES_MAX_LENGTH
from ..core.enums import RequestStatus, Role, VisitLocationType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..media.model import UploadedFile
from ..media.storage import MediaStorage
from ..media.validation import IMAGE_RULE, generate_upload_path, validate_file
from .repository import LocationVisitRepository

logger = logging.getLogger(__name__)


def _count(value, field_name: str) -> int:
    raw = str(value or "").strip()
    if not raw:
        raise ValidationError(f"{field_name} is required")
    try:
        n = int(raw)
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number")
    if n < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return n


class LocationVisitService:
    """Scouting visits to possible market sites.

    Every visit carries a selfie and the GPS fix it was taken at. Residential
    complexes record occupied flats; open spaces record the nearby population
    and the nearest mandi. The fields for the other type are dropped.
    """

    def __init__(
        self,
        visits: LocationVisitRepository,
        storage: MediaStorage,
        audit: AuditService,
        *,
        tz: str = DEFAULT_TIMEZONE,
    ):
        self._visits = visits
        self._storage = storage
        self._audit = audit
        self._tz = tz

    def record(
        self,
        *,
        user_id: int,
        selfie: Optional[UploadedFile],
        lat,
        lng,
        form: dict,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or now_utc()
        if selfie is None:
            raise ValidationError("Please take a selfie")
        validate_file(selfie, IMAGE_RULE)
        gps_lat, gps_lng = require_coordinates(lat, lng)
        name = require_text(form.get("location_name", ""), "Location name", 200)
        try:
            location_type = VisitLocationType((form.get("location_type") or "").strip())
        except ValueError:
            raise ValidationError("Location type must be residential complex or open space")

        occupied_flats = nearby_population = nearest_mandi = None
        if location_type == VisitLocationType.RESIDENTIAL_COMPLEX:
            occupied_flats = _count(form.get("occupied_flats"), "Occupied flats")
        else:
            nearby_population = _count(form.get("nearby_population"), "Nearby population")
            nearest_mandi = require_text(form.get("nearest_local_mandi", ""), "Nearest local mandi", 200)

        path = generate_upload_path(int(user_id), selfie.filename, prefix="location_visits", now=now)
        self._storage.save(path, selfie.data)
        try:
            visit_id = self._visits.create(
                user_id=int(user_id),
                visit_date=local_date(now, self._tz),
                selfie_path=path,
                gps_lat=gps_lat,
                gps_lng=gps_lng,
                location_name=name,
                location_type=location_type,
                occupied_flats=occupied_flats,
                nearby_population=nearby_population,
                nearest_local_mandi=nearest_mandi,
            )
        except Exception:
            self._storage.delete(path)
            raise
        logger.info("location visit %s by user %s: %s (%s)", visit_id, user_id, name, location_type.value)
        return visit_id

    def list_mine(self, *, user_id: int):
        return self._visits.list_visits(user_id=int(user_id))

    def list_for_review(
        self,
        *,
        current_role: Role,
        status: Optional[RequestStatus] = RequestStatus.PENDING,
        visit_date: Optional[date] = None,
    ):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._visits.list_visits(status=status, visit_date=visit_date)

    def review(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        visit_id: int,
        approve: bool,
        notes: str = "",
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        visit = self._visits.get(int(visit_id))
        if not visit:
            raise NotFoundError("Location visit does not exist")
        if visit.status != RequestStatus.PENDING:
            raise ValidationError("Location visit has already been reviewed")

        status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        notes_v = optional_text(notes, "Review notes", REVIEW_NOTES_MAX_LENGTH)
        if not self._visits.review(
            visit_id=visit.visit_id, status=status, reviewed_by=int(admin_user_id), review_notes=notes_v
        ):
            raise ValidationError("Location visit has already been reviewed")

        self._audit.record(
            actor_id=admin_user_id,
            action=status.value,
            entity="location_visit",
            entity_id=visit.visit_id,
            details={"location_name": visit.location_name, "notes": notes_v},
        )

    def selfie_token(self, path: str) -> str:
        return self._storage.sign(path)
