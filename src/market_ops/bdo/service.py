from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import local_date, now_utc, parse_iso_date
from ..common.validators import optional_amount, optional_text, require_phone, require_text
from ..core.constants import DEFAULT_TIMEZONE, MAX_AMOUNT, REVIEW_NOTES_MAX_LENGTH
from ..core.enums import LocationType, RequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..media.model import UploadedFile
from ..media.storage import MediaStorage
from ..media.validation import VIDEO_RULE, generate_upload_path, proof_rule, validate_file
from .repository import MarketSubmissionRepository, StallSubmissionRepository

logger = logging.getLogger(__name__)

SUBMITTER_ROLES = frozenset({Role.BDO, Role.ADMIN})


def _optional_count(value, field_name: str) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        n = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number")
    if n < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return n


class MarketSubmissionService:
    def __init__(self, submissions: MarketSubmissionRepository, storage: MediaStorage, audit: AuditService):
        self._submissions = submissions
        self._storage = storage
        self._audit = audit

    def submit(
        self,
        *,
        current_role: Role,
        user_id: int,
        form: dict,
        video: Optional[UploadedFile] = None,
        now: Optional[datetime] = None,
    ) -> int:
        if current_role not in SUBMITTER_ROLES:
            raise AuthorizationError("Only BDOs can submit market proposals")

        market_name = require_text(form.get("market_name", ""), "Market name", 200)
        location = require_text(form.get("google_map_location", ""), "Google Maps location", 500)
        try:
            location_type = LocationType((form.get("location_type") or "").strip())
        except ValueError:
            raise ValidationError("Location type must be society or residential colony")

        opening_raw = (form.get("opening_date") or "").strip()
        fields = dict(
            market_name=market_name,
            google_map_location=location,
            location_type=location_type,
            rent=optional_amount(form.get("rent"), "Rent", max_value=MAX_AMOUNT),
            customer_reach=_optional_count(form.get("customer_reach"), "Customer reach"),
            flats_occupancy=_optional_count(form.get("flats_occupancy"), "Flats occupancy"),
            opening_date=parse_iso_date(opening_raw) if opening_raw else None,
            stalls_accommodation_count=_optional_count(form.get("stalls_accommodation_count"), "Stall capacity"),
        )

        # The video is written only once the whole form has parsed.
        video_path = None
        if video is not None:
            validate_file(video, VIDEO_RULE)
            video_path = generate_upload_path(int(user_id), video.filename, prefix="bdo", now=now or now_utc())
            self._storage.save(video_path, video.data)
        try:
            submission_id = self._submissions.create(user_id=int(user_id), video_path=video_path, **fields)
        except Exception:
            if video_path:
                self._storage.delete(video_path)
            raise
        logger.info("BDO submission %s by user %s: %s", submission_id, user_id, market_name)
        return submission_id

    def list_mine(self, *, user_id: int):
        return self._submissions.list_submissions(user_id=int(user_id))

    def list_for_review(self, *, current_role: Role, status: Optional[RequestStatus] = RequestStatus.PENDING):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._submissions.list_submissions(status=status)

    def review(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        submission_id: int,
        approve: bool,
        notes: str = "",
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        sub = self._submissions.get(int(submission_id))
        if not sub:
            raise NotFoundError("Submission does not exist")
        if sub.status != RequestStatus.PENDING:
            raise ValidationError("Submission has already been reviewed")

        status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        notes_v = optional_text(notes, "Review notes", REVIEW_NOTES_MAX_LENGTH)
        if not self._submissions.review(
            submission_id=sub.submission_id, status=status, reviewed_by=int(admin_user_id), review_notes=notes_v
        ):
            raise ValidationError("Submission has already been reviewed")

        self._audit.record(
            actor_id=admin_user_id,
            action=status.value,
            entity="bdo_submission",
            entity_id=sub.submission_id,
            details={"market_name": sub.market_name, "notes": notes_v},
        )

    def upload_documents(
        self,
        *,
        user_id: int,
        submission_id: int,
        agreement: Optional[UploadedFile] = None,
        stalls_accommodation_count=None,
        now: Optional[datetime] = None,
    ) -> bool:
        """Attach the landowner agreement and/or stall count to an approved proposal.

        Either may come on its own; the documents count as uploaded once both are on file.
        A replaced agreement is removed from storage. Returns whether the documents are complete.
        """
        sub = self._submissions.get(int(submission_id))
        if not sub:
            raise NotFoundError("Submission does not exist")
        if sub.user_id != int(user_id):
            raise AuthorizationError("You can only update your own proposals")
        if sub.status != RequestStatus.APPROVED:
            raise ValidationError("Documents can only be added to approved proposals")

        stalls = _optional_count(stalls_accommodation_count, "Stall capacity")
        if agreement is None and not stalls:
            raise ValidationError("Please provide the service agreement or the number of stalls")
        if agreement is not None:
            validate_file(agreement, proof_rule(agreement.content_type))

        agreement_path = sub.service_agreement_path
        new_path = None
        if agreement is not None:
            new_path = generate_upload_path(int(user_id), agreement.filename, prefix="bdo_documents", now=now or now_utc())
            self._storage.save(new_path, agreement.data)
            agreement_path = new_path
        stalls = stalls or sub.stalls_accommodation_count
        complete = bool(agreement_path and stalls)

        try:
            saved = self._submissions.save_documents(
                submission_id=sub.submission_id,
                service_agreement_path=agreement_path,
                stalls_accommodation_count=stalls,
                complete=complete,
            )
        except Exception:
            if new_path:
                self._storage.delete(new_path)
            raise
        if not saved:
            if new_path:
                self._storage.delete(new_path)
            raise ValidationError("Documents can only be added to approved proposals")

        if new_path and sub.service_agreement_path:
            self._storage.delete(sub.service_agreement_path)
        logger.info("BDO submission %s documents %s", sub.submission_id, "complete" if complete else "partial")
        return complete

    def media_token(self, path: str) -> str:
        return self._storage.sign(path)


class StallSubmissionService:
    """Farmer stalls onboarded by BDOs, reviewed by an admin."""

    def __init__(self, stalls: StallSubmissionRepository, audit: AuditService, *, tz: str = DEFAULT_TIMEZONE):
        self._stalls = stalls
        self._audit = audit
        self._tz = tz

    def submit(self, *, current_role: Role, user_id: int, form: dict, now: Optional[datetime] = None) -> int:
        if current_role not in SUBMITTER_ROLES:
            raise AuthorizationError("Only BDOs can submit stalls")

        contact = require_phone(require_text(form.get("contact_number", ""), "Contact number", 20))
        starting = parse_iso_date(form.get("date_of_starting_markets", ""))
        if starting < local_date(now or now_utc(), self._tz):
            raise ValidationError("Start date cannot be in the past")

        stall_submission_id = self._stalls.create(
            user_id=int(user_id),
            farmer_name=require_text(form.get("farmer_name", ""), "Farmer name", 200),
            stall_name=require_text(form.get("stall_name", ""), "Stall name", 200),
            contact_number=contact,
            address=require_text(form.get("address", ""), "Address", 500),
            date_of_starting_markets=starting,
        )
        logger.info("BDO stall submission %s by user %s", stall_submission_id, user_id)
        return stall_submission_id

    def list_mine(self, *, user_id: int):
        return self._stalls.list_submissions(user_id=int(user_id))

    def list_for_review(self, *, current_role: Role, status: Optional[RequestStatus] = RequestStatus.PENDING):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._stalls.list_submissions(status=status)

    def review(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        stall_submission_id: int,
        approve: bool,
        notes: str = "",
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        stall = self._stalls.get(int(stall_submission_id))
        if not stall:
            raise NotFoundError("Stall submission does not exist")
        if stall.status != RequestStatus.PENDING:
            raise ValidationError("Stall submission has already been reviewed")

        status = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        notes_v = optional_text(notes, "Review notes", REVIEW_NOTES_MAX_LENGTH)
        if not self._stalls.review(
            stall_submission_id=stall.stall_submission_id, status=status, reviewed_by=int(admin_user_id), review_notes=notes_v
        ):
            raise ValidationError("Stall submission has already been reviewed")

        self._audit.record(
            actor_id=admin_user_id,
            action=status.value,
            entity="bdo_stall_submission",
            entity_id=stall.stall_submission_id,
            details={"stall_name": stall.stall_name, "notes": notes_v},
        )
