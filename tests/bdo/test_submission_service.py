from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from fakes import InMemoryAudit, png_file

from market_ops.audit.service import AuditService
from market_ops.bdo.model import MarketSubmission
from market_ops.bdo.service import MarketSubmissionService
from market_ops.core.enums import DocumentsStatus, LocationType, RequestStatus, Role
from market_ops.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from market_ops.media.model import UploadedFile
from market_ops.media.storage import MediaStorage

NOW = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)

FORM = {
    "market_name": "Green Meadows",
    "google_map_location": "https://maps.example.com/?q=18.5,73.8",
    "location_type": "society",
    "rent": "5000",
    "customer_reach": "300",
    "flats_occupancy": "85",
    "opening_date": "2026-04-01",
    "stalls_accommodation_count": "20",
}


class FakeSubmissionsRepo:
    def __init__(self):
        self._subs: dict[int, MarketSubmission] = {}

    def create(self, **fields):
        submission_id = len(self._subs) + 1
        self._subs[submission_id] = MarketSubmission(
            submission_id=submission_id,
            status=RequestStatus.PENDING,
            created_at=datetime(2026, 3, 2, 11, 30),
            **fields,
        )
        return submission_id

    def get(self, submission_id):
        return self._subs.get(int(submission_id))

    def list_submissions(self, *, status=None, user_id=None):
        return [
            {"submission_id": s.submission_id, "status": s.status.value}
            for s in self._subs.values()
            if (status is None or s.status == status) and (user_id is None or s.user_id == user_id)
        ]

    def review(self, *, submission_id, status, reviewed_by, review_notes):
        s = self._subs[submission_id]
        if s.status != RequestStatus.PENDING:
            return False
        self._subs[submission_id] = replace(s, status=status, reviewed_by=reviewed_by, review_notes=review_notes)
        return True

    def save_documents(self, *, submission_id, service_agreement_path, stalls_accommodation_count, complete):
        s = self._subs[submission_id]
        if s.status != RequestStatus.APPROVED:
            return False
        self._subs[submission_id] = replace(
            s,
            service_agreement_path=service_agreement_path,
            stalls_accommodation_count=stalls_accommodation_count,
            documents_status=DocumentsStatus.UPLOADED if complete else DocumentsStatus.PENDING,
        )
        return True


def _service(tmp_path):
    repo = FakeSubmissionsRepo()
    audit = InMemoryAudit()
    storage = MediaStorage(tmp_path, secret_key="s3cret")
    return MarketSubmissionService(repo, storage, AuditService(audit)), repo, audit, storage


def test_submit_parses_form(tmp_path):
    svc, repo, _, _ = _service(tmp_path)

    submission_id = svc.submit(current_role=Role.BDO, user_id=3, form=FORM, now=NOW)

    sub = repo.get(submission_id)
    assert sub.location_type == LocationType.SOCIETY
    assert sub.rent == Decimal("5000.00")
    assert sub.customer_reach == 300
    assert sub.opening_date == date(2026, 4, 1)
    assert sub.video_path is None


def test_submit_stores_video(tmp_path):
    svc, repo, _, storage = _service(tmp_path)
    video = UploadedFile(filename="walkthrough.mp4", content_type="video/mp4", data=b"\x00" * 64)

    submission_id = svc.submit(current_role=Role.BDO, user_id=3, form=FORM, video=video, now=NOW)

    path = repo.get(submission_id).video_path
    assert path.startswith("bdo/3/")
    assert storage.open_path(path).read_bytes() == video.data
    assert storage.resolve_token(svc.media_token(path)) == path


def test_submit_rejects_bad_input(tmp_path):
    svc, _, _, _ = _service(tmp_path)

    with pytest.raises(AuthorizationError):
        svc.submit(current_role=Role.EMPLOYEE, user_id=7, form=FORM, now=NOW)
    with pytest.raises(ValidationError):
        svc.submit(current_role=Role.BDO, user_id=3, form={**FORM, "location_type": "mall"}, now=NOW)
    with pytest.raises(ValidationError):
        svc.submit(current_role=Role.BDO, user_id=3, form={**FORM, "customer_reach": "-4"}, now=NOW)
    with pytest.raises(ValidationError):
        svc.submit(current_role=Role.BDO, user_id=3, form={**FORM, "market_name": ""}, now=NOW)


def test_optional_fields_may_be_blank(tmp_path):
    svc, repo, _, _ = _service(tmp_path)
    form = {**FORM, "rent": "", "customer_reach": "", "opening_date": "", "location_type": "residential_colony"}

    sub = repo.get(svc.submit(current_role=Role.BDO, user_id=3, form=form, now=NOW))

    assert sub.rent is None
    assert sub.customer_reach is None
    assert sub.opening_date is None


def test_review_once(tmp_path):
    svc, repo, audit, _ = _service(tmp_path)
    submission_id = svc.submit(current_role=Role.BDO, user_id=3, form=FORM, now=NOW)

    with pytest.raises(AuthorizationError):
        svc.review(current_role=Role.BDO, admin_user_id=3, submission_id=submission_id, approve=True)
    with pytest.raises(NotFoundError):
        svc.review(current_role=Role.ADMIN, admin_user_id=1, submission_id=42, approve=True)

    svc.review(current_role=Role.ADMIN, admin_user_id=1, submission_id=submission_id, approve=False, notes="Too small")

    assert repo.get(submission_id).status == RequestStatus.REJECTED
    assert audit.entries[-1]["action"] == "rejected"
    assert svc.list_for_review(current_role=Role.ADMIN) == []
    with pytest.raises(ValidationError):
        svc.review(current_role=Role.ADMIN, admin_user_id=1, submission_id=submission_id, approve=True)


def _video():
    return UploadedFile(filename="walkthrough.mp4", content_type="video/mp4", data=b"\x00" * 64)


def _stored_files(root):
    return [p for p in root.rglob("*") if p.is_file()]


@pytest.mark.parametrize("field, value", [("rent", "abc"), ("rent", "1e30"), ("opening_date", "soon")])
def test_rejected_form_stores_no_video(tmp_path, field, value):
    svc, repo, _, _ = _service(tmp_path)

    with pytest.raises(ValidationError):
        svc.submit(current_role=Role.BDO, user_id=3, form={**FORM, field: value}, video=_video(), now=NOW)

    assert _stored_files(tmp_path) == []
    assert repo.list_submissions() == []


def test_failed_insert_removes_video(tmp_path, monkeypatch):
    svc, repo, _, _ = _service(tmp_path)

    def broken_create(**fields):
        raise RuntimeError("db down")

    monkeypatch.setattr(repo, "create", broken_create)

    with pytest.raises(RuntimeError):
        svc.submit(current_role=Role.BDO, user_id=3, form=FORM, video=_video(), now=NOW)

    assert _stored_files(tmp_path) == []


def test_rent_above_column_limit_is_rejected(tmp_path):
    svc, _, _, _ = _service(tmp_path)

    with pytest.raises(ValidationError, match="at most"):
        svc.submit(current_role=Role.BDO, user_id=3, form={**FORM, "rent": "10000000000"}, now=NOW)


def _approved(svc, form=FORM):
    submission_id = svc.submit(current_role=Role.BDO, user_id=3, form=form, now=NOW)
    svc.review(current_role=Role.ADMIN, admin_user_id=1, submission_id=submission_id, approve=True)
    return submission_id


def _agreement(name="agreement.pdf", content_type="application/pdf"):
    return UploadedFile(filename=name, content_type=content_type, data=b"%PDF-1.4 agreement")


def test_documents_only_for_own_approved_proposal(tmp_path):
    svc, _, _, _ = _service(tmp_path)
    pending = svc.submit(current_role=Role.BDO, user_id=3, form=FORM, now=NOW)

    with pytest.raises(ValidationError, match="approved proposals"):
        svc.upload_documents(user_id=3, submission_id=pending, agreement=_agreement(), now=NOW)

    approved = _approved(svc)
    with pytest.raises(AuthorizationError):
        svc.upload_documents(user_id=4, submission_id=approved, agreement=_agreement(), now=NOW)
    with pytest.raises(ValidationError, match="service agreement or the number of stalls"):
        svc.upload_documents(user_id=3, submission_id=approved, now=NOW)
    assert _stored_files(tmp_path) == []


def test_documents_complete_once_agreement_and_stalls_are_on_file(tmp_path):
    svc, repo, _, storage = _service(tmp_path)
    submission_id = _approved(svc, {**FORM, "stalls_accommodation_count": ""})

    assert svc.upload_documents(user_id=3, submission_id=submission_id, agreement=_agreement(), now=NOW) is False
    sub = repo.get(submission_id)
    assert sub.documents_status == DocumentsStatus.PENDING
    assert sub.service_agreement_path.startswith("bdo_documents/3/")
    assert storage.open_path(sub.service_agreement_path).read_bytes() == b"%PDF-1.4 agreement"

    assert svc.upload_documents(user_id=3, submission_id=submission_id, stalls_accommodation_count="24", now=NOW)
    sub = repo.get(submission_id)
    assert sub.documents_status == DocumentsStatus.UPLOADED
    assert sub.stalls_accommodation_count == 24


def test_replacing_agreement_removes_the_old_file(tmp_path):
    svc, repo, _, _ = _service(tmp_path)
    submission_id = _approved(svc)
    svc.upload_documents(user_id=3, submission_id=submission_id, agreement=_agreement(), now=NOW)
    first = repo.get(submission_id).service_agreement_path

    later = datetime(2026, 3, 3, 6, 0, tzinfo=timezone.utc)
    svc.upload_documents(user_id=3, submission_id=submission_id, agreement=png_file("agreement.png"), now=later)

    second = repo.get(submission_id).service_agreement_path
    assert second != first
    assert [p.name for p in _stored_files(tmp_path)] == [second.rsplit("/", 1)[-1]]


@pytest.mark.parametrize(
    "agreement, stalls",
    [
        (UploadedFile(filename="agreement.exe", content_type="application/octet-stream", data=b"MZ"), ""),
        (UploadedFile(filename="agreement.png", content_type="image/png", data=b"not an image"), ""),
        (None, "-3"),
        (_agreement(), "many"),
    ],
)
def test_rejected_documents_store_nothing(tmp_path, agreement, stalls):
    svc, repo, _, _ = _service(tmp_path)
    submission_id = _approved(svc)

    with pytest.raises(ValidationError):
        svc.upload_documents(
            user_id=3, submission_id=submission_id, agreement=agreement, stalls_accommodation_count=stalls, now=NOW
        )

    assert _stored_files(tmp_path) == []
    assert repo.get(submission_id).documents_status == DocumentsStatus.PENDING


def test_failed_document_save_removes_upload(tmp_path, monkeypatch):
    svc, repo, _, _ = _service(tmp_path)
    submission_id = _approved(svc)

    def broken_save(**_):
        raise RuntimeError("db down")

    monkeypatch.setattr(repo, "save_documents", broken_save)

    with pytest.raises(RuntimeError):
        svc.upload_documents(user_id=3, submission_id=submission_id, agreement=_agreement(), now=NOW)

    assert _stored_files(tmp_path) == []
