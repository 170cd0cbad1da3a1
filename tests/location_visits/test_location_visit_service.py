from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from fakes import InMemoryAudit, png_file

from market_ops.audit.service import AuditService
from market_ops.core.enums import RequestStatus, Role, VisitLocationType
from market_ops.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from market_ops.location_visits.model import LocationVisit
from market_ops.location_visits.service import LocationVisitService
from market_ops.media.model import UploadedFile
from market_ops.media.storage import MediaStorage

# 2026-03-02 23:45 in Asia/Kolkata
LATE_EVENING = datetime(2026, 3, 2, 18, 15, tzinfo=timezone.utc)

RESIDENTIAL = {"location_name": "Palm Grove", "location_type": "residential_complex", "occupied_flats": "240"}
OPEN_SPACE = {
    "location_name": "Ground near school",
    "location_type": "open_space",
    "nearby_population": "5000",
    "nearest_local_mandi": "Hadapsar",
}


class InMemoryVisits:
    def __init__(self):
        self._visits: dict[int, LocationVisit] = {}

    def create(self, **fields):
        visit_id = len(self._visits) + 1
        self._visits[visit_id] = LocationVisit(
            visit_id=visit_id, status=RequestStatus.PENDING, created_at=datetime(2026, 3, 2, 23, 45), **fields
        )
        return visit_id

    def get(self, visit_id):
        return self._visits.get(int(visit_id))

    def list_visits(self, *, status=None, user_id=None, visit_date=None):
        return [
            {"visit_id": v.visit_id, "selfie_path": v.selfie_path}
            for v in self._visits.values()
            if (status is None or v.status == status)
            and (user_id is None or v.user_id == user_id)
            and (visit_date is None or v.visit_date == visit_date)
        ]

    def review(self, *, visit_id, status, reviewed_by, review_notes):
        v = self._visits[visit_id]
        if v.status != RequestStatus.PENDING:
            return False
        self._visits[visit_id] = replace(v, status=status, reviewed_by=reviewed_by, review_notes=review_notes)
        return True


def _service(tmp_path):
    repo = InMemoryVisits()
    audit = InMemoryAudit()
    storage = MediaStorage(tmp_path, secret_key="s3cret")
    return LocationVisitService(repo, storage, AuditService(audit)), repo, audit, storage


def _record(svc, form=RESIDENTIAL, **kw):
    args = dict(user_id=7, selfie=png_file(), lat="18.52", lng="73.85", form=form, now=LATE_EVENING)
    args.update(kw)
    return svc.record(**args)


def _stored_files(root):
    return [p for p in root.rglob("*") if p.is_file()]


def test_residential_visit_keeps_flats_only(tmp_path):
    svc, repo, _, storage = _service(tmp_path)

    visit = repo.get(_record(svc, form={**RESIDENTIAL, "nearby_population": "99", "nearest_local_mandi": "X"}))

    assert visit.location_type == VisitLocationType.RESIDENTIAL_COMPLEX
    assert visit.occupied_flats == 240
    assert visit.nearby_population is None
    assert visit.nearest_local_mandi is None
    assert (visit.gps_lat, visit.gps_lng) == (18.52, 73.85)
    assert visit.selfie_path.startswith("location_visits/7/")
    assert storage.open_path(visit.selfie_path).exists()


def test_open_space_visit_keeps_population_and_mandi(tmp_path):
    svc, repo, _, _ = _service(tmp_path)

    visit = repo.get(_record(svc, form={**OPEN_SPACE, "occupied_flats": "12"}))

    assert visit.occupied_flats is None
    assert visit.nearby_population == 5000
    assert visit.nearest_local_mandi == "Hadapsar"


def test_visit_date_is_the_local_day(tmp_path):
    svc, repo, _, _ = _service(tmp_path)

    visit = repo.get(_record(svc, now=datetime(2026, 3, 2, 19, 0, tzinfo=timezone.utc)))

    assert visit.visit_date == date(2026, 3, 3)


@pytest.mark.parametrize(
    "overrides",
    [
        {"selfie": None},
        {"selfie": UploadedFile(filename="me.png", content_type="image/png", data=b"not an image")},
        {"lat": None, "lng": None},
        {"lat": "123", "lng": "73.85"},
        {"form": {**RESIDENTIAL, "location_name": ""}},
        {"form": {**RESIDENTIAL, "location_type": "mall"}},
        {"form": {**RESIDENTIAL, "occupied_flats": ""}},
        {"form": {**RESIDENTIAL, "occupied_flats": "-1"}},
        {"form": {**OPEN_SPACE, "nearby_population": ""}},
        {"form": {**OPEN_SPACE, "nearest_local_mandi": " "}},
    ],
)
def test_rejected_visit_stores_nothing(tmp_path, overrides):
    svc, repo, _, _ = _service(tmp_path)

    with pytest.raises(ValidationError):
        _record(svc, **overrides)

    assert _stored_files(tmp_path) == []
    assert repo.list_visits() == []


def test_failed_insert_removes_selfie(tmp_path, monkeypatch):
    svc, repo, _, _ = _service(tmp_path)

    def broken_create(**_):
        raise RuntimeError("db down")

    monkeypatch.setattr(repo, "create", broken_create)

    with pytest.raises(RuntimeError):
        _record(svc)

    assert _stored_files(tmp_path) == []


def test_review_once(tmp_path):
    svc, repo, audit, _ = _service(tmp_path)
    visit_id = _record(svc)

    with pytest.raises(AuthorizationError):
        svc.list_for_review(current_role=Role.EMPLOYEE)
    with pytest.raises(NotFoundError):
        svc.review(current_role=Role.ADMIN, admin_user_id=1, visit_id=99, approve=True)

    assert [r["visit_id"] for r in svc.list_for_review(current_role=Role.ADMIN, visit_date=date(2026, 3, 2))] == [visit_id]
    svc.review(current_role=Role.ADMIN, admin_user_id=1, visit_id=visit_id, approve=True, notes="Promising")

    assert repo.get(visit_id).status == RequestStatus.APPROVED
    assert audit.entries[-1]["entity"] == "location_visit"
    assert svc.list_for_review(current_role=Role.ADMIN) == []
    with pytest.raises(ValidationError, match="already been reviewed"):
        svc.review(current_role=Role.ADMIN, admin_user_id=1, visit_id=visit_id, approve=False)
