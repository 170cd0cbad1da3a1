from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from fakes import make_session_service

from market_ops.core.enums import Role, SessionStatus
from market_ops.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from market_ops.markets.model import Market
from market_ops.sessions.model import SessionActivity

MARKETS = (
    Market(market_id=1, name="Aundh Market", location="Aundh", day_of_week=1),
    Market(market_id=2, name="Closed Market", location="Baner", is_active=False),
)

# 2026-03-02 07:30 in Asia/Kolkata
MORNING = datetime(2026, 3, 2, 2, 0, tzinfo=timezone.utc)


def test_session_date_is_the_local_day_not_the_utc_day():
    svc, _, _ = make_session_service(MARKETS)
    late_evening_utc = datetime(2026, 1, 1, 20, 0, tzinfo=timezone.utc)

    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=late_evening_utc)

    assert session.session_date == date(2026, 1, 2)
    assert session.status == SessionStatus.ACTIVE
    assert session.market_id == 1


def test_second_session_same_day_conflicts():
    svc, _, _ = make_session_service(MARKETS)
    svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)

    with pytest.raises(ConflictError):
        svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)


def test_employee_must_pick_an_active_market():
    svc, _, _ = make_session_service(MARKETS)

    with pytest.raises(ValidationError):
        svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=None, now=MORNING)
    with pytest.raises(ValidationError):
        svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=2, now=MORNING)
    with pytest.raises(ValidationError):
        svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=99, now=MORNING)


def test_bdo_can_start_without_market():
    svc, _, _ = make_session_service(MARKETS)

    session = svc.start_session(user_id=3, current_role=Role.BDO, market_id=None, now=MORNING)

    assert session.market_id is None


def test_require_open_today_without_session():
    svc, _, _ = make_session_service(MARKETS)

    with pytest.raises(NotFoundError):
        svc.require_open_today(7, now=MORNING)


def test_finalize_closes_the_session_for_submissions():
    svc, _, _ = make_session_service(MARKETS)
    svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)

    finalized = svc.finalize(7, now=MORNING)

    assert finalized.status == SessionStatus.FINALIZED
    assert finalized.finalized_at == datetime(2026, 3, 2, 7, 30)
    with pytest.raises(ValidationError):
        svc.require_open_today(7, now=MORNING)
    with pytest.raises(ValidationError):
        svc.finalize(7, now=MORNING)


def test_completed_session_is_still_open():
    svc, repo, _ = make_session_service(MARKETS)
    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)
    repo.set_punch_out(session_id=session.session_id, punch_out_time=datetime(2026, 3, 2, 15, 0))

    assert svc.require_open_today(7, now=MORNING).status == SessionStatus.COMPLETED


def test_finalize_checklist_reports_missing_items():
    svc, repo, _ = make_session_service(MARKETS)
    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)
    repo.activity[session.session_id] = SessionActivity(stalls=2, media=0)

    checklist = svc.finalize_checklist(session, now=MORNING)

    assert [item.met for item in checklist] == [False, True, False, True]
    assert checklist[-1].label == "Before 11:00"


def test_checklist_after_cutoff():
    svc, _, _ = make_session_service(MARKETS)
    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)
    noon = datetime(2026, 3, 2, 6, 45, tzinfo=timezone.utc)  # 12:15 local

    checklist = svc.finalize_checklist(session, now=noon)

    assert checklist[-1].met is False


def test_lock_is_admin_only_and_audited():
    svc, _, audit = make_session_service(MARKETS)
    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)

    with pytest.raises(AuthorizationError):
        svc.lock(current_role=Role.EMPLOYEE, actor_id=7, session_id=session.session_id)

    svc.lock(current_role=Role.ADMIN, actor_id=1, session_id=session.session_id)

    assert svc.get_today(7, now=MORNING).status == SessionStatus.LOCKED
    assert audit.entries[-1]["action"] == "lock"
    assert audit.entries[-1]["entity_id"] == str(session.session_id)
    with pytest.raises(ValidationError):
        svc.lock(current_role=Role.ADMIN, actor_id=1, session_id=session.session_id)


def test_comments_visible_to_owner_and_admin_only():
    svc, _, _ = make_session_service(MARKETS)
    session = svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)

    svc.add_comment(session_id=session.session_id, user_id=7, current_role=Role.EMPLOYEE, body="  Rain delayed setup ")
    svc.add_comment(session_id=session.session_id, user_id=1, current_role=Role.ADMIN, body="Noted")

    comments = svc.list_comments(session_id=session.session_id, user_id=7, current_role=Role.EMPLOYEE)
    assert [c["body"] for c in comments] == ["Rain delayed setup", "Noted"]

    with pytest.raises(AuthorizationError):
        svc.list_comments(session_id=session.session_id, user_id=8, current_role=Role.EMPLOYEE)
    with pytest.raises(ValidationError):
        svc.add_comment(session_id=session.session_id, user_id=7, current_role=Role.EMPLOYEE, body="   ")


def test_list_for_date_requires_admin():
    svc, _, _ = make_session_service(MARKETS)
    svc.start_session(user_id=7, current_role=Role.EMPLOYEE, market_id=1, now=MORNING)

    rows = svc.list_for_date(current_role=Role.ADMIN, day=date(2026, 3, 2))

    assert len(rows) == 1
    with pytest.raises(AuthorizationError):
        svc.list_for_date(current_role=Role.MARKET_MANAGER, day=date(2026, 3, 2))


def test_local_now_is_naive_wall_clock():
    svc, _, _ = make_session_service(MARKETS)

    assert svc.local_now(MORNING) == datetime(2026, 3, 2, 7, 30)
    assert svc.local_now(MORNING).time() == time(7, 30)


def test_local_today_string_rolls_over_at_local_midnight():
    svc, _, _ = make_session_service(MARKETS)

    assert svc.local_today_string(datetime(2026, 1, 1, 18, 29, tzinfo=timezone.utc)) == "2026-01-01"
    assert svc.local_today_string(datetime(2026, 1, 1, 18, 30, tzinfo=timezone.utc)) == "2026-01-02"
