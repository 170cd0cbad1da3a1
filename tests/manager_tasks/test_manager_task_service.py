from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from fakes import InMemoryMarkets, make_session_service

from market_ops.core.enums import Role
from market_ops.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from market_ops.manager_tasks.model import TASK_TABLES, ManagerTask
from market_ops.manager_tasks.service import ManagerTaskService
from market_ops.markets.model import Market

MARKETS = (
    Market(market_id=1, name="Aundh Market", location="Aundh"),
    Market(market_id=2, name="Baner Market", location="Baner"),
    Market(market_id=3, name="Closed Market", location="Wakad", is_active=False),
)
MONDAY = datetime(2026, 3, 2, 2, 0, tzinfo=timezone.utc)
TUESDAY = datetime(2026, 3, 3, 2, 0, tzinfo=timezone.utc)
MANAGER = Role.MARKET_MANAGER


class InMemoryTasks:
    def __init__(self):
        self.rows: dict[ManagerTask, dict[int, dict]] = {t: {} for t in ManagerTask}

    def add(self, task, ctx, values):
        record_id = len(self.rows[task]) + 1
        self.rows[task][record_id] = {
            "record_id": record_id,
            "user_id": ctx.user_id,
            "session_id": ctx.session_id,
            "market_id": ctx.market_id,
            "market_date": ctx.market_date,
            **{c: values.get(c) for c in TASK_TABLES[task].columns},
        }
        return record_id

    def get(self, task, record_id):
        return self.rows[task].get(record_id)

    def delete(self, task, record_id):
        return self.rows[task].pop(record_id, None) is not None

    def list_for_session(self, task, session_id):
        return [r for r in self.rows[task].values() if r["session_id"] == session_id]

    def list_for_day(self, task, day, *, market_id=None):
        return [
            r
            for r in self.rows[task].values()
            if r["market_date"] == day and (market_id is None or r["market_id"] == market_id)
        ]


def _service():
    sessions, _, _ = make_session_service(MARKETS)
    sessions.start_session(user_id=9, current_role=MANAGER, market_id=1, now=MONDAY)
    sessions.start_session(user_id=10, current_role=MANAGER, market_id=None, now=MONDAY)
    repo = InMemoryTasks()
    return ManagerTaskService(repo, sessions, InMemoryMarkets(MARKETS)), repo, sessions


def test_allocation_defaults_to_session_market():
    svc, repo, _ = _service()

    svc.add_allocation(current_role=MANAGER, user_id=9, employee_name=" Ravi ", now=MONDAY)
    svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Asha", market_id="2", now=MONDAY)

    rows = list(repo.rows[ManagerTask.ALLOCATION].values())
    assert [(r["employee_name"], r["market_id"]) for r in rows] == [("Ravi", 1), ("Asha", 2)]
    assert rows[0]["market_date"] == date(2026, 3, 2)


def test_allocation_needs_an_active_market():
    svc, _, _ = _service()

    with pytest.raises(ValidationError, match="active market"):
        svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Ravi", market_id="3", now=MONDAY)
    with pytest.raises(ValidationError, match="active market"):
        svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Ravi", market_id="abc", now=MONDAY)
    # manager 10 works without a market, so one must be chosen
    with pytest.raises(ValidationError, match="choose a market"):
        svc.add_allocation(current_role=MANAGER, user_id=10, employee_name="Ravi", now=MONDAY)


def test_only_managers_file_tasks():
    svc, _, _ = _service()

    with pytest.raises(AuthorizationError):
        svc.add_inspection_update(current_role=Role.EMPLOYEE, user_id=9, market_id=1, update_notes="ok", now=MONDAY)


def test_land_search_opening_date_only_when_finalized():
    svc, repo, _ = _service()

    svc.add_land_search(
        current_role=MANAGER,
        user_id=9,
        place_name="Plot 4",
        address="Baner Road",
        contact_name="Mr Joshi",
        contact_phone="9876543210",
        is_finalized="",
        opening_date="2026-04-01",
        now=MONDAY,
    )
    svc.add_land_search(
        current_role=MANAGER,
        user_id=9,
        place_name="Plot 5",
        address="Baner Road",
        contact_name="Mr Joshi",
        is_finalized="1",
        opening_date="2026-04-01",
        now=MONDAY,
    )

    first, second = repo.rows[ManagerTask.LAND_SEARCH].values()
    assert (first["is_finalized"], first["opening_date"]) == (False, None)
    assert (second["is_finalized"], second["opening_date"]) == (True, date(2026, 4, 1))
    assert second["contact_phone"] is None


def test_stall_search_joining_date_not_in_the_past():
    svc, repo, _ = _service()

    with pytest.raises(ValidationError):
        svc.add_stall_search(
            current_role=MANAGER,
            user_id=9,
            farmer_name="Ramesh",
            stall_name="Greens",
            is_interested="on",
            joining_date="2026-03-01",
            now=MONDAY,
        )
    with pytest.raises(ValidationError):
        svc.add_stall_search(
            current_role=MANAGER, user_id=9, farmer_name="Ramesh", stall_name="Greens", contact_phone="call me", now=MONDAY
        )

    svc.add_stall_search(
        current_role=MANAGER,
        user_id=9,
        farmer_name="Ramesh",
        stall_name="Greens",
        is_interested="on",
        joining_date="2026-03-09",
        now=MONDAY,
    )
    [row] = repo.rows[ManagerTask.STALL_SEARCH].values()
    assert row["joining_date"] == date(2026, 3, 9)


def test_inspection_update_requires_market_and_notes():
    svc, repo, _ = _service()

    with pytest.raises(ValidationError):
        svc.add_inspection_update(current_role=MANAGER, user_id=9, market_id="", update_notes="Drainage blocked", now=MONDAY)
    with pytest.raises(ValidationError):
        svc.add_inspection_update(current_role=MANAGER, user_id=9, market_id="2", update_notes="  ", now=MONDAY)

    svc.add_inspection_update(current_role=MANAGER, user_id=9, market_id="2", update_notes="Drainage blocked", now=MONDAY)
    assert repo.rows[ManagerTask.INSPECTION_UPDATE][1]["market_id"] == 2


def test_money_recovery_amounts():
    svc, repo, _ = _service()

    svc.add_money_recovery(
        current_role=MANAGER,
        user_id=9,
        farmer_name="Ramesh",
        stall_name="Greens",
        item_name="Tent",
        received_amount="150.5",
        pending_amount="",
        now=MONDAY,
    )

    row = repo.rows[ManagerTask.MONEY_RECOVERY][1]
    assert row["received_amount"] == Decimal("150.50")
    assert row["pending_amount"] == Decimal("0.00")
    for bad in ("-1", "1e30", "lots"):
        with pytest.raises(ValidationError):
            svc.add_money_recovery(
                current_role=MANAGER,
                user_id=9,
                farmer_name="Ramesh",
                stall_name="Greens",
                item_name="Tent",
                pending_amount=bad,
                now=MONDAY,
            )


def test_stall_feedback_rating_bounds():
    svc, repo, _ = _service()

    with pytest.raises(ValidationError):
        svc.add_stall_feedback(
            current_role=MANAGER, user_id=9, customer_name="Meera", feedback_text="Fresh", rating="9", now=MONDAY
        )

    svc.add_stall_feedback(current_role=MANAGER, user_id=9, customer_name="Meera", feedback_text="Fresh", rating="5", now=MONDAY)
    assert repo.rows[ManagerTask.STALL_FEEDBACK][1]["rating"] == 5


def test_tasks_stop_after_finalize():
    svc, _, sessions = _service()
    sessions.finalize(9, now=MONDAY)

    with pytest.raises(ValidationError):
        svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Ravi", now=MONDAY)


def test_delete_is_owner_only_and_today_only():
    svc, _, sessions = _service()
    record_id = svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Ravi", now=MONDAY)

    with pytest.raises(AuthorizationError):
        svc.delete(user_id=10, task=ManagerTask.ALLOCATION, record_id=record_id, now=MONDAY)
    sessions.start_session(user_id=9, current_role=MANAGER, market_id=1, now=TUESDAY)
    with pytest.raises(ValidationError):
        svc.delete(user_id=9, task=ManagerTask.ALLOCATION, record_id=record_id, now=TUESDAY)

    svc.delete(user_id=9, task=ManagerTask.ALLOCATION, record_id=record_id, now=MONDAY)
    with pytest.raises(NotFoundError):
        svc.delete(user_id=9, task=ManagerTask.ALLOCATION, record_id=record_id, now=MONDAY)


def test_today_lists_every_task_and_admin_sees_the_day():
    svc, _, _ = _service()
    svc.add_allocation(current_role=MANAGER, user_id=9, employee_name="Ravi", now=MONDAY)

    today = svc.today(9, now=MONDAY)

    assert set(today) == {t.value for t in ManagerTask}
    assert len(today["allocation"]) == 1
    assert svc.today(11, now=MONDAY)["allocation"] == []
    assert len(svc.list_for_day(current_role=Role.ADMIN, task=ManagerTask.ALLOCATION, day=date(2026, 3, 2))) == 1
    with pytest.raises(AuthorizationError):
        svc.list_for_day(current_role=MANAGER, task=ManagerTask.ALLOCATION, day=date(2026, 3, 2))
