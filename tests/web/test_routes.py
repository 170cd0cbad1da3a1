from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from fakes import (
    InMemoryAttendance,
    InMemoryAudit,
    InMemoryLeaves,
    InMemoryMarkets,
    InMemoryMedia,
    InMemorySessions,
    InMemorySettings,
    InMemoryUsers,
)

from market_ops.asset_requests.service import AssetService
from market_ops.attendance.service import AttendanceService
from market_ops.audit.service import AuditService
from market_ops.bdo.service import MarketSubmissionService, StallSubmissionService
from market_ops.container import Container
from market_ops.core.enums import Role
from market_ops.dashboard.service import DashboardService
from market_ops.leaves.service import LeaveService
from market_ops.location_visits.service import LocationVisitService
from market_ops.main import create_app
from market_ops.manager_tasks.service import ManagerTaskService
from market_ops.market_reports.service import MarketReportService
from market_ops.markets.model import Market
from market_ops.markets.service import MarketService
from market_ops.media.service import MediaService
from market_ops.media.storage import MediaStorage
from market_ops.realtime.service import RealtimeService
from market_ops.reports.service import ReportService
from market_ops.sessions.punch_service import PunchService
from market_ops.sessions.service import SessionService
from market_ops.settings.service import SettingsService
from market_ops.stalls.service import StallService
from market_ops.users.model import User
from market_ops.users.service import AuthService, UserService


class EmptyDashboardRepo:
    def attendance_rows(self, day):
        return []

    def live_market_rows(self, day):
        return []

    def session_rows(self, day, market_id=None):
        return []

    def media_counts(self, day):
        return [{"session_id": 1, "media_type": "rate_board", "total": 3, "late": 1}]

    def stall_rows(self, day):
        return []

    def collection_market_ids(self, day):
        return []

    def media_feed_rows(self, day, limit):
        return []

    def market_records(self, kind, *, market_id, day):
        return []


class StaticChangeEvents:
    def latest_event_id(self):
        return 42

    def changed_tables_since(self, *, since, tables):
        return ["media"] if "media" in tables else []

    def delete_older_than(self, *, days):
        return 0


def _container(tmp_path) -> Container:
    users = InMemoryUsers(
        [
            User(1, "Admin", "admin", generate_password_hash("admin123"), (Role.ADMIN, Role.EMPLOYEE)),
            User(7, "Ravi", "ravi", generate_password_hash("ravi123"), (Role.EMPLOYEE,)),
        ]
    )
    audit = AuditService(InMemoryAudit())
    settings = SettingsService(InMemorySettings(), audit)
    market_repo = InMemoryMarkets([Market(1, "Aundh Market", "Aundh")])
    markets = MarketService(market_repo, audit)
    sessions = SessionService(InMemorySessions(), market_repo, settings, audit)
    storage = MediaStorage(tmp_path, secret_key="test-secret")
    attendance_repo = InMemoryAttendance()
    attendance = AttendanceService(attendance_repo, settings)
    media = MediaService(InMemoryMedia(), sessions, settings, storage)
    leaves = LeaveService(InMemoryLeaves(), audit)
    return Container(
        auth_service=AuthService(users),
        user_service=UserService(users, audit),
        audit_service=audit,
        settings_service=settings,
        market_service=markets,
        session_service=sessions,
        attendance_service=attendance,
        punch_service=PunchService(sessions, media, attendance),
        media_service=media,
        stall_service=StallService(None, sessions),
        market_report_service=MarketReportService(None, sessions, market_repo, audit),
        leave_service=leaves,
        submission_service=MarketSubmissionService(None, storage, audit),
        bdo_stall_service=StallSubmissionService(None, audit),
        manager_task_service=ManagerTaskService(None, sessions, market_repo),
        asset_service=AssetService(None, market_repo, storage, audit),
        location_visit_service=LocationVisitService(None, storage, audit),
        realtime_service=RealtimeService(StaticChangeEvents()),
        dashboard_service=DashboardService(EmptyDashboardRepo(), markets, leaves, storage),
        report_service=ReportService(attendance_repo),
        storage=storage,
    )


@pytest.fixture()
def container(tmp_path):
    return _container(tmp_path)


@pytest.fixture()
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


def _login_as(client, user_id, role, roles=None):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["name"] = "Test"
        sess["role"] = role.value
        sess["roles"] = [r.value for r in (roles or [role])]


def test_pages_redirect_to_login(client):
    resp = client.get("/admin/dashboard")

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/")


def test_login_page_renders(client):
    resp = client.get("/")

    assert resp.status_code == 200


def test_api_requires_login_with_json(client):
    resp = client.get("/api/admin/widgets/stats")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Login required"}


def test_login_sends_admin_to_admin_dashboard(client):
    resp = client.post("/", data={"username": "admin", "password": "admin123"})

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/admin/dashboard")
    with client.session_transaction() as sess:
        assert sess["role"] == "admin"
        assert sess["roles"] == ["admin", "employee"]


def test_failed_login_stays_on_page(client):
    resp = client.post("/", data={"username": "ravi", "password": "nope"})

    assert resp.status_code == 200
    with client.session_transaction() as sess:
        assert "user_id" not in sess


def test_admin_api_forbidden_for_employee(client):
    _login_as(client, 7, Role.EMPLOYEE)

    resp = client.get("/api/admin/widgets/stats")

    assert resp.status_code == 403
    assert resp.get_json()["success"] is False


def test_stats_widget(client):
    _login_as(client, 1, Role.ADMIN)

    resp = client.get("/api/admin/widgets/stats?day=2026-03-02")

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["widget"] == "stats"
    assert body["day"] == "2026-03-02"
    assert body["data"]["media"] == 3
    assert body["data"]["late_media"] == 1


def test_widget_errors(client):
    _login_as(client, 1, Role.ADMIN)

    assert client.get("/api/admin/widgets/weather").status_code == 404
    assert client.get("/api/admin/widgets/stats?day=02-03-2026").status_code == 400
    assert client.get("/api/admin/widgets/media?limit=-1").status_code == 400


def test_change_feed(client):
    _login_as(client, 1, Role.ADMIN)

    first = client.get("/api/admin/changes").get_json()
    later = client.get("/api/admin/changes?since=40&widget=media").get_json()

    assert first == {"success": True, "cursor": 42, "changed": False, "tables": []}
    assert later["changed"] is True
    assert later["tables"] == ["media"]
    assert client.get("/api/admin/changes?since=abc").status_code == 400


def test_switch_role_only_to_held_roles(client):
    _login_as(client, 1, Role.ADMIN, [Role.ADMIN, Role.EMPLOYEE])

    client.post("/switch-role", data={"role": "bdo"})
    with client.session_transaction() as sess:
        assert sess["role"] == "admin"

    resp = client.post("/switch-role", data={"role": "employee"})
    assert resp.headers["Location"].endswith("/dashboard")
    with client.session_transaction() as sess:
        assert sess["role"] == "employee"


def test_start_session_and_read_it_back(client):
    _login_as(client, 7, Role.EMPLOYEE)

    resp = client.post("/session/start", data={"market_id": "1"})
    today = client.get("/api/session/today").get_json()

    assert resp.status_code == 302
    assert today["session"]["market_id"] == 1
    assert today["session"]["status"] == "active"
    assert today["today"] == today["session"]["session_date"]
    assert today["session"]["punch_in"] is None


def test_media_file_requires_valid_token(client, container):
    _login_as(client, 7, Role.EMPLOYEE)
    container.storage.save("rate_board/7/1-board.png", b"png-bytes")

    ok = client.get(f"/media/file/{container.storage.sign('rate_board/7/1-board.png')}")
    bad = client.get("/media/file/not-a-token")

    assert ok.status_code == 200
    assert ok.data == b"png-bytes"
    ok.close()
    assert bad.status_code == 400


def test_admin_csv_export(client):
    _login_as(client, 1, Role.ADMIN)

    resp = client.get("/admin/report.csv?start=2026-03-01&end=2026-03-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attendance_20260301_20260331.csv" in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"\xef\xbb\xbf")


@pytest.mark.parametrize(
    "path",
    ["/admin/assets", "/admin/location-visits", "/admin/bdo/stalls", "/admin/manager-tasks", "/manager/tasks"],
)
def test_review_pages_forbidden_for_employee(client, path):
    _login_as(client, 7, Role.EMPLOYEE)

    assert client.get(path).status_code == 403


def test_bad_day_filter_redirects(client):
    _login_as(client, 1, Role.ADMIN)

    resp = client.get("/admin/location-visits?day=yesterday")

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/admin/location-visits")
