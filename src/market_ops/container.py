from __future__ import annotations

from dataclasses import dataclass

from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .asset_requests.mysql_asset_repository import MySQLAssetRepository
from .asset_requests.service import AssetService
from .audit.service import AuditService
from .bdo.mysql_bdo_repository import MySQLMarketSubmissionRepository, MySQLStallSubmissionRepository
from .bdo.service import MarketSubmissionService, StallSubmissionService
from .core.constants import DEFAULT_TIMEZONE, SIGNED_URL_TTL_SECONDS
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .leaves.service import LeaveService
from .location_visits.mysql_location_visit_repository import MySQLLocationVisitRepository
from .location_visits.service import LocationVisitService
from .manager_tasks.mysql_manager_task_repository import MySQLManagerTaskRepository
from .manager_tasks.service import ManagerTaskService
from .market_reports.mysql_market_report_repository import MySQLMarketReportRepository
from .market_reports.service import MarketReportService
from .markets.mysql_market_repository import MySQLMarketRepository
from .markets.service import MarketService
from .media.mysql_media_repository import MySQLMediaRepository
from .media.service import MediaService
from .media.storage import MediaStorage
from .realtime.mysql_change_repository import MySQLChangeEventRepository
from .realtime.service import RealtimeService
from .reports.service import ReportService
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.punch_service import PunchService
from .sessions.service import SessionService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.service import SettingsService
from .stalls.mysql_stall_repository import MySQLStallRepository
from .stalls.service import StallService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    auth_service: AuthService
    user_service: UserService
    audit_service: AuditService
    settings_service: SettingsService
    market_service: MarketService
    session_service: SessionService
    attendance_service: AttendanceService
    punch_service: PunchService
    media_service: MediaService
    stall_service: StallService
    market_report_service: MarketReportService
    leave_service: LeaveService
    submission_service: MarketSubmissionService
    bdo_stall_service: StallSubmissionService
    manager_task_service: ManagerTaskService
    asset_service: AssetService
    location_visit_service: LocationVisitService
    realtime_service: RealtimeService
    dashboard_service: DashboardService
    report_service: ReportService
    storage: MediaStorage


def build_container(
    *,
    db_config: dict,
    upload_folder: str,
    secret_key: str,
    tz: str = DEFAULT_TIMEZONE,
    signed_url_ttl: int = SIGNED_URL_TTL_SECONDS,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config, timezone=tz))

    users_repo = MySQLUserRepository(conn)
    audit_repo = MySQLAuditRepository(conn)
    settings_repo = MySQLSettingsRepository(conn)
    markets_repo = MySQLMarketRepository(conn)
    sessions_repo = MySQLSessionRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    media_repo = MySQLMediaRepository(conn)
    stalls_repo = MySQLStallRepository(conn)
    reports_repo = MySQLMarketReportRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    submissions_repo = MySQLMarketSubmissionRepository(conn)
    bdo_stalls_repo = MySQLStallSubmissionRepository(conn)
    tasks_repo = MySQLManagerTaskRepository(conn)
    assets_repo = MySQLAssetRepository(conn)
    visits_repo = MySQLLocationVisitRepository(conn)
    events_repo = MySQLChangeEventRepository(conn)
    dashboard_repo = MySQLDashboardRepository(conn)

    storage = MediaStorage(upload_folder, secret_key=secret_key, default_ttl=signed_url_ttl)

    audit_service = AuditService(audit_repo)
    settings_service = SettingsService(settings_repo, audit_service)
    market_service = MarketService(markets_repo, audit_service)
    session_service = SessionService(sessions_repo, markets_repo, settings_service, audit_service, tz=tz)
    attendance_service = AttendanceService(
        attendance_repo,
        settings_service,
        strategy_factory=AttendanceStrategyFactory(),
    )
    media_service = MediaService(media_repo, session_service, settings_service, storage)
    leave_service = LeaveService(leaves_repo, audit_service)

    return Container(
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, audit_service),
        audit_service=audit_service,
        settings_service=settings_service,
        market_service=market_service,
        session_service=session_service,
        attendance_service=attendance_service,
        punch_service=PunchService(session_service, media_service, attendance_service),
        media_service=media_service,
        stall_service=StallService(stalls_repo, session_service),
        market_report_service=MarketReportService(reports_repo, session_service, markets_repo, audit_service),
        leave_service=leave_service,
        submission_service=MarketSubmissionService(submissions_repo, storage, audit_service),
        bdo_stall_service=StallSubmissionService(bdo_stalls_repo, audit_service, tz=tz),
        manager_task_service=ManagerTaskService(tasks_repo, session_service, markets_repo),
        asset_service=AssetService(assets_repo, markets_repo, storage, audit_service, tz=tz),
        location_visit_service=LocationVisitService(visits_repo, storage, audit_service, tz=tz),
        realtime_service=RealtimeService(events_repo),
        dashboard_service=DashboardService(dashboard_repo, market_service, leave_service, storage),
        report_service=ReportService(attendance_repo),
        storage=storage,
    )
