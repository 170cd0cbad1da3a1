from __future__ import annotations

import importlib
import logging
from typing import Optional

import click
from dotenv import load_dotenv
from flask import Flask

from .asset_requests.controller import register as register_asset_requests
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .bdo.controller import register as register_bdo
from .common.logging_utils import configure_logging
from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_TIMEZONE, SIGNED_URL_TTL_SECONDS
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig
from .leaves.controller import register as register_leaves
from .location_visits.controller import register as register_location_visits
from .manager_tasks.controller import register as register_manager_tasks
from .market_reports.controller import register as register_market_reports
from .markets.controller import register as register_markets
from .media.controller import register as register_media
from .reports.controller import register as register_reports
from .sessions.controller import register as register_sessions
from .settings.controller import register as register_settings
from .stalls.controller import register as register_stalls
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

CONTROLLERS = (
    register_users,
    register_sessions,
    register_attendance,
    register_media,
    register_stalls,
    register_market_reports,
    register_leaves,
    register_bdo,
    register_manager_tasks,
    register_asset_requests,
    register_location_visits,
    register_dashboard,
    register_settings,
    register_markets,
    register_audit,
    register_reports,
)


def _db_label(db_config: dict) -> str:
    return DBConfig.from_dict(db_config).label


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder="templates")

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_CONTENT_LENGTH", 60 * 1024 * 1024))
    app.config["DB_CONFIG"] = db_config

    logger.info("settings=%s db=%s", settings_module, _db_label(db_config))

    if container is None:
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config)
            ensure_demo_users(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            upload_folder=getattr(settings, "UPLOAD_FOLDER", "uploads"),
            secret_key=app.secret_key,
            tz=getattr(settings, "APP_TIMEZONE", DEFAULT_TIMEZONE),
            signed_url_ttl=int(getattr(settings, "SIGNED_URL_TTL_SECONDS", SIGNED_URL_TTL_SECONDS)),
        )

    app.extensions["market_ops"] = container
    for register in CONTROLLERS:
        register(app, container)
    _register_cli(app, container)

    return app


def _register_cli(app: Flask, container: Container) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Apply schema.sql (idempotent)."""
        db_config = app.config["DB_CONFIG"]
        apply_schema(db_config)
        click.echo(f"OK: schema applied -> {_db_label(db_config)} (tables={len(list_tables(db_config))})")

    @app.cli.command("seed-db")
    def seed_db():
        """Load demo markets and demo users."""
        db_config = app.config["DB_CONFIG"]
        apply_seed_sql(db_config)
        ensure_demo_users(db_config)
        click.echo(f"OK: seeded -> {_db_label(db_config)}")

    @app.cli.command("prune-events")
    @click.option("--days", default=1, show_default=True, help="Keep change events newer than this many days.")
    def prune_events(days: int):
        """Delete old rows from the dashboard change feed."""
        deleted = container.realtime_service.prune(days=days)
        click.echo(f"OK: deleted {deleted} change event(s)")
