from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..common.web import admin_required, day_arg, json_error, optional_int_arg
from ..core.constants import DEFAULT_FEED_LIMIT
from ..core.exceptions import DomainError, NotFoundError
from ..container import Container
from ..realtime.service import WIDGET_TABLES

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    dashboard = container.dashboard_service

    widgets = {
        "attendance": lambda day: dashboard.attendance_today(day),
        "live_markets": lambda day: dashboard.live_markets(day),
        "task_progress": lambda day: dashboard.task_progress(day, market_id=optional_int_arg("market_id")),
        "stalls": lambda day: dashboard.stall_confirmations_summary(day),
        "media": lambda day: dashboard.media_feed(day, limit=optional_int_arg("limit") or DEFAULT_FEED_LIMIT),
        "leaves": lambda day: dashboard.pending_leaves(),
        "stats": lambda day: dashboard.stats(day),
        "markets": lambda day: [
            {"market_id": m.market_id, "name": m.name, "location": m.location, "city": m.city or ""}
            for m in container.market_service.markets_for_date(day)
        ],
    }

    def _today():
        return container.session_service.local_today()

    @app.route("/admin/dashboard", endpoint="admin_dashboard")
    @admin_required
    def admin_dashboard():
        try:
            day = day_arg(_today())
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_dashboard"))
        return render_template(
            "admin/dashboard.html",
            day=day.strftime("%Y-%m-%d"),
            stats=dashboard.stats(day),
            cursor=container.realtime_service.poll()["cursor"],
            widget_tables=WIDGET_TABLES,
            active_page="admin_dashboard",
        )

    @app.route("/admin/markets/<int:market_id>/detail", endpoint="admin_market_detail")
    @admin_required
    def admin_market_detail(market_id: int):
        try:
            day = day_arg(_today())
            detail = dashboard.market_detail(market_id, day)
        except NotFoundError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_dashboard"))
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_market_detail", market_id=market_id))
        return render_template("admin/market_detail.html", detail=detail, active_page="admin_dashboard")

    @app.route("/api/admin/widgets/<name>", endpoint="api_admin_widget")
    @admin_required
    def api_admin_widget(name: str):
        build = widgets.get(name)
        if build is None:
            return jsonify({"success": False, "message": f"Unknown widget: {name}"}), 404
        try:
            day = day_arg(_today())
            return jsonify({"success": True, "widget": name, "day": day.strftime("%Y-%m-%d"), "data": build(day)})
        except DomainError as e:
            return json_error(e)
        except Exception:
            logger.exception("widget %s failed", name)
            return jsonify({"success": False, "message": "System error"}), 500

    @app.route("/api/admin/changes", endpoint="api_admin_changes")
    @admin_required
    def api_admin_changes():
        try:
            result = container.realtime_service.poll(
                since=optional_int_arg("since"),
                widget=(request.args.get("widget") or "").strip() or None,
            )
            return jsonify({"success": True, **result})
        except DomainError as e:
            return json_error(e)
