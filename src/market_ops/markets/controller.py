from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.web import admin_required, current_role, current_user_id, form_value
from ..core.exceptions import DomainError
from ..container import Container
from .model import WEEKDAY_NAMES

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    markets = container.market_service

    def _run(action, success: str, failure: str):
        try:
            action()
            flash(success, "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception(failure)
            flash(f"System error: {failure}", "danger")
        return redirect(url_for("admin_markets"))

    @app.route("/admin/markets", endpoint="admin_markets")
    @admin_required
    def admin_markets():
        rows = [
            {"market": m, "schedule": markets.get_schedule(m.market_id)}
            for m in markets.list_all()
        ]
        return render_template(
            "admin/markets.html",
            rows=rows,
            weekdays=list(enumerate(WEEKDAY_NAMES)),
            active_page="admin_markets",
        )

    @app.route("/admin/markets/add", methods=["POST"], endpoint="add_market")
    @admin_required
    def add_market():
        return _run(
            lambda: markets.create(
                current_role=current_role(),
                actor_id=current_user_id(),
                name=form_value("name"),
                location=form_value("location"),
                city=form_value("city"),
                day_of_week=form_value("day_of_week") or None,
            ),
            "Market created.",
            "creating market failed",
        )

    @app.route("/admin/markets/<int:market_id>/edit", methods=["POST"], endpoint="edit_market")
    @admin_required
    def edit_market(market_id: int):
        return _run(
            lambda: markets.update(
                current_role=current_role(),
                actor_id=current_user_id(),
                market_id=market_id,
                name=form_value("name"),
                location=form_value("location"),
                city=form_value("city"),
                day_of_week=form_value("day_of_week") or None,
            ),
            "Market updated.",
            "updating market failed",
        )

    @app.route("/admin/markets/<int:market_id>/toggle", methods=["POST"], endpoint="toggle_market")
    @admin_required
    def toggle_market(market_id: int):
        return _run(
            lambda: markets.set_active(
                current_role=current_role(),
                actor_id=current_user_id(),
                market_id=market_id,
                is_active=form_value("is_active") == "1",
            ),
            "Market updated.",
            "updating market failed",
        )

    @app.route("/admin/markets/<int:market_id>/delete", methods=["POST"], endpoint="delete_market")
    @admin_required
    def delete_market(market_id: int):
        return _run(
            lambda: markets.delete(current_role=current_role(), actor_id=current_user_id(), market_id=market_id),
            "Market deleted.",
            "deleting market failed",
        )

    @app.route("/admin/markets/<int:market_id>/schedule", methods=["POST"], endpoint="set_market_schedule")
    @admin_required
    def set_market_schedule(market_id: int):
        return _run(
            lambda: markets.set_schedule(
                current_role=current_role(),
                actor_id=current_user_id(),
                market_id=market_id,
                days=request.form.getlist("days"),
            ),
            "Schedule saved.",
            "saving schedule failed",
        )
