from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    day_arg,
    form_value,
    login_required,
    optional_int_arg,
    roles_required,
)
from ..core.enums import OfferCategory, Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def form_rows(*fields: str) -> list[dict]:
    """Zip parallel `field[]` lists from a repeating-row form into dicts."""
    columns = {f: request.form.getlist(f"{f}[]") for f in fields}
    count = max((len(v) for v in columns.values()), default=0)
    return [{f: (columns[f][i] if i < len(columns[f]) else "") for f in fields} for i in range(count)]


def register(app: Flask, container: Container) -> None:
    reports = container.market_report_service

    def _submit(action, success: str, failure: str):
        try:
            action()
            flash(success, "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception(failure)
            flash(f"System error: {failure}", "danger")
        return redirect(url_for("market_report_forms"))

    @app.route("/reports/today", endpoint="market_report_forms")
    @login_required
    def market_report_forms():
        return render_template(
            "market_reports.html",
            summary=reports.today_summary(user_id=current_user_id()),
            categories=[c.value for c in OfferCategory],
            active_page="market_reports",
        )

    @app.route("/reports/commodities", methods=["POST"], endpoint="submit_commodities")
    @login_required
    def submit_commodities():
        return _submit(
            lambda: reports.submit_commodities(user_id=current_user_id(), items=form_rows("commodity_name", "notes")),
            "Non-available commodities saved.",
            "saving commodities failed",
        )

    @app.route("/reports/offers", methods=["POST"], endpoint="submit_offers")
    @login_required
    def submit_offers():
        return _submit(
            lambda: reports.submit_offers(
                user_id=current_user_id(),
                items=form_rows("category", "commodity_name", "price", "notes"),
            ),
            "Today's offers saved.",
            "saving offers failed",
        )

    @app.route("/reports/feedback", methods=["POST"], endpoint="submit_feedback")
    @login_required
    def submit_feedback():
        return _submit(
            lambda: reports.submit_feedback(
                user_id=current_user_id(),
                difficulties=form_value("difficulties"),
                feedback=form_value("feedback"),
            ),
            "Feedback saved.",
            "saving feedback failed",
        )

    @app.route("/reports/feedback/delete", methods=["POST"], endpoint="delete_feedback")
    @login_required
    def delete_feedback():
        return _submit(
            lambda: reports.delete_feedback(user_id=current_user_id()),
            "Feedback deleted.",
            "deleting feedback failed",
        )

    @app.route("/reports/next-day", methods=["POST"], endpoint="submit_next_day_plan")
    @login_required
    def submit_next_day_plan():
        return _submit(
            lambda: reports.submit_next_day_plan(
                user_id=current_user_id(),
                next_day_market_name=form_value("next_day_market_name"),
                stall_list=form_value("stall_list"),
            ),
            "Next day plan saved.",
            "saving next day plan failed",
        )

    @app.route("/assets", methods=["GET", "POST"], endpoint="asset_usage")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def asset_usage():
        if request.method == "POST":
            try:
                reports.record_asset_usage(
                    current_role=current_role(),
                    user_id=current_user_id(),
                    employee_name=form_value("employee_name"),
                    asset_name=form_value("asset_name"),
                    quantity=form_value("quantity"),
                    return_date=form_value("return_date"),
                )
                flash("Asset usage recorded.", "success")
                return redirect(url_for("asset_usage"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("record asset usage failed")
                flash("System error while recording asset usage", "danger")

        rows = reports.list_asset_usage(current_role=current_role(), user_id=current_user_id())
        return render_template("assets.html", rows=rows, active_page="assets")

    @app.route("/admin/collections", methods=["GET", "POST"], endpoint="admin_collections")
    @admin_required
    def admin_collections():
        if request.method == "POST":
            try:
                reports.record_collection(
                    current_role=current_role(),
                    actor_id=current_user_id(),
                    market_id=int(form_value("market_id") or 0),
                    collection_date=form_value("collection_date"),
                    amount=form_value("amount"),
                    notes=form_value("notes"),
                )
                flash("Collection recorded.", "success")
                return redirect(url_for("admin_collections"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("record collection failed")
                flash("System error while recording the collection", "danger")

        try:
            rows = reports.list_collections(
                current_role=current_role(),
                collection_date=day_arg(None),
                market_id=optional_int_arg("market_id"),
            )
        except DomainError as e:
            flash(str(e), "warning")
            rows = []
        return render_template(
            "admin/collections.html",
            rows=rows,
            markets=container.market_service.list_all(),
            today=container.session_service.local_today().strftime("%Y-%m-%d"),
            active_page="admin_collections",
        )
