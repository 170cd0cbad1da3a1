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
    status_filter_arg,
    uploaded_file,
)
from ..core.enums import VisitLocationType
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)

FORM_FIELDS = ("location_name", "location_type", "occupied_flats", "nearby_population", "nearest_local_mandi")


def register(app: Flask, container: Container) -> None:
    visits = container.location_visit_service

    def _with_selfie_links(rows):
        out = []
        for r in rows:
            row = dict(r)
            row["selfie_token"] = visits.selfie_token(row["selfie_path"])
            out.append(row)
        return out

    @app.route("/location-visits", methods=["GET", "POST"], endpoint="location_visits")
    @login_required
    def location_visits():
        if request.method == "POST":
            try:
                visits.record(
                    user_id=current_user_id(),
                    selfie=uploaded_file("selfie"),
                    lat=form_value("lat") or None,
                    lng=form_value("lng") or None,
                    form={f: form_value(f) for f in FORM_FIELDS},
                )
                flash("Location visit recorded.", "success")
                return redirect(url_for("location_visits"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("location visit failed")
                flash("System error while recording the visit", "danger")

        return render_template(
            "location_visits.html",
            rows=_with_selfie_links(visits.list_mine(user_id=current_user_id())),
            location_types=[t.value for t in VisitLocationType],
            active_page="location_visits",
        )

    @app.route("/admin/location-visits", endpoint="admin_location_visits")
    @admin_required
    def admin_location_visits():
        status = status_filter_arg()
        try:
            day = day_arg(None)
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_location_visits"))
        rows = visits.list_for_review(current_role=current_role(), status=status, visit_date=day)
        return render_template(
            "admin/location_visits.html",
            rows=_with_selfie_links(rows),
            status=status.value if status else "all",
            day=day.isoformat() if day else "",
            active_page="admin_location_visits",
        )

    @app.route("/admin/location-visits/<int:visit_id>/review", methods=["POST"], endpoint="review_location_visit")
    @admin_required
    def review_location_visit(visit_id: int):
        try:
            visits.review(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                visit_id=visit_id,
                approve=form_value("decision") == "approve",
                notes=form_value("notes"),
            )
            flash("Visit reviewed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("review location visit %s failed", visit_id)
            flash("System error while reviewing the visit", "danger")
        return redirect(request.referrer or url_for("admin_location_visits"))
