from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    form_value,
    roles_required,
    status_filter_arg,
    uploaded_file,
)
from ..core.enums import LocationType, Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "market_name",
    "google_map_location",
    "location_type",
    "rent",
    "customer_reach",
    "flats_occupancy",
    "opening_date",
    "stalls_accommodation_count",
)


STALL_FIELDS = ("farmer_name", "stall_name", "contact_number", "address", "date_of_starting_markets")


def register(app: Flask, container: Container) -> None:
    submissions = container.submission_service
    stalls = container.bdo_stall_service

    def _with_video_links(rows):
        out = []
        for r in rows:
            row = dict(r)
            row["video_token"] = submissions.media_token(row["video_path"]) if row.get("video_path") else None
            agreement = row.get("service_agreement_path")
            row["agreement_token"] = submissions.media_token(agreement) if agreement else None
            out.append(row)
        return out

    @app.route("/bdo/submissions", methods=["GET", "POST"], endpoint="bdo_submissions")
    @roles_required(Role.BDO, Role.ADMIN)
    def bdo_submissions():
        if request.method == "POST":
            try:
                submissions.submit(
                    current_role=current_role(),
                    user_id=current_user_id(),
                    form={f: form_value(f) for f in FORM_FIELDS},
                    video=uploaded_file("video"),
                )
                flash("Market proposal submitted.", "success")
                return redirect(url_for("bdo_submissions"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("BDO submission failed")
                flash("System error while submitting the proposal", "danger")

        return render_template(
            "bdo.html",
            rows=_with_video_links(submissions.list_mine(user_id=current_user_id())),
            location_types=[t.value for t in LocationType],
            active_page="bdo",
        )

    @app.route("/admin/bdo", endpoint="admin_bdo")
    @admin_required
    def admin_bdo():
        status = status_filter_arg()
        rows = submissions.list_for_review(current_role=current_role(), status=status)
        return render_template(
            "admin/bdo.html",
            rows=_with_video_links(rows),
            status=status.value if status else "all",
            active_page="admin_bdo",
        )

    @app.route("/admin/bdo/<int:submission_id>/review", methods=["POST"], endpoint="review_bdo")
    @admin_required
    def review_bdo(submission_id: int):
        try:
            submissions.review(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                submission_id=submission_id,
                approve=form_value("decision") == "approve",
                notes=form_value("notes"),
            )
            flash("Submission reviewed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("review BDO submission %s failed", submission_id)
            flash("System error while reviewing the submission", "danger")
        return redirect(url_for("admin_bdo"))

    @app.route("/bdo/submissions/<int:submission_id>/documents", methods=["POST"], endpoint="bdo_documents")
    @roles_required(Role.BDO, Role.ADMIN)
    def bdo_documents(submission_id: int):
        try:
            complete = submissions.upload_documents(
                user_id=current_user_id(),
                submission_id=submission_id,
                agreement=uploaded_file("agreement"),
                stalls_accommodation_count=form_value("stalls_accommodation_count"),
            )
            flash("All documents submitted." if complete else "Documents updated.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("BDO documents for submission %s failed", submission_id)
            flash("System error while uploading documents", "danger")
        return redirect(url_for("bdo_submissions"))

    @app.route("/bdo/stalls", methods=["GET", "POST"], endpoint="bdo_stalls")
    @roles_required(Role.BDO, Role.ADMIN)
    def bdo_stalls():
        if request.method == "POST":
            try:
                stalls.submit(
                    current_role=current_role(),
                    user_id=current_user_id(),
                    form={f: form_value(f) for f in STALL_FIELDS},
                )
                flash("Stall submitted.", "success")
                return redirect(url_for("bdo_stalls"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("BDO stall submission failed")
                flash("System error while submitting the stall", "danger")

        return render_template(
            "bdo_stalls.html",
            rows=stalls.list_mine(user_id=current_user_id()),
            today=container.session_service.local_today_string(),
            active_page="bdo_stalls",
        )

    @app.route("/admin/bdo/stalls", endpoint="admin_bdo_stalls")
    @admin_required
    def admin_bdo_stalls():
        status = status_filter_arg()
        return render_template(
            "admin/bdo_stalls.html",
            rows=stalls.list_for_review(current_role=current_role(), status=status),
            status=status.value if status else "all",
            active_page="admin_bdo",
        )

    @app.route("/admin/bdo/stalls/<int:stall_submission_id>/review", methods=["POST"], endpoint="review_bdo_stall")
    @admin_required
    def review_bdo_stall(stall_submission_id: int):
        try:
            stalls.review(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                stall_submission_id=stall_submission_id,
                approve=form_value("decision") == "approve",
                notes=form_value("notes"),
            )
            flash("Stall reviewed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("review BDO stall %s failed", stall_submission_id)
            flash("System error while reviewing the stall", "danger")
        return redirect(url_for("admin_bdo_stalls"))
