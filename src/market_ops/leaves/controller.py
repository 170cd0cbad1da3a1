from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, current_role, current_user_id, form_value, login_required, status_filter_arg
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    leaves = container.leave_service

    @app.route("/leaves", methods=["GET", "POST"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        if request.method == "POST":
            try:
                leaves.create_leave(
                    user_id=current_user_id(),
                    leave_date=parse_iso_date(form_value("leave_date")),
                    reason=form_value("reason"),
                    today=container.session_service.local_today(),
                )
                flash("Leave request submitted.", "success")
                return redirect(url_for("my_leaves"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("create leave failed")
                flash("System error while submitting the leave request", "danger")

        return render_template("leaves.html", rows=leaves.list_mine(user_id=current_user_id()), active_page="leaves")

    @app.route("/admin/leaves", endpoint="admin_leaves")
    @admin_required
    def admin_leaves():
        status = status_filter_arg()
        rows = leaves.list_all(current_role=current_role(), status=status)
        return render_template(
            "admin/leaves.html",
            rows=rows,
            status=status.value if status else "all",
            active_page="admin_leaves",
        )

    @app.route("/admin/leaves/<int:leave_id>/<action>", methods=["POST"], endpoint="decide_leave")
    @admin_required
    def decide_leave(leave_id: int, action: str):
        try:
            if action == "approve":
                decide = leaves.approve_leave
            elif action == "reject":
                decide = leaves.reject_leave
            else:
                flash("Unknown action", "danger")
                return redirect(url_for("admin_leaves"))
            decide(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                leave_id=leave_id,
                admin_note=form_value("admin_note"),
            )
            flash(f"Leave request {action}d.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("decide leave %s failed", leave_id)
            flash("System error while processing the leave request", "danger")
        return redirect(url_for("admin_leaves"))
