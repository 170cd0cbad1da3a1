from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    day_arg,
    form_value,
    json_error,
    login_required,
    optional_int_arg,
    uploaded_file,
)
from ..core.enums import MediaType, Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def _session_ui(s):
    if s is None:
        return None
    return {
        "session_id": s.session_id,
        "market_id": s.market_id,
        "session_date": s.session_date.strftime("%Y-%m-%d"),
        "status": s.status.value,
        "is_open": s.is_open,
        "punch_in": s.punch_in_time.strftime("%H:%M:%S") if s.punch_in_time else None,
        "punch_out": s.punch_out_time.strftime("%H:%M:%S") if s.punch_out_time else None,
    }


def register(app: Flask, container: Container) -> None:
    sessions = container.session_service

    @app.route("/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        user_id = current_user_id()
        today = sessions.local_today()
        today_session = sessions.get_today(user_id)
        market = container.market_service.get(today_session.market_id) if today_session and today_session.market_id else None
        return render_template(
            "dashboard.html",
            today=today,
            session_info=_session_ui(today_session),
            market=market,
            markets=container.market_service.markets_for_date(today),
            checklist=sessions.finalize_checklist(today_session) if today_session else [],
            stalls=container.stall_service.list_today(user_id),
            inspections=container.stall_service.list_inspections_today(user_id),
            media=container.media_service.list_today(user_id),
            reports=container.market_report_service.today_summary(user_id=user_id),
            media_types=[t.value for t in MediaType if t != MediaType.SELFIE_GPS],
            active_page="dashboard",
        )

    @app.route("/api/session/today", endpoint="api_session_today")
    @login_required
    def api_session_today():
        return jsonify(
            {
                "success": True,
                "today": sessions.local_today_string(),
                "session": _session_ui(sessions.get_today(current_user_id())),
            }
        )

    @app.route("/session/start", methods=["POST"], endpoint="start_session")
    @login_required
    def start_session():
        try:
            raw_market = form_value("market_id").strip()
            sessions.start_session(
                user_id=current_user_id(),
                current_role=current_role(),
                market_id=int(raw_market) if raw_market.isdigit() else None,
            )
            flash("Session started.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("start session failed")
            flash("System error while starting the session", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/punch-in", methods=["POST"], endpoint="punch_in")
    @login_required
    def punch_in():
        try:
            decision = container.punch_service.punch_in(
                user_id=current_user_id(),
                selfie=uploaded_file("selfie"),
                lat=form_value("lat"),
                lng=form_value("lng"),
                accuracy=form_value("accuracy") or None,
            )
            flash("Punched in (late)." if decision.is_late else "Punched in.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("punch in failed")
            flash("System error while punching in", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/punch-out", methods=["POST"], endpoint="punch_out")
    @login_required
    def punch_out():
        try:
            decision = container.punch_service.punch_out(
                user_id=current_user_id(),
                lat=form_value("lat") or None,
                lng=form_value("lng") or None,
            )
            flash(f"Punched out ({decision.status.value.replace('_', ' ')}).", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("punch out failed")
            flash("System error while punching out", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/session/finalize", methods=["GET", "POST"], endpoint="finalize_session")
    @login_required
    def finalize_session():
        user_id = current_user_id()
        if request.method == "POST":
            try:
                sessions.finalize(user_id)
                flash("Session finalized. No further changes are allowed today.", "success")
                return redirect(url_for("dashboard"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("finalize failed")
                flash("System error while finalizing the session", "danger")

        today_session = sessions.get_today(user_id)
        return render_template(
            "finalize.html",
            session_info=_session_ui(today_session),
            checklist=sessions.finalize_checklist(today_session) if today_session else [],
            active_page="finalize",
        )

    @app.route("/session/history", endpoint="session_history")
    @login_required
    def session_history():
        rows = sessions.list_history(current_user_id())
        return render_template("history.html", rows=rows, active_page="history")

    @app.route("/api/sessions/<int:session_id>/comments", methods=["GET", "POST"], endpoint="api_session_comments")
    @login_required
    def api_session_comments(session_id: int):
        try:
            if request.method == "POST":
                payload = request.get_json(silent=True) or {}
                comment_id = sessions.add_comment(
                    session_id=session_id,
                    user_id=current_user_id(),
                    current_role=current_role(),
                    body=payload.get("body", ""),
                )
                return jsonify({"success": True, "comment_id": comment_id}), 201

            rows = sessions.list_comments(session_id=session_id, user_id=current_user_id(), current_role=current_role())
            return jsonify(
                {
                    "success": True,
                    "comments": [
                        {
                            "comment_id": r["comment_id"],
                            "full_name": r["full_name"],
                            "body": r["body"],
                            "created_at": r["created_at"].strftime("%Y-%m-%d %H:%M:%S"),
                        }
                        for r in rows
                    ],
                }
            )
        except DomainError as e:
            return json_error(e)

    @app.route("/admin/sessions", endpoint="admin_sessions")
    @admin_required
    def admin_sessions():
        try:
            day = day_arg(sessions.local_today())
            market_id = optional_int_arg("market_id")
            rows = sessions.list_for_date(current_role=Role.ADMIN, day=day, market_id=market_id)
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_sessions"))
        return render_template(
            "admin/sessions.html",
            rows=rows,
            day=day.strftime("%Y-%m-%d"),
            market_id=market_id,
            markets=container.market_service.list_all(),
            active_page="admin_sessions",
        )

    @app.route("/admin/sessions/<int:session_id>/lock", methods=["POST"], endpoint="lock_session")
    @admin_required
    def lock_session(session_id: int):
        try:
            sessions.lock(current_role=current_role(), actor_id=current_user_id(), session_id=session_id)
            flash("Session locked.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("lock session %s failed", session_id)
            flash("System error while locking the session", "danger")
        return redirect(request.referrer or url_for("admin_sessions"))
