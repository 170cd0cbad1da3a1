from __future__ import annotations

from flask import Flask, jsonify, render_template

from ..common.web import current_user_id, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/attendance", endpoint="attendance_history")
    @login_required
    def attendance_history():
        user_id = current_user_id()
        today = container.session_service.local_today()
        return render_template(
            "attendance.html",
            data=container.attendance_service.get_history_ui(user_id),
            summary=container.attendance_service.monthly_summary(user_id, today=today),
            active_page="attendance",
        )

    @app.route("/api/attendance/summary", endpoint="api_attendance_summary")
    @login_required
    def api_attendance_summary():
        user_id = current_user_id()
        today = container.session_service.local_today()
        return jsonify(
            {
                "success": True,
                "summary": container.attendance_service.monthly_summary(user_id, today=today),
                "history": container.attendance_service.get_history_ui(user_id, limit=7),
            }
        )
