from __future__ import annotations

import io
from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, send_file, url_for

from ..common.datetime_utils import month_start, parse_iso_date
from ..common.web import admin_required, current_user_id, login_required, optional_int_arg
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.exceptions import DomainError
from ..container import Container
from .export import report_csv_bytes, report_excel_bytes

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    def _range(default_start):
        today = container.session_service.local_today()
        start_s = request.args.get("start") or default_start(today).strftime("%Y-%m-%d")
        end_s = request.args.get("end") or today.strftime("%Y-%m-%d")
        return parse_iso_date(start_s), parse_iso_date(end_s)

    def _write_report_csv(*, data, filename: str):
        return app.response_class(
            report_csv_bytes(data),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _admin_report_data():
        start, end = _range(lambda today: today - timedelta(days=DEFAULT_REPORT_DAYS))
        data = reports.build_attendance_report(
            start=start,
            end=end,
            user_id=optional_int_arg("user_id"),
            market_id=optional_int_arg("market_id"),
        )
        return start, end, data

    @app.route("/me/report", endpoint="me_report")
    @login_required
    def me_report():
        try:
            start, end = _range(month_start)
            data = reports.build_attendance_report(start=start, end=end, user_id=current_user_id())
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("attendance_history"))
        return render_template(
            "report.html",
            start=start.strftime("%Y-%m-%d"),
            end=end.strftime("%Y-%m-%d"),
            rows=data.rows,
            summary=data.summary,
            active_page="me_report",
        )

    @app.route("/admin/report", endpoint="admin_report")
    @admin_required
    def admin_report():
        try:
            start, end, data = _admin_report_data()
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_dashboard"))
        return render_template(
            "admin/report.html",
            start=start.strftime("%Y-%m-%d"),
            end=end.strftime("%Y-%m-%d"),
            rows=data.rows,
            summary=data.summary,
            markets=container.market_service.list_all(),
            active_page="admin_report",
        )

    @app.route("/admin/report.csv", endpoint="admin_report_csv")
    @admin_required
    def admin_report_csv():
        try:
            start, end, data = _admin_report_data()
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_report"))
        filename = f"attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(data=data, filename=filename)

    @app.route("/admin/report.xlsx", endpoint="admin_report_xlsx")
    @admin_required
    def admin_report_xlsx():
        try:
            start, end, data = _admin_report_data()
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_report"))
        return send_file(
            io.BytesIO(report_excel_bytes(data)),
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=f"attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.xlsx",
        )
