from __future__ import annotations

from flask import Flask, render_template, request

from ..common.web import admin_required, current_role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/audit", endpoint="admin_audit")
    @admin_required
    def admin_audit():
        entity = (request.args.get("entity") or "").strip() or None
        rows = container.audit_service.list_recent(current_role=current_role(), limit=200, entity=entity)
        return render_template("admin/audit.html", rows=rows, entity=entity or "", active_page="admin_audit")
