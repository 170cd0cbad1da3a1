from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.web import admin_required, current_role, current_user_id
from ..core.exceptions import DomainError
from ..container import Container
from .model import INT_FIELDS, TIME_FIELDS

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("org_name", "org_email") + TIME_FIELDS + INT_FIELDS


def register(app: Flask, container: Container) -> None:
    @app.route("/admin/settings", methods=["GET", "POST"], endpoint="admin_settings")
    @admin_required
    def admin_settings():
        if request.method == "POST":
            try:
                container.settings_service.update(
                    current_role=current_role(),
                    actor_id=current_user_id(),
                    values={k: request.form[k] for k in EDITABLE_FIELDS if k in request.form},
                )
                flash("Settings saved.", "success")
                return redirect(url_for("admin_settings"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("saving settings failed")
                flash("System error while saving settings", "danger")

        return render_template(
            "admin/settings.html",
            settings=container.settings_service.get(),
            time_fields=TIME_FIELDS,
            int_fields=INT_FIELDS,
            active_page="admin_settings",
        )
