from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, request, url_for

from ..common.web import current_user_id, form_value, json_error, login_required
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def _stall_ui(s) -> dict:
    return {
        "stall_id": s.stall_id,
        "farmer_name": s.farmer_name,
        "stall_name": s.stall_name,
        "stall_no": s.stall_no,
    }


def register(app: Flask, container: Container) -> None:
    stalls = container.stall_service

    @app.route("/stalls", methods=["POST"], endpoint="add_stall")
    @login_required
    def add_stall():
        try:
            stalls.create(
                user_id=current_user_id(),
                farmer_name=form_value("farmer_name"),
                stall_name=form_value("stall_name"),
                stall_no=form_value("stall_no"),
            )
            flash("Stall confirmed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("add stall failed")
            flash("System error while saving the stall", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/stalls/<int:stall_id>/edit", methods=["POST"], endpoint="edit_stall")
    @login_required
    def edit_stall(stall_id: int):
        try:
            stalls.update(
                user_id=current_user_id(),
                stall_id=stall_id,
                farmer_name=form_value("farmer_name"),
                stall_name=form_value("stall_name"),
                stall_no=form_value("stall_no"),
            )
            flash("Stall updated.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("edit stall %s failed", stall_id)
            flash("System error while updating the stall", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/stalls/<int:stall_id>/delete", methods=["POST"], endpoint="delete_stall")
    @login_required
    def delete_stall(stall_id: int):
        try:
            stalls.delete(user_id=current_user_id(), stall_id=stall_id)
            flash("Stall removed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("delete stall %s failed", stall_id)
            flash("System error while removing the stall", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/stalls/inspections", methods=["POST"], endpoint="add_stall_inspection")
    @login_required
    def add_stall_inspection():
        try:
            stalls.inspect(
                user_id=current_user_id(),
                farmer_name=form_value("farmer_name"),
                stall_name=form_value("stall_name"),
                stall_no=form_value("stall_no"),
                rating=form_value("rating"),
                feedback=form_value("feedback"),
            )
            flash("Stall inspection saved.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("add stall inspection failed")
            flash("System error while saving the inspection", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/stalls/inspections/<int:inspection_id>/delete", methods=["POST"], endpoint="delete_stall_inspection")
    @login_required
    def delete_stall_inspection(inspection_id: int):
        try:
            stalls.delete_inspection(user_id=current_user_id(), inspection_id=inspection_id)
            flash("Inspection removed.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("delete stall inspection %s failed", inspection_id)
            flash("System error while removing the inspection", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/api/stalls", methods=["GET", "POST"], endpoint="api_stalls")
    @login_required
    def api_stalls():
        try:
            if request.method == "POST":
                payload = request.get_json(silent=True) or {}
                stall_id = stalls.create(
                    user_id=current_user_id(),
                    farmer_name=payload.get("farmer_name", ""),
                    stall_name=payload.get("stall_name", ""),
                    stall_no=payload.get("stall_no", ""),
                )
                return jsonify({"success": True, "stall_id": stall_id}), 201
            return jsonify({"success": True, "stalls": [_stall_ui(s) for s in stalls.list_today(current_user_id())]})
        except DomainError as e:
            return json_error(e)
