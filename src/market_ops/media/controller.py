from __future__ import annotations

import logging

from flask import Flask, flash, jsonify, redirect, request, send_file, url_for

from ..common.web import current_user_id, form_value, json_error, login_required, uploaded_file
from ..core.enums import MediaType
from ..core.exceptions import DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)


def _media_type(raw: str) -> MediaType:
    try:
        media_type = MediaType(raw)
    except ValueError:
        raise ValidationError("Unknown media type")
    if media_type == MediaType.SELFIE_GPS:
        raise ValidationError("Selfies are uploaded by punching in")
    return media_type


def register(app: Flask, container: Container) -> None:
    media = container.media_service

    def _upload():
        return media.upload(
            user_id=current_user_id(),
            file=uploaded_file("file"),
            media_type=_media_type(form_value("media_type")),
            lat=form_value("lat") or None,
            lng=form_value("lng") or None,
        )

    @app.route("/media/upload", methods=["POST"], endpoint="upload_media")
    @login_required
    def upload_media():
        try:
            m = _upload()
            if m.is_late:
                flash("Uploaded, but outside the allowed time window (marked late).", "warning")
            else:
                flash("Uploaded.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("media upload failed")
            flash("System error while uploading", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/api/media", methods=["GET", "POST"], endpoint="api_media")
    @login_required
    def api_media():
        try:
            if request.method == "POST":
                return jsonify({"success": True, "media": media.to_ui(_upload())}), 201
            return jsonify({"success": True, "media": media.list_today(current_user_id())})
        except DomainError as e:
            return json_error(e)

    @app.route("/media/<int:media_id>/delete", methods=["POST"], endpoint="delete_media")
    @login_required
    def delete_media(media_id: int):
        try:
            media.delete(user_id=current_user_id(), media_id=media_id)
            flash("Upload deleted.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("delete media %s failed", media_id)
            flash("System error while deleting the upload", "danger")
        return redirect(url_for("dashboard"))

    @app.route("/media/file/<token>", endpoint="media_file")
    @login_required
    def media_file(token: str):
        try:
            path = container.storage.resolve_token(token)
            return send_file(container.storage.open_path(path), conditional=True)
        except DomainError as e:
            return json_error(e)
