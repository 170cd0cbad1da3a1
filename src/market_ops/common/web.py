"""Flask view helpers shared by all controllers."""

from __future__ import annotations

from functools import wraps
from datetime import date
from typing import Optional

from flask import flash, jsonify, redirect, render_template, request, session, url_for

from .datetime_utils import parse_iso_date
from ..core.enums import RequestStatus, Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..media.model import UploadedFile

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def _wants_json() -> bool:
    return request.path.startswith("/api/")


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    try:
        return Role(session.get("role", Role.EMPLOYEE.value))
    except ValueError:
        return Role.EMPLOYEE


def current_user() -> dict:
    return {
        "user_id": session.get("user_id"),
        "full_name": session.get("name"),
        "role": session.get("role"),
        "roles": session.get("roles", []),
    }


def render_forbidden():
    if _wants_json():
        return jsonify({"success": False, "message": "Forbidden"}), 403
    return render_template("403.html", current_user=current_user()), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            if _wants_json():
                return jsonify({"success": False, "message": "Login required"}), 401
            flash("Please log in to continue.", "warning")
            return redirect(url_for("login"))
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                if _wants_json():
                    return jsonify({"success": False, "message": "Login required"}), 401
                return redirect(url_for("login"))
            if session.get("role") not in allowed:
                return render_forbidden()
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(Role.ADMIN)


def error_status(exc: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return status
    return 400


def json_error(exc: DomainError):
    return jsonify({"success": False, "message": str(exc)}), error_status(exc)


def form_value(name: str, default: str = "") -> str:
    return request.form.get(name, default)


def optional_int_arg(name: str) -> Optional[int]:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def day_arg(default: Optional[date], name: str = "day") -> Optional[date]:
    raw = (request.args.get(name) or "").strip()
    return parse_iso_date(raw) if raw else default


def uploaded_file(name: str):
    return UploadedFile.from_storage(request.files.get(name))


def status_filter_arg(default: RequestStatus = RequestStatus.PENDING) -> Optional[RequestStatus]:
    """`?status=` for review lists; "all" means no filter."""
    raw = (request.args.get("status") or default.value).strip()
    if raw == "all":
        return None
    try:
        return RequestStatus(raw)
    except ValueError:
        return default
