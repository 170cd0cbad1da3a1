from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, flash, redirect, render_template, request, session, url_for

from ..common.web import admin_required, current_role, current_user_id, login_required
from ..core.enums import ROLE_PRIORITY, Role
from ..core.exceptions import AuthenticationError, DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def home_endpoint(role: str) -> str:
    return "admin_dashboard" if role == Role.ADMIN.value else "dashboard"


def register(app: Flask, container: Container) -> None:
    @app.context_processor
    def inject_user():
        return {
            "session_user": {
                "user_id": session.get("user_id"),
                "full_name": session.get("name"),
                "role": session.get("role"),
                "roles": session.get("roles", []),
            }
        }

    @app.route("/", methods=["GET", "POST"], endpoint="login")
    def login():
        if "user_id" in session:
            return redirect(url_for(home_endpoint(session.get("role"))))

        if request.method == "POST":
            username = request.form.get("username", "")
            password = request.form.get("password", "")
            remember = request.form.get("remember_me")

            try:
                s_user = container.auth_service.authenticate(username, password)

                session.permanent = bool(remember)
                app.permanent_session_lifetime = timedelta(days=7)

                session["user_id"] = s_user.user_id
                session["name"] = s_user.full_name
                session["role"] = s_user.role.value
                session["roles"] = [r.value for r in s_user.roles]

                logger.info("user %s logged in as %s", s_user.user_id, s_user.role.value)
                flash("Logged in successfully.", "success")
                return redirect(url_for(home_endpoint(session["role"])))
            except AuthenticationError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("login failed")
                flash("System error while logging in", "danger")

        return render_template("login.html")

    @app.route("/logout", endpoint="logout")
    def logout():
        session.clear()
        flash("You have been logged out.", "info")
        return redirect(url_for("login"))

    @app.route("/switch-role", methods=["POST"], endpoint="switch_role")
    @login_required
    def switch_role():
        role = request.form.get("role", "")
        if role not in session.get("roles", []):
            flash("You do not hold that role", "danger")
        else:
            session["role"] = role
            flash(f"Now acting as {role.replace('_', ' ')}.", "info")
        return redirect(url_for(home_endpoint(session.get("role"))))

    @app.route("/admin/users", endpoint="admin_users")
    @admin_required
    def admin_users():
        users = container.user_service.list_admin_view()
        return render_template(
            "admin/users.html",
            users=users,
            all_roles=[r.value for r in ROLE_PRIORITY],
            active_page="admin_users",
        )

    @app.route("/admin/users/add", methods=["GET", "POST"], endpoint="add_user")
    @admin_required
    def add_user():
        if request.method == "POST":
            try:
                container.user_service.create_account(
                    current_role=current_role(),
                    actor_id=current_user_id(),
                    full_name=request.form.get("full_name", ""),
                    username=request.form.get("username", ""),
                    password=request.form.get("password", ""),
                    roles=request.form.getlist("roles"),
                    email=request.form.get("email", ""),
                    phone=request.form.get("phone", ""),
                )
                flash("User created.", "success")
                return redirect(url_for("admin_users"))
            except DomainError as e:
                flash(str(e), "danger")
            except Exception:
                logger.exception("create user failed")
                flash("System error while creating the user", "danger")

        return render_template(
            "admin/add_user.html",
            all_roles=[r.value for r in ROLE_PRIORITY],
            active_page="add_user",
        )

    @app.route("/admin/users/<int:user_id>/roles", methods=["POST"], endpoint="set_user_roles")
    @admin_required
    def set_user_roles(user_id: int):
        try:
            container.user_service.set_roles(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=user_id,
                roles=request.form.getlist("roles"),
            )
            flash("Roles updated.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("set roles failed for user %s", user_id)
            flash("System error while updating roles", "danger")
        return redirect(url_for("admin_users"))

    @app.route("/admin/users/<int:user_id>/toggle", methods=["POST"], endpoint="toggle_user")
    @admin_required
    def toggle_user(user_id: int):
        try:
            container.user_service.set_active(
                current_role=current_role(),
                actor_id=current_user_id(),
                user_id=user_id,
                is_active=request.form.get("is_active") == "1",
            )
            flash("User updated.", "success")
        except DomainError as e:
            flash(str(e), "danger")
        except Exception:
            logger.exception("toggle user failed for user %s", user_id)
            flash("System error while updating the user", "danger")
        return redirect(url_for("admin_users"))
