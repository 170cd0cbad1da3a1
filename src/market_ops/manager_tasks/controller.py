from __future__ import annotations

import logging

from flask import Flask, abort, flash, redirect, render_template, request, url_for

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    day_arg,
    form_value,
    optional_int_arg,
    roles_required,
)
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container
from .model import ManagerTask

logger = logging.getLogger(__name__)


def _task_arg(value: str) -> ManagerTask:
    try:
        return ManagerTask(value)
    except ValueError:
        abort(404)


def register(app: Flask, container: Container) -> None:
    tasks = container.manager_task_service

    def _submit(action, success: str, failure: str):
        try:
            action()
            flash(success, "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception(failure)
            flash(f"System error: {failure}", "danger")
        return redirect(url_for("manager_tasks"))

    @app.route("/manager/tasks", endpoint="manager_tasks")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def manager_tasks():
        return render_template(
            "manager_tasks.html",
            records=tasks.today(current_user_id()),
            markets=container.market_service.list_all(active_only=True),
            active_page="manager_tasks",
        )

    @app.route("/manager/tasks/allocation", methods=["POST"], endpoint="add_allocation")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_allocation():
        return _submit(
            lambda: tasks.add_allocation(
                current_role=current_role(),
                user_id=current_user_id(),
                employee_name=form_value("employee_name"),
                market_id=form_value("market_id"),
            ),
            "Employee allocated.",
            "saving allocation failed",
        )

    @app.route("/manager/tasks/land-search", methods=["POST"], endpoint="add_land_search")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_land_search():
        return _submit(
            lambda: tasks.add_land_search(
                current_role=current_role(),
                user_id=current_user_id(),
                place_name=form_value("place_name"),
                address=form_value("address"),
                contact_name=form_value("contact_name"),
                contact_phone=form_value("contact_phone"),
                is_finalized=form_value("is_finalized"),
                opening_date=form_value("opening_date"),
            ),
            "Land search saved.",
            "saving land search failed",
        )

    @app.route("/manager/tasks/stall-search", methods=["POST"], endpoint="add_stall_search")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_stall_search():
        return _submit(
            lambda: tasks.add_stall_search(
                current_role=current_role(),
                user_id=current_user_id(),
                farmer_name=form_value("farmer_name"),
                stall_name=form_value("stall_name"),
                contact_phone=form_value("contact_phone"),
                is_interested=form_value("is_interested"),
                joining_date=form_value("joining_date"),
            ),
            "Stall searching update saved.",
            "saving stall search failed",
        )

    @app.route("/manager/tasks/inspection", methods=["POST"], endpoint="add_inspection_update")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_inspection_update():
        return _submit(
            lambda: tasks.add_inspection_update(
                current_role=current_role(),
                user_id=current_user_id(),
                market_id=form_value("market_id"),
                update_notes=form_value("update_notes"),
            ),
            "Inspection update saved.",
            "saving inspection update failed",
        )

    @app.route("/manager/tasks/money-recovery", methods=["POST"], endpoint="add_money_recovery")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_money_recovery():
        return _submit(
            lambda: tasks.add_money_recovery(
                current_role=current_role(),
                user_id=current_user_id(),
                farmer_name=form_value("farmer_name"),
                stall_name=form_value("stall_name"),
                item_name=form_value("item_name"),
                received_amount=form_value("received_amount"),
                pending_amount=form_value("pending_amount"),
            ),
            "Money recovery saved.",
            "saving money recovery failed",
        )

    @app.route("/manager/tasks/stall-feedback", methods=["POST"], endpoint="add_stall_feedback")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def add_stall_feedback():
        return _submit(
            lambda: tasks.add_stall_feedback(
                current_role=current_role(),
                user_id=current_user_id(),
                customer_name=form_value("customer_name"),
                feedback_text=form_value("feedback_text"),
                rating=form_value("rating"),
                market_id=form_value("market_id"),
            ),
            "Stall feedback saved.",
            "saving stall feedback failed",
        )

    @app.route("/manager/tasks/<task>/<int:record_id>/delete", methods=["POST"], endpoint="delete_manager_task")
    @roles_required(Role.MARKET_MANAGER, Role.ADMIN)
    def delete_manager_task(task: str, record_id: int):
        kind = _task_arg(task)
        return _submit(
            lambda: tasks.delete(user_id=current_user_id(), task=kind, record_id=record_id),
            "Record removed.",
            f"removing {kind.value} {record_id} failed",
        )

    @app.route("/admin/manager-tasks", endpoint="admin_manager_tasks")
    @admin_required
    def admin_manager_tasks():
        try:
            day = day_arg(container.session_service.local_today())
        except DomainError as e:
            flash(str(e), "warning")
            return redirect(url_for("admin_manager_tasks"))
        kind = _task_arg(request.args.get("task") or ManagerTask.ALLOCATION.value)
        rows = []
        try:
            rows = tasks.list_for_day(current_role=current_role(), task=kind, day=day, market_id=optional_int_arg("market_id"))
        except DomainError as e:
            flash(str(e), "warning")
        return render_template(
            "admin/manager_tasks.html",
            rows=rows,
            task=kind.value,
            task_names=[t.value for t in ManagerTask],
            day=day.strftime("%Y-%m-%d"),
            markets=container.market_service.list_all(),
            active_page="admin_manager_tasks",
        )
