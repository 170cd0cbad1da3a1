from __future__ import annotations

import logging

from flask import Flask, flash, redirect, render_template, request, url_for

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    form_value,
    login_required,
    uploaded_file,
)
from ..core.enums import AssetRequestStatus, PaymentMode, VerificationStatus
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def _request_status_arg():
    raw = (request.args.get("status") or AssetRequestStatus.PENDING.value).strip()
    if raw == "all":
        return None
    try:
        return AssetRequestStatus(raw)
    except ValueError:
        return AssetRequestStatus.PENDING


def register(app: Flask, container: Container) -> None:
    assets = container.asset_service

    def _with_proof_links(rows):
        out = []
        for r in rows:
            row = dict(r)
            row["proof_token"] = assets.proof_token(row["proof_path"]) if row.get("proof_path") else None
            out.append(row)
        return out

    def _admin_action(action, success: str, failure: str):
        try:
            action()
            flash(success, "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception(failure)
            flash(f"System error: {failure}", "danger")
        return redirect(request.referrer or url_for("admin_assets"))

    @app.route("/asset-requests", methods=["GET", "POST"], endpoint="asset_requests")
    @login_required
    def asset_requests():
        if request.method == "POST":
            try:
                assets.request_asset(
                    current_role=current_role(),
                    user_id=current_user_id(),
                    asset_id=form_value("asset_id"),
                    quantity=form_value("quantity"),
                    purpose=form_value("purpose"),
                    expected_return_date=form_value("expected_return_date"),
                    market_id=form_value("market_id"),
                    remarks=form_value("remarks"),
                )
                flash("Asset request submitted.", "success")
                return redirect(url_for("asset_requests"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("asset request failed")
                flash("System error while submitting the request", "danger")

        user_id = current_user_id()
        return render_template(
            "asset_requests.html",
            assets=assets.list_assets(available_only=True),
            markets=container.market_service.list_all(active_only=True),
            requests=assets.list_my_requests(user_id=user_id),
            payments=_with_proof_links(assets.list_my_payments(user_id=user_id)),
            payment_modes=[m.value for m in PaymentMode],
            today=container.session_service.local_today_string(),
            active_page="asset_requests",
        )

    @app.route("/asset-requests/<int:request_id>/payment", methods=["POST"], endpoint="submit_asset_payment")
    @login_required
    def submit_asset_payment(request_id: int):
        try:
            assets.submit_payment(
                user_id=current_user_id(),
                request_id=request_id,
                payment_mode=form_value("payment_mode"),
                amount=form_value("amount"),
                payment_date=form_value("payment_date"),
                proof=uploaded_file("proof"),
            )
            flash("Payment recorded; waiting for verification.", "success")
        except DomainError as e:
            flash(str(e), "warning")
        except Exception:
            logger.exception("asset payment for request %s failed", request_id)
            flash("System error while recording the payment", "danger")
        return redirect(url_for("asset_requests"))

    @app.route("/admin/assets", methods=["GET", "POST"], endpoint="admin_assets")
    @admin_required
    def admin_assets():
        if request.method == "POST":
            try:
                assets.create_asset(
                    current_role=current_role(),
                    actor_id=current_user_id(),
                    asset_name=form_value("asset_name"),
                    total_quantity=form_value("total_quantity"),
                    description=form_value("description"),
                    unit_price=form_value("unit_price"),
                )
                flash("Asset added.", "success")
                return redirect(url_for("admin_assets"))
            except DomainError as e:
                flash(str(e), "warning")
            except Exception:
                logger.exception("create asset failed")
                flash("System error while adding the asset", "danger")

        status = _request_status_arg()
        return render_template(
            "admin/asset_requests.html",
            assets=assets.list_assets(),
            requests=assets.list_requests(current_role=current_role(), status=status),
            payments=_with_proof_links(
                assets.list_payments(current_role=current_role(), status=VerificationStatus.PENDING)
            ),
            status=status.value if status else "all",
            active_page="admin_assets",
        )

    @app.route("/admin/assets/<int:asset_id>/update", methods=["POST"], endpoint="update_asset")
    @admin_required
    def update_asset(asset_id: int):
        return _admin_action(
            lambda: assets.update_asset(
                current_role=current_role(),
                actor_id=current_user_id(),
                asset_id=asset_id,
                total_quantity=form_value("total_quantity"),
                description=form_value("description"),
                unit_price=form_value("unit_price"),
            ),
            "Asset updated.",
            f"updating asset {asset_id} failed",
        )

    @app.route("/admin/asset-requests/<int:request_id>/review", methods=["POST"], endpoint="review_asset_request")
    @admin_required
    def review_asset_request(request_id: int):
        return _admin_action(
            lambda: assets.review_request(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                request_id=request_id,
                approve=form_value("decision") == "approve",
                reason=form_value("reason"),
            ),
            "Request reviewed.",
            f"reviewing asset request {request_id} failed",
        )

    @app.route("/admin/asset-requests/<int:request_id>/returned", methods=["POST"], endpoint="return_asset_request")
    @admin_required
    def return_asset_request(request_id: int):
        return _admin_action(
            lambda: assets.mark_returned(current_role=current_role(), admin_user_id=current_user_id(), request_id=request_id),
            "Asset marked as returned.",
            f"returning asset request {request_id} failed",
        )

    @app.route("/admin/asset-payments/<int:payment_id>/verify", methods=["POST"], endpoint="verify_asset_payment")
    @admin_required
    def verify_asset_payment(payment_id: int):
        return _admin_action(
            lambda: assets.verify_payment(
                current_role=current_role(),
                admin_user_id=current_user_id(),
                payment_id=payment_id,
                approve=form_value("decision") == "approve",
                notes=form_value("notes"),
            ),
            "Payment verified.",
            f"verifying payment {payment_id} failed",
        )
