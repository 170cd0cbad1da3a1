from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..audit.service import AuditService
from ..common.datetime_utils import local_date, now_utc, parse_iso_date
from ..common.validators import (
    optional_amount,
    optional_text,
    require_amount,
    require_min_length,
    require_positive_int,
    require_text,
)
from ..core.constants import (
    ASSET_PURPOSE_MAX_LENGTH,
    DEFAULT_TIMEZONE,
    MAX_AMOUNT,
    REVIEW_NOTES_MAX_LENGTH,
)
from ..core.enums import AssetRequestStatus, PaymentMode, Role, VerificationStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..markets.repository import MarketRepository
from ..media.model import UploadedFile
from ..media.storage import MediaStorage
from ..media.validation import generate_upload_path, proof_rule, validate_file
from .model import Asset, AssetRequest
from .repository import AssetRepository

logger = logging.getLogger(__name__)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You do not have permission")


def _stock(value, field_name: str) -> int:
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if n < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return n


class AssetService:
    """Asset inventory, staff requests with admin approval, and payments against approved requests.

    Approving a request moves its quantity from available to issued stock;
    marking it returned moves it back.
    """

    def __init__(
        self,
        assets: AssetRepository,
        markets: MarketRepository,
        storage: MediaStorage,
        audit: AuditService,
        *,
        tz: str = DEFAULT_TIMEZONE,
    ):
        self._assets = assets
        self._markets = markets
        self._storage = storage
        self._audit = audit
        self._tz = tz

    def _today(self, now: Optional[datetime]) -> date:
        return local_date(now or now_utc(), self._tz)

    # -------- Inventory --------
    def list_assets(self, *, available_only: bool = False) -> list[Asset]:
        assets = list(self._assets.list_assets())
        return [a for a in assets if a.available_quantity > 0] if available_only else assets

    def create_asset(
        self,
        *,
        current_role: Role,
        actor_id: int,
        asset_name: str,
        total_quantity,
        description: str = "",
        unit_price=None,
    ) -> int:
        _require_admin(current_role)
        name = require_text(asset_name, "Asset name", 120)
        if any(a.asset_name.lower() == name.lower() for a in self._assets.list_assets()):
            raise ValidationError("An asset with this name already exists")
        total = _stock(total_quantity, "Total quantity")
        price = optional_amount(unit_price, "Unit price", max_value=MAX_AMOUNT)

        asset_id = self._assets.create_asset(
            asset_name=name,
            description=optional_text(description, "Description", 500),
            total_quantity=total,
            unit_price=price,
        )
        self._audit.record(
            actor_id=actor_id, action="create", entity="asset", entity_id=asset_id, details={"name": name, "total": total}
        )
        return asset_id

    def update_asset(
        self,
        *,
        current_role: Role,
        actor_id: int,
        asset_id: int,
        total_quantity,
        description: str = "",
        unit_price=None,
    ) -> None:
        _require_admin(current_role)
        asset = self._assets.get_asset(int(asset_id))
        if not asset:
            raise NotFoundError("Asset does not exist")
        total = _stock(total_quantity, "Total quantity")
        if total < asset.issued_quantity:
            raise ValidationError(f"{asset.issued_quantity} {asset.asset_name} are issued; total cannot be lower")

        if not self._assets.update_asset(
            asset_id=asset.asset_id,
            description=optional_text(description, "Description", 500),
            total_quantity=total,
            unit_price=optional_amount(unit_price, "Unit price", max_value=MAX_AMOUNT),
        ):
            raise ValidationError("Stock changed while saving; please reload and try again")
        self._audit.record(
            actor_id=actor_id,
            action="update",
            entity="asset",
            entity_id=asset.asset_id,
            details={"total": {"from": asset.total_quantity, "to": total}},
        )

    # -------- Requests --------
    def request_asset(
        self,
        *,
        current_role: Role,
        user_id: int,
        asset_id,
        quantity,
        purpose: str,
        expected_return_date: str = "",
        market_id=None,
        remarks: str = "",
        now: Optional[datetime] = None,
    ) -> int:
        try:
            asset = self._assets.get_asset(int(asset_id))
        except (TypeError, ValueError):
            asset = None
        if not asset:
            raise ValidationError("Please choose an asset")
        qty = require_positive_int(quantity, "Quantity")
        if qty > asset.available_quantity:
            raise ValidationError(f"Only {asset.available_quantity} {asset.asset_name} available")
        purpose_v = require_min_length(require_text(purpose, "Purpose", ASSET_PURPOSE_MAX_LENGTH), "Purpose", 3)

        today = self._today(now)
        raw_return = (expected_return_date or "").strip()
        return_d = parse_iso_date(raw_return) if raw_return else None
        if return_d and return_d < today:
            raise ValidationError("Expected return date cannot be before today")

        market = None
        if market_id not in (None, ""):
            try:
                market = self._markets.get_by_id(int(market_id))
            except (TypeError, ValueError):
                market = None
            if not market or not market.is_active:
                raise ValidationError("Please choose an active market")

        request_id = self._assets.create_request(
            asset_id=asset.asset_id,
            requester_id=int(user_id),
            requester_role=current_role.value,
            market_id=market.market_id if market else None,
            quantity=qty,
            purpose=purpose_v,
            expected_return_date=return_d,
            remarks=optional_text(remarks, "Remarks", 500),
            request_date=today,
        )
        logger.info("asset request %s: user %s wants %s x %s", request_id, user_id, qty, asset.asset_name)
        return request_id

    def list_my_requests(self, *, user_id: int):
        return self._assets.list_requests(requester_id=int(user_id))

    def list_requests(self, *, current_role: Role, status: Optional[AssetRequestStatus] = AssetRequestStatus.PENDING):
        _require_admin(current_role)
        return self._assets.list_requests(status=status)

    def _request(self, request_id: int) -> AssetRequest:
        req = self._assets.get_request(int(request_id))
        if not req:
            raise NotFoundError("Asset request does not exist")
        return req

    def review_request(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        request_id: int,
        approve: bool,
        reason: str = "",
    ) -> None:
        _require_admin(current_role)
        req = self._request(request_id)
        if req.status != AssetRequestStatus.PENDING:
            raise ValidationError("Request has already been reviewed")

        if approve:
            asset = self._assets.get_asset(req.asset_id)
            if not asset or asset.available_quantity < req.quantity:
                raise ValidationError("Not enough stock to approve this request")
            if not self._assets.approve_request(request_id=req.request_id, approved_by=int(admin_user_id)):
                raise ValidationError("Request could not be approved; stock or status changed")
            status, details = AssetRequestStatus.APPROVED, {"quantity": req.quantity}
        else:
            reason_v = require_text(reason, "Rejection reason", 500)
            if not self._assets.reject_request(request_id=req.request_id, approved_by=int(admin_user_id), reason=reason_v):
                raise ValidationError("Request has already been reviewed")
            status, details = AssetRequestStatus.REJECTED, {"reason": reason_v}

        self._audit.record(
            actor_id=admin_user_id, action=status.value, entity="asset_request", entity_id=req.request_id, details=details
        )

    def mark_returned(
        self, *, current_role: Role, admin_user_id: int, request_id: int, now: Optional[datetime] = None
    ) -> None:
        _require_admin(current_role)
        req = self._request(request_id)
        if req.status != AssetRequestStatus.APPROVED:
            raise ValidationError("Only approved requests can be returned")
        if not self._assets.return_request(request_id=req.request_id, return_date=self._today(now)):
            raise ValidationError("Only approved requests can be returned")
        self._audit.record(
            actor_id=admin_user_id,
            action="returned",
            entity="asset_request",
            entity_id=req.request_id,
            details={"quantity": req.quantity},
        )

    # -------- Payments --------
    def submit_payment(
        self,
        *,
        user_id: int,
        request_id: int,
        payment_mode: str,
        amount,
        payment_date: str,
        proof: Optional[UploadedFile] = None,
        now: Optional[datetime] = None,
    ) -> int:
        req = self._request(request_id)
        if req.requester_id != int(user_id):
            raise AuthorizationError("You can only pay for your own requests")
        if req.status not in (AssetRequestStatus.APPROVED, AssetRequestStatus.RETURNED):
            raise ValidationError("Payments can only be made for approved requests")
        try:
            mode = PaymentMode((payment_mode or "").strip() or PaymentMode.CASH.value)
        except ValueError:
            raise ValidationError("Payment mode must be cash, online or card")
        value = require_amount(amount, "Amount", max_value=MAX_AMOUNT)
        paid_on = parse_iso_date(payment_date)
        if paid_on > self._today(now):
            raise ValidationError("Payment date cannot be in the future")
        if proof is not None:
            validate_file(proof, proof_rule(proof.content_type))

        proof_path = None
        if proof is not None:
            proof_path = generate_upload_path(int(user_id), proof.filename, prefix="asset_payments", now=now or now_utc())
            self._storage.save(proof_path, proof.data)
        try:
            payment_id = self._assets.create_payment(
                request_id=req.request_id,
                requester_id=int(user_id),
                payment_mode=mode,
                amount_received=value,
                payment_date=paid_on,
                proof_path=proof_path,
            )
        except Exception:
            if proof_path:
                self._storage.delete(proof_path)
            raise
        logger.info("asset payment %s for request %s: %s %s", payment_id, req.request_id, mode.value, value)
        return payment_id

    def list_my_payments(self, *, user_id: int):
        return self._assets.list_payments(requester_id=int(user_id))

    def list_payments(self, *, current_role: Role, status: Optional[VerificationStatus] = VerificationStatus.PENDING):
        _require_admin(current_role)
        return self._assets.list_payments(status=status)

    def verify_payment(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        payment_id: int,
        approve: bool,
        notes: str = "",
    ) -> None:
        _require_admin(current_role)
        payment = self._assets.get_payment(int(payment_id))
        if not payment:
            raise NotFoundError("Payment does not exist")
        if payment.verification_status != VerificationStatus.PENDING:
            raise ValidationError("Payment has already been verified")

        status = VerificationStatus.VERIFIED if approve else VerificationStatus.REJECTED
        notes_v = optional_text(notes, "Verification notes", REVIEW_NOTES_MAX_LENGTH)
        if not self._assets.verify_payment(
            payment_id=payment.payment_id, status=status, verified_by=int(admin_user_id), notes=notes_v
        ):
            raise ValidationError("Payment has already been verified")
        self._audit.record(
            actor_id=admin_user_id,
            action=status.value,
            entity="asset_payment",
            entity_id=payment.payment_id,
            details={"amount": payment.amount_received, "notes": notes_v},
        )

    def proof_token(self, path: str) -> str:
        return self._storage.sign(path)
