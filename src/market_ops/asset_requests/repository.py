from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import AssetRequestStatus, PaymentMode, VerificationStatus
from .model import Asset, AssetPayment, AssetRequest


class AssetRepository(Protocol):
    # -------- Inventory --------
    def list_assets(self) -> Sequence[Asset]:
        raise NotImplementedError

    def get_asset(self, asset_id: int) -> Optional[Asset]:
        raise NotImplementedError

    def create_asset(
        self, *, asset_name: str, description: Optional[str], total_quantity: int, unit_price: Optional[Decimal]
    ) -> int:
        raise NotImplementedError

    def update_asset(
        self, *, asset_id: int, description: Optional[str], total_quantity: int, unit_price: Optional[Decimal]
    ) -> bool:
        """Resize the stock; available follows total and fails if it would drop below zero."""
        raise NotImplementedError

    # -------- Requests --------
    def create_request(
        self,
        *,
        asset_id: int,
        requester_id: int,
        requester_role: str,
        market_id: Optional[int],
        quantity: int,
        purpose: str,
        expected_return_date: Optional[date],
        remarks: Optional[str],
        request_date: date,
    ) -> int:
        raise NotImplementedError

    def get_request(self, request_id: int) -> Optional[AssetRequest]:
        raise NotImplementedError

    def list_requests(
        self, *, status: Optional[AssetRequestStatus] = None, requester_id: Optional[int] = None
    ) -> Sequence[dict]:
        raise NotImplementedError

    def approve_request(self, *, request_id: int, approved_by: int) -> bool:
        """Pending -> approved, moving the quantity from available to issued; False if either step fails."""
        raise NotImplementedError

    def reject_request(self, *, request_id: int, approved_by: int, reason: str) -> bool:
        raise NotImplementedError

    def return_request(self, *, request_id: int, return_date: date) -> bool:
        """Approved -> returned, moving the quantity back to available."""
        raise NotImplementedError

    # -------- Payments --------
    def create_payment(
        self,
        *,
        request_id: int,
        requester_id: int,
        payment_mode: PaymentMode,
        amount_received: Decimal,
        payment_date: date,
        proof_path: Optional[str],
    ) -> int:
        raise NotImplementedError

    def get_payment(self, payment_id: int) -> Optional[AssetPayment]:
        raise NotImplementedError

    def list_payments(
        self, *, status: Optional[VerificationStatus] = None, requester_id: Optional[int] = None
    ) -> Sequence[dict]:
        raise NotImplementedError

    def verify_payment(
        self, *, payment_id: int, status: VerificationStatus, verified_by: int, notes: Optional[str]
    ) -> bool:
        raise NotImplementedError
