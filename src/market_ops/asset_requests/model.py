from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AssetRequestStatus, PaymentMode, VerificationStatus


@dataclass(frozen=True)
class Asset:
    """An inventory line; total = available + issued."""

    asset_id: int
    asset_name: str
    total_quantity: int
    available_quantity: int
    issued_quantity: int
    description: Optional[str] = None
    unit_price: Optional[Decimal] = None


@dataclass(frozen=True)
class AssetRequest:
    request_id: int
    asset_id: int
    requester_id: int
    requester_role: str
    quantity: int
    purpose: str
    request_date: date
    status: AssetRequestStatus = AssetRequestStatus.PENDING
    market_id: Optional[int] = None
    expected_return_date: Optional[date] = None
    remarks: Optional[str] = None
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    actual_return_date: Optional[date] = None


@dataclass(frozen=True)
class AssetPayment:
    payment_id: int
    request_id: int
    requester_id: int
    payment_mode: PaymentMode
    amount_received: Decimal
    payment_date: date
    proof_path: Optional[str] = None
    verification_status: VerificationStatus = VerificationStatus.PENDING
    verified_by: Optional[int] = None
    verification_notes: Optional[str] = None
