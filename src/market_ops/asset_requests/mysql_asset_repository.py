from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import AssetRequestStatus, PaymentMode, VerificationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Asset, AssetPayment, AssetRequest
from .repository import AssetRepository

_ASSET_COLUMNS = "asset_id, asset_name, description, total_quantity, available_quantity, issued_quantity, unit_price"
_REQUEST_COLUMNS = """
    request_id, asset_id, requester_id, requester_role, market_id, quantity, purpose, expected_return_date,
    remarks, status, request_date, approved_by, approval_date, rejection_reason, actual_return_date
"""
_PAYMENT_COLUMNS = """
    payment_id, request_id, requester_id, payment_mode, amount_received, payment_date, proof_path,
    verification_status, verified_by, verification_notes
"""


def _to_asset(r: dict) -> Asset:
    return Asset(
        asset_id=int(r["asset_id"]),
        asset_name=r["asset_name"],
        total_quantity=int(r["total_quantity"]),
        available_quantity=int(r["available_quantity"]),
        issued_quantity=int(r["issued_quantity"]),
        description=r.get("description"),
        unit_price=r.get("unit_price"),
    )


class MySQLAssetRepository(AssetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Inventory --------
    def list_assets(self) -> Sequence[Asset]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ASSET_COLUMNS} FROM asset_inventory ORDER BY asset_name")
            return [_to_asset(r) for r in fetchall(cur)]

    def get_asset(self, asset_id: int) -> Optional[Asset]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_ASSET_COLUMNS} FROM asset_inventory WHERE asset_id=%s", (int(asset_id),))
            row = fetchone(cur)
            return _to_asset(row) if row else None

    def create_asset(
        self, *, asset_name: str, description: Optional[str], total_quantity: int, unit_price: Optional[Decimal]
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO asset_inventory (asset_name, description, total_quantity, available_quantity, unit_price)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (asset_name, description, int(total_quantity), int(total_quantity), unit_price),
            )
            return int(cur.lastrowid)

    def update_asset(
        self, *, asset_id: int, description: Optional[str], total_quantity: int, unit_price: Optional[Decimal]
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE asset_inventory
                SET description=%s, unit_price=%s, total_quantity=%s, available_quantity=%s - issued_quantity
                WHERE asset_id=%s AND issued_quantity <= %s
                """,
                (description, unit_price, int(total_quantity), int(total_quantity), int(asset_id), int(total_quantity)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO asset_requests
                    (asset_id, requester_id, requester_role, market_id, quantity, purpose,
                     expected_return_date, remarks, status, request_date)
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(asset_id),
                    int(requester_id),
                    requester_role,
                    market_id,
                    int(quantity),
                    purpose,
                    expected_return_date,
                    remarks,
                    AssetRequestStatus.PENDING.value,
                    request_date,
                ),
            )
            return int(cur.lastrowid)

    def get_request(self, request_id: int) -> Optional[AssetRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM asset_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            if not r:
                return None
            return AssetRequest(
                request_id=int(r["request_id"]),
                asset_id=int(r["asset_id"]),
                requester_id=int(r["requester_id"]),
                requester_role=r["requester_role"],
                quantity=int(r["quantity"]),
                purpose=r["purpose"],
                request_date=r["request_date"],
                status=AssetRequestStatus(r["status"]),
                market_id=r.get("market_id"),
                expected_return_date=r.get("expected_return_date"),
                remarks=r.get("remarks"),
                approved_by=r.get("approved_by"),
                approval_date=r.get("approval_date"),
                rejection_reason=r.get("rejection_reason"),
                actual_return_date=r.get("actual_return_date"),
            )

    def list_requests(
        self, *, status: Optional[AssetRequestStatus] = None, requester_id: Optional[int] = None
    ) -> Sequence[dict]:
        sql = """
            SELECT r.request_id, r.asset_id, a.asset_name, r.requester_id, u.full_name, r.requester_role,
                   r.market_id, m.name AS market_name, r.quantity, r.purpose, r.expected_return_date,
                   r.remarks, r.status, r.request_date, r.approval_date, r.rejection_reason, r.actual_return_date
            FROM asset_requests r
            JOIN asset_inventory a ON a.asset_id = r.asset_id
            JOIN users u ON u.user_id = r.requester_id
            LEFT JOIN markets m ON m.market_id = r.market_id
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND r.status=%s"
            params.append(status.value)
        if requester_id is not None:
            sql += " AND r.requester_id=%s"
            params.append(int(requester_id))
        sql += " ORDER BY r.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def approve_request(self, *, request_id: int, approved_by: int) -> bool:
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                """
                UPDATE asset_requests SET status=%s, approved_by=%s, approval_date=NOW()
                WHERE request_id=%s AND status=%s
                """,
                (AssetRequestStatus.APPROVED.value, int(approved_by), int(request_id), AssetRequestStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE asset_inventory a JOIN asset_requests r ON r.asset_id = a.asset_id
                SET a.available_quantity = a.available_quantity - r.quantity,
                    a.issued_quantity = a.issued_quantity + r.quantity
                WHERE r.request_id=%s AND a.available_quantity >= r.quantity
                """,
                (int(request_id),),
            )
            if cur.rowcount == 0:
                conn.rollback()
                return False
            return True

    def reject_request(self, *, request_id: int, approved_by: int, reason: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE asset_requests SET status=%s, approved_by=%s, approval_date=NOW(), rejection_reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    AssetRequestStatus.REJECTED.value,
                    int(approved_by),
                    reason,
                    int(request_id),
                    AssetRequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def return_request(self, *, request_id: int, return_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE asset_requests SET status=%s, actual_return_date=%s WHERE request_id=%s AND status=%s",
                (AssetRequestStatus.RETURNED.value, return_date, int(request_id), AssetRequestStatus.APPROVED.value),
            )
            if cur.rowcount == 0:
                return False
            cur.execute(
                """
                UPDATE asset_inventory a JOIN asset_requests r ON r.asset_id = a.asset_id
                SET a.available_quantity = a.available_quantity + r.quantity,
                    a.issued_quantity = a.issued_quantity - r.quantity
                WHERE r.request_id=%s
                """,
                (int(request_id),),
            )
            return True

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO asset_payments
                    (request_id, requester_id, payment_mode, amount_received, payment_date, proof_path, verification_status)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    int(request_id),
                    int(requester_id),
                    payment_mode.value,
                    amount_received,
                    payment_date,
                    proof_path,
                    VerificationStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get_payment(self, payment_id: int) -> Optional[AssetPayment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYMENT_COLUMNS} FROM asset_payments WHERE payment_id=%s", (int(payment_id),))
            r = fetchone(cur)
            if not r:
                return None
            return AssetPayment(
                payment_id=int(r["payment_id"]),
                request_id=int(r["request_id"]),
                requester_id=int(r["requester_id"]),
                payment_mode=PaymentMode(r["payment_mode"]),
                amount_received=r["amount_received"],
                payment_date=r["payment_date"],
                proof_path=r.get("proof_path"),
                verification_status=VerificationStatus(r["verification_status"]),
                verified_by=r.get("verified_by"),
                verification_notes=r.get("verification_notes"),
            )

    def list_payments(
        self, *, status: Optional[VerificationStatus] = None, requester_id: Optional[int] = None
    ) -> Sequence[dict]:
        sql = """
            SELECT p.payment_id, p.request_id, a.asset_name, r.quantity, u.full_name, p.payment_mode,
                   p.amount_received, p.payment_date, p.proof_path, p.verification_status,
                   p.verification_notes, p.verified_at
            FROM asset_payments p
            JOIN asset_requests r ON r.request_id = p.request_id
            JOIN asset_inventory a ON a.asset_id = r.asset_id
            JOIN users u ON u.user_id = p.requester_id
            WHERE 1=1
        """
        params: list = []
        if status is not None:
            sql += " AND p.verification_status=%s"
            params.append(status.value)
        if requester_id is not None:
            sql += " AND p.requester_id=%s"
            params.append(int(requester_id))
        sql += " ORDER BY p.created_at DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return fetchall(cur)

    def verify_payment(
        self, *, payment_id: int, status: VerificationStatus, verified_by: int, notes: Optional[str]
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE asset_payments SET verification_status=%s, verified_by=%s, verified_at=NOW(), verification_notes=%s
                WHERE payment_id=%s AND verification_status=%s
                """,
                (status.value, int(verified_by), notes, int(payment_id), VerificationStatus.PENDING.value),
            )
            return cur.rowcount > 0
