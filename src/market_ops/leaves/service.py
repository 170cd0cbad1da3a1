from __future__ import annotations

from datetime import date
from typing import Optional

from ..audit.service import AuditService
from ..common.validators import optional_text, require_text
from ..core.enums import RequestStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .repository import LeaveRepository


class LeaveService:
    def __init__(self, leaves: LeaveRepository, audit: AuditService):
        self._leaves = leaves
        self._audit = audit

    def create_leave(self, *, user_id: int, leave_date: date, reason: str, today: date) -> int:
        if leave_date < today:
            raise ValidationError("Leave date cannot be in the past")
        reason = require_text(reason, "Reason", 1000)
        if self._leaves.find_pending(user_id=int(user_id), leave_date=leave_date):
            raise ValidationError("You already have a pending leave request for this date")

        return self._leaves.create(user_id=int(user_id), leave_date=leave_date, reason=reason)

    def _decide(
        self,
        *,
        current_role: Role,
        admin_user_id: int,
        leave_id: int,
        status: RequestStatus,
        admin_note: str,
    ) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        req = self._leaves.get(int(leave_id))
        if not req:
            raise NotFoundError("Leave request does not exist")
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Leave request has already been processed")

        note = optional_text(admin_note, "Note", 500)
        if not self._leaves.decide(leave_id=int(leave_id), status=status, decided_by=int(admin_user_id), admin_note=note):
            raise ValidationError("Leave request has already been processed")

        self._audit.record(
            actor_id=admin_user_id,
            action=status.value,
            entity="leave",
            entity_id=leave_id,
            details={"user_id": req.user_id, "leave_date": req.leave_date, "note": note},
        )

    def approve_leave(self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "") -> None:
        self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            leave_id=leave_id,
            status=RequestStatus.APPROVED,
            admin_note=admin_note,
        )

    def reject_leave(self, *, current_role: Role, admin_user_id: int, leave_id: int, admin_note: str = "") -> None:
        self._decide(
            current_role=current_role,
            admin_user_id=admin_user_id,
            leave_id=leave_id,
            status=RequestStatus.REJECTED,
            admin_note=admin_note,
        )

    def list_mine(self, *, user_id: int):
        return self._leaves.list_requests(user_id=int(user_id), limit=200)

    def list_pending(self):
        return self._leaves.list_requests(status=RequestStatus.PENDING, limit=500)

    def list_all(self, *, current_role: Role, status: Optional[RequestStatus] = None):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        return self._leaves.list_requests(status=status, limit=500)
