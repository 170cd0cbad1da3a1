from __future__ import annotations

import json
import logging
from typing import Any, Optional

from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Append-only log of admin mutations."""

    def __init__(self, audit: AuditRepository):
        self._audit = audit

    def record(
        self,
        *,
        actor_id: int,
        action: str,
        entity: str,
        entity_id: Any = None,
        details: Optional[dict] = None,
    ) -> int:
        payload = json.dumps(details, default=str, sort_keys=True) if details else None
        audit_id = self._audit.create(
            actor_id=int(actor_id),
            action=action,
            entity=entity,
            entity_id=None if entity_id is None else str(entity_id),
            details=payload,
        )
        logger.info("audit #%s: user %s %s %s/%s", audit_id, actor_id, action, entity, entity_id)
        return audit_id

    def list_recent(self, *, current_role: Role, limit: int = 100, entity: Optional[str] = None):
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission to view the audit log")
        return self._audit.list_recent(limit=int(limit), entity=(entity or "").strip() or None)
