from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuditEntry:
    audit_id: int
    actor_id: int
    action: str
    entity: str
    entity_id: Optional[str]
    details: Optional[str]
    created_at: datetime
    actor_name: Optional[str] = None
