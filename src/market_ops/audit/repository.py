from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditEntry


class AuditRepository(Protocol):
    def create(self, *, actor_id: int, action: str, entity: str, entity_id: Optional[str], details: Optional[str]) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int = 100, entity: Optional[str] = None) -> Sequence[AuditEntry]:
        raise NotImplementedError
