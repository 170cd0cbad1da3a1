from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, actor_id: int, action: str, entity: str, entity_id: Optional[str], details: Optional[str]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs (actor_id, action, entity, entity_id, details)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (int(actor_id), action, entity, entity_id, details),
            )
            return int(cur.lastrowid)

    def list_recent(self, *, limit: int = 100, entity: Optional[str] = None) -> Sequence[AuditEntry]:
        sql = """
            SELECT a.audit_id, a.actor_id, a.action, a.entity, a.entity_id, a.details, a.created_at,
                   u.full_name AS actor_name
            FROM audit_logs a
            LEFT JOIN users u ON u.user_id = a.actor_id
        """
        params: list = []
        if entity:
            sql += " WHERE a.entity=%s"
            params.append(entity)
        sql += " ORDER BY a.audit_id DESC LIMIT %s"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    actor_id=int(r["actor_id"]),
                    action=r["action"],
                    entity=r["entity"],
                    entity_id=r.get("entity_id"),
                    details=r.get("details"),
                    created_at=r["created_at"],
                    actor_name=r.get("actor_name"),
                )
                for r in fetchall(cur)
            ]
