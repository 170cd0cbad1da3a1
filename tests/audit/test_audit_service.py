from __future__ import annotations

import json
from datetime import date

import pytest

from fakes import InMemoryAudit

from market_ops.audit.service import AuditService
from market_ops.core.enums import Role
from market_ops.core.exceptions import AuthorizationError


def test_record_serializes_details():
    repo = InMemoryAudit()
    svc = AuditService(repo)

    svc.record(actor_id="1", action="lock", entity="session", entity_id=5, details={"day": date(2026, 3, 2)})

    entry = repo.entries[0]
    assert entry["actor_id"] == 1
    assert entry["entity_id"] == "5"
    assert json.loads(entry["details"]) == {"day": "2026-03-02"}


def test_empty_details_stored_as_null():
    repo = InMemoryAudit()

    AuditService(repo).record(actor_id=1, action="delete", entity="market")

    assert repo.entries[0]["details"] is None
    assert repo.entries[0]["entity_id"] is None


def test_audit_log_is_admin_only():
    repo = InMemoryAudit()
    svc = AuditService(repo)
    svc.record(actor_id=1, action="delete", entity="market", entity_id=2)
    svc.record(actor_id=1, action="update", entity="app_settings", entity_id=1)

    assert len(svc.list_recent(current_role=Role.ADMIN, entity=" market ")) == 1
    with pytest.raises(AuthorizationError):
        svc.list_recent(current_role=Role.EMPLOYEE)
