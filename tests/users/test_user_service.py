from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from fakes import InMemoryAudit, InMemoryUsers

from market_ops.audit.service import AuditService
from market_ops.core.enums import Role
from market_ops.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from market_ops.users.model import User, primary_role
from market_ops.users.service import AuthService, UserService


def _user(user_id, username, roles, *, password="secret1", is_active=True):
    return User(
        user_id=user_id,
        full_name=username.title(),
        username=username,
        password_hash=generate_password_hash(password),
        roles=tuple(roles),
        is_active=is_active,
    )


def test_primary_role_follows_priority():
    assert primary_role([Role.EMPLOYEE, Role.MARKET_MANAGER]) == Role.MARKET_MANAGER
    assert primary_role([Role.BDO, Role.ADMIN]) == Role.ADMIN
    assert primary_role([]) == Role.EMPLOYEE


def test_login_returns_all_roles_and_acting_role():
    users = InMemoryUsers([_user(1, "asha", [Role.EMPLOYEE, Role.BMS_EXECUTIVE])])

    session_user = AuthService(users).authenticate(" asha ", "secret1")

    assert session_user.role == Role.BMS_EXECUTIVE
    assert set(session_user.roles) == {Role.EMPLOYEE, Role.BMS_EXECUTIVE}


def test_login_failures():
    users = InMemoryUsers(
        [
            _user(1, "asha", [Role.EMPLOYEE]),
            _user(2, "gone", [Role.EMPLOYEE], is_active=False),
            User(3, "Legacy", "legacy", "CHANGE_ME", (Role.EMPLOYEE,)),
        ]
    )
    auth = AuthService(users)

    for username, password in [("asha", "wrong"), ("nobody", "secret1"), ("gone", "secret1"), ("legacy", "CHANGE_ME")]:
        with pytest.raises(AuthenticationError):
            auth.authenticate(username, password)


def test_create_account_with_roles():
    users = InMemoryUsers([_user(1, "admin", [Role.ADMIN])])
    audit = InMemoryAudit()
    svc = UserService(users, AuditService(audit))

    user_id = svc.create_account(
        current_role=Role.ADMIN,
        actor_id=1,
        full_name="Ravi Kumar",
        username="ravi",
        password="secret1",
        roles=["employee", "market_manager", "employee"],
        phone="+91 98765 43210",
    )

    created = users.get_by_id(user_id)
    assert created.roles == (Role.EMPLOYEE, Role.MARKET_MANAGER)
    assert created.role == Role.MARKET_MANAGER
    assert created.password_hash != "secret1"
    assert audit.entries[-1]["entity"] == "user"


def test_create_account_validation():
    users = InMemoryUsers([_user(1, "admin", [Role.ADMIN])])
    svc = UserService(users, AuditService(InMemoryAudit()))
    base = dict(current_role=Role.ADMIN, actor_id=1, full_name="Ravi", username="ravi", password="secret1", roles=["employee"])

    with pytest.raises(AuthorizationError):
        svc.create_account(**{**base, "current_role": Role.MARKET_MANAGER})
    with pytest.raises(ValidationError):
        svc.create_account(**{**base, "username": "admin"})
    with pytest.raises(ValidationError):
        svc.create_account(**{**base, "password": "123"})
    with pytest.raises(ValidationError):
        svc.create_account(**{**base, "roles": ["chef"]})
    with pytest.raises(ValidationError):
        svc.create_account(**{**base, "roles": []})
    with pytest.raises(ValidationError):
        svc.create_account(**{**base, "phone": "call me"})


def test_admin_cannot_lock_themselves_out():
    users = InMemoryUsers([_user(1, "admin", [Role.ADMIN]), _user(2, "ravi", [Role.EMPLOYEE])])
    svc = UserService(users, AuditService(InMemoryAudit()))

    with pytest.raises(ValidationError):
        svc.set_roles(current_role=Role.ADMIN, actor_id=1, user_id=1, roles=["employee"])
    with pytest.raises(ValidationError):
        svc.set_active(current_role=Role.ADMIN, actor_id=1, user_id=1, is_active=False)

    svc.set_roles(current_role=Role.ADMIN, actor_id=1, user_id=2, roles=["employee", "bdo"])
    svc.set_active(current_role=Role.ADMIN, actor_id=1, user_id=2, is_active=False)

    assert users.get_by_id(2).roles == (Role.EMPLOYEE, Role.BDO)
    assert users.get_by_id(2).is_active is False
