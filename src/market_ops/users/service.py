from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.service import AuditService
from ..common.validators import require_min_length, require_non_empty, require_phone
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .model import primary_role
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    roles: tuple[Role, ...]


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            logger.info("failed login for %s", user.username)
            raise AuthenticationError("Invalid username or password")

        roles = user.roles or (Role.EMPLOYEE,)
        return SessionUser(
            user_id=user.user_id,
            full_name=user.full_name,
            role=primary_role(roles),
            roles=tuple(roles),
        )


def _coerce_roles(roles: Iterable) -> tuple[Role, ...]:
    out: list[Role] = []
    for r in roles:
        try:
            role = r if isinstance(r, Role) else Role(str(r))
        except ValueError:
            raise ValidationError(f"Unknown role: {r}")
        if role not in out:
            out.append(role)
    if not out:
        raise ValidationError("Select at least one role")
    return tuple(out)


class UserService:
    """Use case: manage users (admin)."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def create_account(
        self,
        *,
        current_role: Role,
        actor_id: int,
        full_name: str,
        username: str,
        password: str,
        roles: Iterable,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> int:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)
        role_set = _coerce_roles(roles)
        phone = require_phone(phone)
        email = (email or "").strip() or None

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists")

        user_id = self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            email=email,
            phone=phone,
        )
        self._users.set_roles(user_id, role_set)
        self._audit.record(
            actor_id=actor_id,
            action="create",
            entity="user",
            entity_id=user_id,
            details={"username": username, "roles": [r.value for r in role_set]},
        )
        return user_id

    def set_roles(self, *, current_role: Role, actor_id: int, user_id: int, roles: Iterable) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise ValidationError("User does not exist")
        role_set = _coerce_roles(roles)
        if int(user_id) == int(actor_id) and Role.ADMIN not in role_set:
            raise ValidationError("You cannot remove your own admin role")

        self._users.set_roles(int(user_id), role_set)
        self._audit.record(
            actor_id=actor_id,
            action="set_roles",
            entity="user",
            entity_id=user_id,
            details={"before": [r.value for r in user.roles], "after": [r.value for r in role_set]},
        )

    def set_active(self, *, current_role: Role, actor_id: int, user_id: int, is_active: bool) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")
        if int(user_id) == int(actor_id) and not is_active:
            raise ValidationError("You cannot deactivate your own account")

        if not self._users.set_active(int(user_id), is_active=bool(is_active)):
            raise ValidationError("User does not exist")
        self._audit.record(
            actor_id=actor_id,
            action="activate" if is_active else "deactivate",
            entity="user",
            entity_id=user_id,
        )

    def list_admin_view(self):
        return self._users.list_admin_view()
