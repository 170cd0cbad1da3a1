from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..core.enums import ROLE_PRIORITY, Role


def primary_role(roles: Iterable[Role]) -> Role:
    """The role a user acts as: highest in ROLE_PRIORITY, employee when none."""
    held = set(roles)
    for role in ROLE_PRIORITY:
        if role in held:
            return role
    return Role.EMPLOYEE


@dataclass(frozen=True)
class User:
    """Domain entity: an account with one or more roles."""

    user_id: int
    full_name: str
    username: str
    password_hash: str
    roles: tuple[Role, ...] = field(default_factory=tuple)
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True

    @property
    def role(self) -> Role:
        return primary_role(self.roles)
