from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, full_name, username, email, phone, password_hash, is_active"


def _parse_roles(value: Optional[str]) -> tuple[Role, ...]:
    roles = []
    for part in (value or "").split(","):
        try:
            roles.append(Role(part))
        except ValueError:
            continue
    return tuple(roles)


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS},
                       (SELECT GROUP_CONCAT(r.role) FROM user_roles r WHERE r.user_id = users.user_id) AS roles
                FROM users
                WHERE {where}=%s
                """,
                (value,),
            )
            row = fetchone(cur)
            if not row:
                return None
            return User(
                user_id=int(row["user_id"]),
                full_name=row["full_name"],
                username=row["username"],
                password_hash=row["password_hash"],
                roles=_parse_roles(row.get("roles")),
                email=row.get("email"),
                phone=row.get("phone"),
                is_active=bool(row.get("is_active", True)),
            )

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("user_id", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("username", username)

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users (full_name, username, email, phone, password_hash)
                VALUES (%s, %s, %s, %s, %s)
                """,
                (full_name, username, email, phone, password_hash),
            )
            return int(cur.lastrowid)

    def set_roles(self, user_id: int, roles: Sequence[Role]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_roles WHERE user_id=%s", (int(user_id),))
            for role in roles:
                cur.execute("INSERT INTO user_roles (user_id, role) VALUES (%s, %s)", (int(user_id), role.value))

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def list_admin_view(self) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT u.user_id, u.full_name, u.username, u.email, u.phone, u.is_active, u.created_at,
                       GROUP_CONCAT(r.role ORDER BY r.role) AS roles
                FROM users u
                LEFT JOIN user_roles r ON r.user_id = u.user_id
                GROUP BY u.user_id
                ORDER BY u.full_name
                """
            )
            rows = fetchall(cur)
            for r in rows:
                r["roles"] = [role.value for role in _parse_roles(r.get("roles"))]
                r["is_active"] = bool(r.get("is_active"))
            return rows
