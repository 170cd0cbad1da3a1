"""Schema, seed data and demo accounts for a fresh market_ops database."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Sequence

from werkzeug.security import generate_password_hash

from .connection import DBConfig, DatabaseConnection
from .mysql_base import db_cursor, fetchone

logger = logging.getLogger(__name__)

SQL_DIR = Path(__file__).resolve().parent
SCHEMA_PATH = SQL_DIR / "schema.sql"
SEED_PATH = SQL_DIR / "seed.sql"

# (full_name, username, password, roles)
DEMO_USERS: Sequence[tuple[str, str, str, tuple[str, ...]]] = (
    ("Admin Demo", "admin", "admin123", ("admin",)),
    ("Ravi Patil", "employee", "employee123", ("employee",)),
    ("Sneha Kulkarni", "manager", "manager123", ("market_manager", "employee")),
    ("Amit Deshmukh", "bdo", "bdo123", ("bdo",)),
)

# schema.sql targets whatever database DB_CONFIG names
_DB_SELECTION = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$")


def split_statements(sql: str) -> Iterator[str]:
    """Split a script on ';' outside quoted strings."""
    start = 0
    quote = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if ch == "\\" and quote:
            i += 2
            continue
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            statement = sql[start:i].strip()
            if statement:
                yield statement
            start = i + 1
        i += 1
    statement = sql[start:].strip()
    if statement:
        yield statement


def _factory(db_config: dict) -> DatabaseConnection:
    return DatabaseConnection(DBConfig.from_dict(db_config))


def run_sql_file(db_config: dict, path: str | Path) -> int:
    sql = _DB_SELECTION.sub("", Path(path).read_text(encoding="utf-8"))
    count = 0
    with db_cursor(_factory(db_config), dictionary=False) as (_, cur):
        for statement in split_statements(sql):
            cur.execute(statement)
            count += 1
    return count


def ensure_database_exists(db_config: dict) -> None:
    factory = _factory(db_config)
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        cur.close()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    logger.info("schema applied (%d statements)", run_sql_file(db_config, schema_path))


def apply_seed_sql(db_config: dict, *, seed_path: str | Path = SEED_PATH) -> None:
    logger.info("seed applied (%d statements)", run_sql_file(db_config, seed_path))


def ensure_demo_users(db_config: dict) -> None:
    """Create or reset the demo accounts and their role rows."""
    with db_cursor(_factory(db_config)) as (_, cur):
        for full_name, username, password, roles in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            if row:
                user_id = int(row["user_id"])
                cur.execute(
                    "UPDATE users SET full_name=%s, password_hash=%s, is_active=1 WHERE user_id=%s",
                    (full_name, password_hash, user_id),
                )
            else:
                cur.execute(
                    "INSERT INTO users (full_name, username, password_hash) VALUES (%s, %s, %s)",
                    (full_name, username, password_hash),
                )
                user_id = int(cur.lastrowid)

            cur.execute("DELETE FROM user_roles WHERE user_id=%s", (user_id,))
            cur.executemany(
                "INSERT INTO user_roles (user_id, role) VALUES (%s, %s)",
                [(user_id, role) for role in roles],
            )
    logger.info("demo users ready: %s", ", ".join(u[1] for u in DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    with db_cursor(_factory(db_config), dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
