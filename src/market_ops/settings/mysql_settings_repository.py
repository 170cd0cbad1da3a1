from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import INT_FIELDS, TIME_FIELDS, AppSettings
from .repository import SettingsRepository

_SETTINGS_ID = 1
_COLUMNS = ("org_name", "org_email") + TIME_FIELDS + INT_FIELDS


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self) -> Optional[AppSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {', '.join(_COLUMNS)} FROM app_settings WHERE settings_id=%s", (_SETTINGS_ID,))
            row = fetchone(cur)
            if not row:
                return None
            values = {name: row[name] for name in _COLUMNS if row.get(name) is not None}
            for name in TIME_FIELDS:
                if name in values:
                    values[name] = normalize_mysql_time(values[name])
            for name in INT_FIELDS:
                if name in values:
                    values[name] = int(values[name])
            return AppSettings(**values)

    def save(self, settings: AppSettings) -> None:
        data = asdict(settings)
        assignments = ", ".join(f"{name}=VALUES({name})" for name in _COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO app_settings (settings_id, {', '.join(_COLUMNS)})
                VALUES (%s, {', '.join(['%s'] * len(_COLUMNS))})
                ON DUPLICATE KEY UPDATE {assignments}
                """,
                (_SETTINGS_ID, *[data[name] for name in _COLUMNS]),
            )
