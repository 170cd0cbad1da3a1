from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import mysql.connector

from ..core.constants import DEFAULT_TIMEZONE


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_dict(cls, db_config: dict, *, timezone: Optional[str] = None) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "market_ops")),
            timezone=timezone or DEFAULT_TIMEZONE,
        )

    @property
    def label(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


def mysql_offset(tz_name: str, at: Optional[datetime] = None) -> str:
    """Offset string accepted by ``SET time_zone``, e.g. '+05:30'."""
    offset = ZoneInfo(tz_name).utcoffset(at or datetime.now())
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    hours, minutes = divmod(abs(minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"


class DatabaseConnection:
    """Opens one MySQL connection per unit of work.

    Every connection runs with the market's local offset so CURRENT_TIMESTAMP
    defaults match the naive local timestamps written by the services.
    """

    def __init__(self, config: DBConfig):
        self.config = config

    def connect(self, *, with_database: bool = True):
        kwargs = dict(
            host=self.config.host,
            port=self.config.port,
            user=self.config.user,
            password=self.config.password,
            charset="utf8mb4",
            time_zone=mysql_offset(self.config.timezone),
        )
        if with_database:
            kwargs["database"] = self.config.database
        return mysql.connector.connect(**kwargs)
