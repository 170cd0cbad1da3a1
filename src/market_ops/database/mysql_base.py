"""Cursor and row helpers shared by the MySQL repositories."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One transaction: committed when the block exits cleanly, rolled back otherwise."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        logger.debug("transaction on %s rolled back", conn_factory.config.database, exc_info=True)
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or ())


def placeholders(values: Sequence[Any]) -> str:
    """Parameter list for an IN (...) clause."""
    if not values:
        raise ValueError("IN clause needs at least one value")
    return ", ".join("%s" for _ in values)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Coerce a TIME column into ``datetime.time``.

    The C extension returns ``timedelta`` (TIME is a duration in MySQL), the
    pure driver may hand back ``time`` or text, and older rows were written
    as 'HH:MM' strings from the settings form.
    """
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        return (datetime.min + timedelta(seconds=int(value.total_seconds()) % 86400)).time()
    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%H:%M:%S", "%H:%M"):
            try:
                return datetime.strptime(text, fmt).time()
            except ValueError:
                continue
        raise ValueError(f"not a TIME value: {value!r}")
    raise TypeError(f"unexpected TIME value of type {type(value).__name__}")
