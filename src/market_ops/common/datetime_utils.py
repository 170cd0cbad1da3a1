from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_hhmm(value: str) -> time:
    """Parse HH:MM (or HH:MM:SS) into time."""
    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)")


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now(timezone.utc)


def to_local(dt: datetime, tz: str) -> datetime:
    """Convert to the business time zone. Naive values are treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(tz))


def local_naive(dt: datetime, tz: str) -> datetime:
    """Local wall-clock time without tzinfo, as stored in DATETIME columns."""
    return to_local(dt, tz).replace(tzinfo=None)


def local_date(dt: datetime, tz: str) -> date:
    """Calendar date in the business time zone.

    A punch at 20:00 UTC is already the next day in Asia/Kolkata; the UTC
    date must never be used as the session key.
    """
    return to_local(dt, tz).date()


def local_date_string(dt: datetime, tz: str) -> str:
    return local_date(dt, tz).strftime("%Y-%m-%d")


def month_start(d: date) -> date:
    return d.replace(day=1)


def weekday_sunday_first(d: date) -> int:
    """0 = Sunday ... 6 = Saturday (the convention stored on markets)."""
    return (d.weekday() + 1) % 7
