from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.constants import RATING_RANGE
from ..core.exceptions import ValidationError

_PHONE_RE = re.compile(r"^\+?[0-9][0-9\s-]{6,18}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_text(value: str, field_name: str, max_len: int) -> str:
    """Trimmed, non-empty and bounded."""
    return require_max_length(require_non_empty(value, field_name), field_name, max_len)


def optional_text(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    v = (value or "").strip() or None
    return require_max_length(v, field_name, max_len)


def require_positive_int(value, field_name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if n < 1:
        raise ValidationError(f"{field_name} must be at least 1")
    return n


def require_amount(value, field_name: str, *, max_value: Optional[Decimal] = None) -> Decimal:
    """Positive amount rounded to paise; ``max_value`` is the column's ceiling."""
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, AttributeError):
        raise ValidationError(f"{field_name} must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    if max_value is not None and amount > max_value:
        raise ValidationError(f"{field_name} must be at most {max_value}")
    try:
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError(f"{field_name} is too large")


def optional_amount(value, field_name: str, *, max_value: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or not str(value).strip():
        return None
    return require_amount(value, field_name, max_value=max_value)


def require_phone(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip() or None
    if v and not _PHONE_RE.match(v):
        raise ValidationError("Phone number is not valid")
    return v


def require_coordinates(lat, lng) -> tuple[float, float]:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise ValidationError("GPS location is required")
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lng_f <= 180.0):
        raise ValidationError("GPS location is out of range")
    return lat_f, lng_f


def optional_coordinates(lat, lng) -> tuple[Optional[float], Optional[float]]:
    if lat in (None, "") or lng in (None, ""):
        return None, None
    return require_coordinates(lat, lng)


def non_negative_amount(value, field_name: str, *, max_value: Optional[Decimal] = None) -> Decimal:
    """Like require_amount, but blank and zero are 0.00."""
    if value is None or not str(value).strip():
        return Decimal("0.00")
    try:
        if Decimal(str(value).strip()) == 0:
            return Decimal("0.00")
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")
    return require_amount(value, field_name, max_value=max_value)


def optional_rating(value, field_name: str = "Rating") -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    low, high = RATING_RANGE
    try:
        n = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a whole number")
    if not low <= n <= high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return n
