from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.constants import DEFAULT_GRACE_MINUTES


@dataclass(frozen=True)
class AppSettings:
    """Organisation-wide settings (single row). Defaults apply when the row is missing."""

    org_name: str = "Market Operations"
    org_email: Optional[str] = None
    attendance_start: time = time(6, 0)
    attendance_end: time = time(22, 0)
    grace_minutes: int = DEFAULT_GRACE_MINUTES
    outside_rates_start: time = time(6, 0)
    outside_rates_end: time = time(10, 0)
    market_video_start: time = time(6, 0)
    market_video_end: time = time(12, 0)
    finalize_cutoff: time = time(11, 0)
    geofence_radius_meters: int = 200
    gps_accuracy_meters: int = 50
    retention_days: int = 90


TIME_FIELDS = (
    "attendance_start",
    "attendance_end",
    "outside_rates_start",
    "outside_rates_end",
    "market_video_start",
    "market_video_end",
    "finalize_cutoff",
)
INT_FIELDS = ("grace_minutes", "geofence_radius_meters", "gps_accuracy_meters", "retention_days")
