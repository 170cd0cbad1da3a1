from __future__ import annotations

from dataclasses import asdict, replace
from typing import Mapping

from ..audit.service import AuditService
from ..common.datetime_utils import parse_hhmm
from ..common.validators import require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import INT_FIELDS, TIME_FIELDS, AppSettings
from .repository import SettingsRepository

# (start, end, label) pairs that must satisfy start < end.
_WINDOWS = (
    ("attendance_start", "attendance_end", "Attendance window"),
    ("outside_rates_start", "outside_rates_end", "Outside rates window"),
    ("market_video_start", "market_video_end", "Market video window"),
)


class SettingsService:
    def __init__(self, settings: SettingsRepository, audit: AuditService):
        self._settings = settings
        self._audit = audit

    def get(self) -> AppSettings:
        return self._settings.get() or AppSettings()

    def update(self, *, current_role: Role, actor_id: int, values: Mapping[str, str]) -> AppSettings:
        """Apply submitted form values; keys that are absent keep their current value."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("You do not have permission")

        current = self.get()
        changes: dict = {}

        if "org_name" in values:
            changes["org_name"] = require_non_empty(values["org_name"], "Organisation name")
        if "org_email" in values:
            changes["org_email"] = (values["org_email"] or "").strip() or None
        for name in TIME_FIELDS:
            if name in values:
                changes[name] = parse_hhmm(values[name])
        for name in INT_FIELDS:
            if name in values:
                try:
                    changes[name] = int(str(values[name]).strip())
                except ValueError:
                    raise ValidationError(f"{name.replace('_', ' ').capitalize()} must be a number")

        updated = replace(current, **changes)
        self._validate(updated)

        self._settings.save(updated)
        before = asdict(current)
        diff = {k: {"from": before[k], "to": v} for k, v in asdict(updated).items() if before[k] != v}
        self._audit.record(actor_id=actor_id, action="update", entity="app_settings", entity_id=1, details=diff)
        return updated

    @staticmethod
    def _validate(s: AppSettings) -> None:
        for start, end, label in _WINDOWS:
            if getattr(s, start) >= getattr(s, end):
                raise ValidationError(f"{label}: start time must be before end time")
        if not 0 <= s.grace_minutes <= 180:
            raise ValidationError("Grace minutes must be between 0 and 180")
        if s.retention_days < 1:
            raise ValidationError("Retention days must be at least 1")
        if s.geofence_radius_meters < 0 or s.gps_accuracy_meters < 0:
            raise ValidationError("Distances cannot be negative")
