from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

from ..core.constants import SIGNED_URL_TTL_SECONDS
from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class MediaStorage:
    """Private file storage under a local folder, served through signed tokens."""

    def __init__(self, root: str | Path, *, secret_key: str, default_ttl: int = SIGNED_URL_TTL_SECONDS):
        self._root = Path(root).resolve()
        self._serializer = URLSafeTimedSerializer(secret_key, salt="market-ops-media")
        self._default_ttl = int(default_ttl)

    def _resolve(self, path: str) -> Path:
        full = (self._root / path).resolve()
        if full != self._root and self._root not in full.parents:
            raise ValidationError("Invalid file path")
        return full

    def save(self, path: str, data: bytes) -> None:
        full = self._resolve(path)
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_bytes(data)
        logger.debug("stored %s (%d bytes)", path, len(data))

    def delete(self, path: str) -> None:
        full = self._resolve(path)
        if full.exists():
            full.unlink()

    def open_path(self, path: str) -> Path:
        full = self._resolve(path)
        if not full.is_file():
            raise NotFoundError("File not found")
        return full

    def sign(self, path: str, *, expires_in: Optional[int] = None) -> str:
        return self._serializer.dumps({"p": path, "e": int(expires_in or self._default_ttl)})

    def resolve_token(self, token: str, *, now: Optional[datetime] = None) -> str:
        """Return the storage path for a token; reject tampered or expired tokens."""
        try:
            payload, signed_at = self._serializer.loads(token, return_timestamp=True)
        except BadSignature:
            raise ValidationError("Invalid media link")

        now = now or datetime.now(timezone.utc)
        if signed_at.tzinfo is None:
            signed_at = signed_at.replace(tzinfo=timezone.utc)
        if (now - signed_at).total_seconds() > int(payload.get("e", self._default_ttl)):
            raise ValidationError("Media link has expired")
        return str(payload["p"])
