"""Upload validation: size, MIME type, extension, and image decoding."""

from __future__ import annotations

import io
import re
from dataclasses import dataclass
from datetime import datetime

from PIL import Image, UnidentifiedImageError

from ..core.constants import MAX_DOCUMENT_BYTES, MAX_IMAGE_BYTES, MAX_VIDEO_BYTES
from ..core.exceptions import ValidationError
from .model import UploadedFile


@dataclass(frozen=True)
class FileRule:
    label: str
    max_bytes: int
    content_types: frozenset[str]
    extensions: frozenset[str]


IMAGE_RULE = FileRule(
    label="image",
    max_bytes=MAX_IMAGE_BYTES,
    content_types=frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"}),
    extensions=frozenset({"jpg", "jpeg", "png", "webp"}),
)
VIDEO_RULE = FileRule(
    label="video",
    max_bytes=MAX_VIDEO_BYTES,
    content_types=frozenset({"video/mp4", "video/quicktime", "video/x-msvideo", "video/webm"}),
    extensions=frozenset({"mp4", "mov", "avi", "webm"}),
)
DOCUMENT_RULE = FileRule(
    label="document",
    max_bytes=MAX_DOCUMENT_BYTES,
    content_types=frozenset(
        {
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        }
    ),
    extensions=frozenset({"pdf", "doc", "docx"}),
)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def proof_rule(content_type: str) -> FileRule:
    """Receipts and agreements may be a photo or a scanned document."""
    return IMAGE_RULE if (content_type or "").startswith("image/") else DOCUMENT_RULE


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def validate_file(file: UploadedFile, rule: FileRule) -> None:
    if file.size == 0:
        raise ValidationError("The uploaded file is empty")
    if file.size > rule.max_bytes:
        raise ValidationError(f"File too large. Maximum size is {rule.max_bytes // (1024 * 1024)}MB")
    if file.content_type not in rule.content_types:
        raise ValidationError(f"Invalid file type {file.content_type or 'unknown'}; please upload a supported {rule.label}")
    if file_extension(file.filename) not in rule.extensions:
        raise ValidationError(f"Invalid file extension. Allowed: {', '.join(sorted(rule.extensions))}")
    if rule is IMAGE_RULE:
        verify_image(file.data)


def verify_image(data: bytes) -> None:
    """Reject files that claim to be images but do not decode."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationError("The uploaded image is corrupted or not a real image")


def sanitize_filename(filename: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", filename or "")
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned)
    return cleaned[:255] or "file"


def generate_upload_path(user_id: int, filename: str, *, prefix: str = "", now: datetime) -> str:
    """'<prefix>/<user_id>/<epoch millis>-<sanitized name>'."""
    millis = int(now.timestamp() * 1000)
    base = f"{user_id}/{millis}-{sanitize_filename(filename)}"
    return f"{prefix}/{base}" if prefix else base
