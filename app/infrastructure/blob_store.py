"""Blob store for report media.

Reports keep only the opaque reference returned by ``store``; nothing else in
the application interprets it.
"""

import os
import re
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Protocol

import structlog

from app.config import Settings, get_settings
from app.core.exceptions import ValidationException

logger = structlog.get_logger(__name__)

ALLOWED_MIME_TYPES = {
    # Images
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp",
    # Videos
    "video/mp4", "video/webm", "video/ogg", "video/quicktime", "video/x-msvideo",
    # Audio
    "audio/mpeg", "audio/mp3", "audio/wav", "audio/ogg", "audio/webm", "audio/x-m4a",
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]+")


@dataclass(frozen=True)
class MediaFile:
    filename: str
    content_type: str
    data: bytes


class BlobStore(Protocol):
    def store(self, file: MediaFile) -> str:
        ...

    def delete(self, reference: str) -> None:
        ...


def validate_media(files: Iterable[MediaFile], max_files: int, max_bytes: int) -> List[MediaFile]:
    """Reject the whole batch if any file is too big, of the wrong type, or there are too many."""
    files = list(files)
    if len(files) > max_files:
        raise ValidationException(f"Too many files. Maximum is {max_files} per request.")
    for f in files:
        if f.content_type not in ALLOWED_MIME_TYPES:
            raise ValidationException(
                "Invalid file type. Only images, videos, and audio files are allowed.",
                details={"filename": f.filename, "content_type": f.content_type},
            )
        if len(f.data) > max_bytes:
            raise ValidationException(
                f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB.",
                details={"filename": f.filename},
            )
    return files


def safe_filename(original: str) -> str:
    base, ext = os.path.splitext(os.path.basename(original or "file"))
    base = _UNSAFE_CHARS.sub("-", base).strip("-")[:50] or "file"
    ext = _UNSAFE_CHARS.sub("", ext)[:10].lower()
    suffix = f".{ext}" if ext else ""
    return f"{base}-{uuid.uuid4().hex}{suffix}"


class LocalBlobStore:
    """Writes files under UPLOAD_DIR and returns their public path."""

    def __init__(self, settings: Settings | None = None, url_prefix: str = "/uploads"):
        settings = settings or get_settings()
        self.root = settings.UPLOAD_DIR
        self.url_prefix = url_prefix.rstrip("/")

    def store(self, file: MediaFile) -> str:
        os.makedirs(self.root, exist_ok=True)
        name = safe_filename(file.filename)
        with open(os.path.join(self.root, name), "wb") as out:
            out.write(file.data)
        logger.info("Media stored", filename=name, size=len(file.data), content_type=file.content_type)
        return f"{self.url_prefix}/{name}"

    def delete(self, reference: str) -> None:
        """Remove a stored file. Unknown or foreign references are ignored."""
        prefix = f"{self.url_prefix}/"
        if not reference.startswith(prefix):
            return
        name = os.path.basename(reference[len(prefix):])
        try:
            os.remove(os.path.join(self.root, name))
        except FileNotFoundError:
            return
        logger.info("Media removed", filename=name)
