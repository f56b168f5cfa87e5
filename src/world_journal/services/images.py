"""Image blob storage interface and reference helpers."""

import re
import secrets
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from world_journal.domain.waypoints import ImageReference, QuarantinedBlob
from world_journal.errors import UnsupportedMediaType, ValidationError

ALLOWED_CONTENT_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}

REFERENCE_ROOT = "waypoints"

_REFERENCE_PATTERN = re.compile(
    rf"^{REFERENCE_ROOT}/"
    r"(?P<owner>[0-9a-fA-F-]{36})/"
    r"(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)$"
)


class BlobStore(Protocol):
    """Storage interface for raw image bytes."""

    async def put(
        self, data: bytes, content_type: str | None, waypoint_id: UUID
    ) -> ImageReference:
        """Store image bytes and return a new reference."""

    async def resolve(self, reference: ImageReference) -> str:
        """Return a retrievable URL for a servable reference."""

    async def quarantine(self, reference: ImageReference) -> None:
        """Move a servable blob into the quarantine area."""

    async def restore(self, reference: ImageReference) -> None:
        """Move a quarantined blob back into the servable area."""

    async def purge(self, reference: ImageReference) -> None:
        """Permanently delete a blob from whichever area holds it."""

    async def list_quarantined(self) -> list[QuarantinedBlob]:
        """Return every blob currently in quarantine."""

    def normalize(self, value: str) -> ImageReference:
        """Turn a public URL or storage path into a reference."""


def normalize_content_type(content_type: str | None) -> str:
    """Return the bare media type if it is an allowed image type."""
    if content_type:
        cleaned = content_type.split(";", maxsplit=1)[0].strip().lower()
        if cleaned in ALLOWED_CONTENT_TYPES:
            return cleaned
    raise UnsupportedMediaType(content_type)


def extension_for(content_type: str | None) -> str:
    """Return the file extension for an allowed image content type."""
    return ALLOWED_CONTENT_TYPES[normalize_content_type(content_type)]


def build_reference(
    waypoint_id: UUID, content_type: str | None, now: datetime | None = None
) -> ImageReference:
    """Generate a collision-resistant reference for a new upload."""
    extension = extension_for(content_type)
    stamp = int((now or datetime.now(tz=UTC)).timestamp() * 1000)
    name = f"{stamp}-{secrets.token_hex(4)}{extension}"
    return f"{REFERENCE_ROOT}/{waypoint_id}/{name}"


def parse_reference(value: str, url_prefix: str | None = None) -> ImageReference:
    """Validate a reference, stripping a public URL prefix when present."""
    candidate = value.strip()
    if url_prefix and candidate.startswith(url_prefix):
        candidate = candidate[len(url_prefix) :]
    candidate = candidate.lstrip("/")
    if not _REFERENCE_PATTERN.match(candidate):
        raise ValidationError(f"Invalid image reference: {value}")
    return candidate


def owner_of(reference: ImageReference) -> UUID | None:
    """Return the waypoint id a reference is namespaced under."""
    match = _REFERENCE_PATTERN.match(reference)
    if match is None:
        return None
    try:
        return UUID(match.group("owner"))
    except ValueError:
        return None
