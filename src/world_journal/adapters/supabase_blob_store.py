"""Supabase Storage implementation of the image blob store."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from supabase import Client

from world_journal.domain.waypoints import ImageReference, QuarantinedBlob
from world_journal.errors import BlobNotFound, BlobStoreError
from world_journal.services.images import (
    BlobStore,
    build_reference,
    normalize_content_type,
    parse_reference,
)

_PAGE_SIZE = 100

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseBlobStore(BlobStore):
    """Stores images in a Supabase bucket, quarantining under a prefix."""

    client: Client
    supabase_url: str
    bucket: str = "images"
    quarantine_prefix: str = "deleted"

    @property
    def public_prefix(self) -> str:
        """Public URL prefix of objects in the bucket."""
        base = self.supabase_url.rstrip("/")
        return f"{base}/storage/v1/object/public/{self.bucket}/"

    def normalize(self, value: str) -> ImageReference:
        """Strip the public bucket URL from a reference."""
        return parse_reference(value, self.public_prefix)

    async def put(
        self, data: bytes, content_type: str | None, waypoint_id: UUID
    ) -> ImageReference:
        """Upload image bytes under the waypoint's folder."""
        media_type = normalize_content_type(content_type)
        reference = build_reference(waypoint_id, media_type)
        self._call(
            "upload",
            lambda: self._storage().upload(
                reference,
                data,
                {"content-type": media_type, "upsert": "false"},
            ),
        )
        return reference

    async def resolve(self, reference: ImageReference) -> str:
        """Return the public URL of a servable image."""
        if not self._exists(reference):
            raise BlobNotFound(reference)
        return f"{self.public_prefix}{reference}"

    async def quarantine(self, reference: ImageReference) -> None:
        """Move an image under the quarantine prefix."""
        if not self._exists(reference):
            raise BlobNotFound(reference)
        target = self._quarantine_path(reference)
        self._call("move", lambda: self._storage().move(reference, target))

    async def restore(self, reference: ImageReference) -> None:
        """Move an image back out of the quarantine prefix."""
        source = self._quarantine_path(reference)
        if not self._exists(source):
            raise BlobNotFound(reference, area="quarantine")
        self._call("move", lambda: self._storage().move(source, reference))

    async def purge(self, reference: ImageReference) -> None:
        """Remove an image from the bucket permanently."""
        quarantined = self._quarantine_path(reference)
        if self._exists(reference):
            path = reference
        elif self._exists(quarantined):
            path = quarantined
        else:
            raise BlobNotFound(reference, area="uploads or quarantine")
        self._call("remove", lambda: self._storage().remove([path]))

    async def list_quarantined(self) -> list[QuarantinedBlob]:
        """List every object under the quarantine prefix."""
        prefix = f"{self.quarantine_prefix}/"
        return [
            QuarantinedBlob(reference=path[len(prefix) :], modified_at=modified_at)
            for path, modified_at in self._walk(self.quarantine_prefix)
        ]

    def _walk(self, folder: str) -> list[tuple[str, datetime]]:
        """Recursively list files below a folder."""
        files: list[tuple[str, datetime]] = []
        offset = 0
        while True:
            page = self._call(
                "list",
                lambda: self._storage().list(
                    folder,
                    {
                        "limit": _PAGE_SIZE,
                        "offset": offset,
                        "sortBy": {"column": "name", "order": "asc"},
                    },
                ),
            )
            for item in page or []:
                name = item.get("name")
                if not name:
                    continue
                path = f"{folder}/{name}"
                if item.get("metadata") is None:
                    files.extend(self._walk(path))
                else:
                    try:
                        modified_at = _modified_at(item)
                    except ValueError:
                        _logger.warning("Skipping %s with unreadable timestamp", path)
                        continue
                    files.append((path, modified_at))
            if not page or len(page) < _PAGE_SIZE:
                return files
            offset += _PAGE_SIZE

    def _exists(self, path: str) -> bool:
        folder, _, name = path.rpartition("/")
        items = self._call(
            "list",
            lambda: self._storage().list(folder, {"limit": _PAGE_SIZE, "search": name}),
        )
        return any(
            item.get("name") == name and item.get("metadata") is not None
            for item in items or []
        )

    def _quarantine_path(self, reference: ImageReference) -> str:
        return f"{self.quarantine_prefix}/{reference}"

    def _storage(self) -> Any:
        return self.client.storage.from_(self.bucket)

    def _call(self, action: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except Exception as exc:
            raise BlobStoreError(f"Supabase storage {action} failed") from exc


def _modified_at(item: dict[str, Any]) -> datetime:
    """Return the last-modified time of a storage list entry."""
    metadata = item.get("metadata") or {}
    raw = item.get("updated_at") or metadata.get("lastModified") or item.get(
        "created_at"
    )
    if not raw:
        return datetime.now(tz=UTC)
    parsed = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
