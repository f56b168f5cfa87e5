"""Filesystem implementation of the image blob store."""

import asyncio
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from uuid import UUID

import aiofiles
import aiofiles.os

from world_journal.domain.waypoints import ImageReference, QuarantinedBlob
from world_journal.errors import BlobNotFound, BlobStoreError
from world_journal.services.images import BlobStore, build_reference, parse_reference


@dataclass
class LocalBlobStore(BlobStore):
    """Keeps images under uploads/ and soft-deleted ones under deleted_uploads/."""

    uploads_dir: Path
    deleted_dir: Path
    public_base_url: str

    @classmethod
    def create(
        cls, uploads_dir: str | Path, deleted_dir: str | Path, public_base_url: str
    ) -> "LocalBlobStore":
        """Create the store, making sure both directories exist."""
        store = cls(
            uploads_dir=Path(uploads_dir),
            deleted_dir=Path(deleted_dir),
            public_base_url=public_base_url.rstrip("/"),
        )
        store.uploads_dir.mkdir(parents=True, exist_ok=True)
        store.deleted_dir.mkdir(parents=True, exist_ok=True)
        return store

    @property
    def public_prefix(self) -> str:
        """Public URL prefix of served uploads."""
        return f"{self.public_base_url}/uploads/"

    def normalize(self, value: str) -> ImageReference:
        """Strip the uploads URL from a reference."""
        return parse_reference(value, self.public_prefix)

    async def put(
        self, data: bytes, content_type: str | None, waypoint_id: UUID
    ) -> ImageReference:
        """Write image bytes to the uploads directory."""
        reference = build_reference(waypoint_id, content_type)
        path = self.uploads_dir / reference
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(path, "wb") as handle:
                await handle.write(data)
        except OSError as exc:
            raise BlobStoreError(f"Failed to write image {reference}") from exc
        return reference

    async def resolve(self, reference: ImageReference) -> str:
        """Return the served URL of an image in uploads/."""
        if not await aiofiles.os.path.isfile(self.uploads_dir / reference):
            raise BlobNotFound(reference)
        return f"{self.public_prefix}{reference}"

    async def quarantine(self, reference: ImageReference) -> None:
        """Move an image into deleted_uploads/ and restart its retention clock."""
        target = self.deleted_dir / reference
        await self._move(self.uploads_dir / reference, target, reference, "uploads")
        try:
            await asyncio.to_thread(os.utime, target)
        except OSError as exc:
            raise BlobStoreError(f"Failed to touch image {reference}") from exc

    async def restore(self, reference: ImageReference) -> None:
        """Move an image from deleted_uploads/ back into uploads/."""
        await self._move(
            self.deleted_dir / reference,
            self.uploads_dir / reference,
            reference,
            "quarantine",
        )

    async def purge(self, reference: ImageReference) -> None:
        """Delete an image from whichever directory holds it."""
        for path in (self.uploads_dir / reference, self.deleted_dir / reference):
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise BlobStoreError(f"Failed to delete image {reference}") from exc
            return
        raise BlobNotFound(reference, area="uploads or quarantine")

    async def list_quarantined(self) -> list[QuarantinedBlob]:
        """List files under deleted_uploads/ with their modification times."""
        try:
            return await asyncio.to_thread(self._scan_quarantine)
        except OSError as exc:
            raise BlobStoreError("Failed to list quarantined images") from exc

    def _scan_quarantine(self) -> list[QuarantinedBlob]:
        blobs = []
        for path in sorted(self.deleted_dir.rglob("*")):
            if not path.is_file():
                continue
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                continue
            modified_at = datetime.fromtimestamp(mtime, tz=UTC)
            blobs.append(
                QuarantinedBlob(
                    reference=path.relative_to(self.deleted_dir).as_posix(),
                    modified_at=modified_at,
                )
            )
        return blobs

    async def _move(
        self, source: Path, target: Path, reference: ImageReference, area: str
    ) -> None:
        if not await aiofiles.os.path.isfile(source):
            raise BlobNotFound(reference, area=area)
        try:
            await aiofiles.os.makedirs(target.parent, exist_ok=True)
            await aiofiles.os.replace(source, target)
        except FileNotFoundError as exc:
            raise BlobNotFound(reference, area=area) from exc
        except OSError as exc:
            raise BlobStoreError(f"Failed to move image {reference}") from exc
