"""Waypoint lifecycle and image reconciliation."""

import logging
import math
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol
from uuid import UUID

from world_journal.domain.waypoints import ImageReference, ImageUpload, Waypoint
from world_journal.errors import (
    BlobNotFound,
    StorageError,
    ValidationError,
    WaypointNotFound,
    WorldJournalError,
)
from world_journal.services.images import BlobStore, extension_for, owner_of

_logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset(
    {"lat", "lng", "title", "description", "primary_image", "images", "journal_text"}
)


class WaypointRepository(Protocol):
    """Persistence interface for waypoint records."""

    def list_waypoints(self) -> list[Waypoint]:
        """Return all waypoints."""

    def get_waypoint(self, waypoint_id: UUID) -> Waypoint | None:
        """Return a waypoint by id, if present."""

    def create_waypoint(self, fields: Mapping[str, object]) -> Waypoint:
        """Insert a waypoint and return it with its generated id."""

    def update_waypoint(
        self, waypoint_id: UUID, fields: Mapping[str, object]
    ) -> Waypoint | None:
        """Replace the given fields and return the updated waypoint."""

    def delete_waypoint(self, waypoint_id: UUID) -> bool:
        """Delete a waypoint, returning false when it did not exist."""


@dataclass
class WaypointService:
    """Coordinates waypoint records with their image blobs."""

    repository: WaypointRepository
    blob_store: BlobStore
    image_delete_mode: Literal["quarantine", "purge"] = "quarantine"
    max_upload_files: int = 10

    def list_waypoints(self) -> list[Waypoint]:
        """Return all waypoints."""
        return self.repository.list_waypoints()

    def get_waypoint(self, waypoint_id: UUID) -> Waypoint:
        """Return a waypoint or raise WaypointNotFound."""
        waypoint = self.repository.get_waypoint(waypoint_id)
        if waypoint is None:
            raise WaypointNotFound(waypoint_id)
        return waypoint

    def create_waypoint(
        self,
        lat: object,
        lng: object,
        title: object,
        description: str | None = None,
    ) -> Waypoint:
        """Validate and persist a new waypoint with no images."""
        fields: dict[str, object] = {
            "lat": _validate_coordinate("lat", lat, 90.0),
            "lng": _validate_coordinate("lng", lng, 180.0),
            "title": _validate_title(title),
            "description": description,
            "primary_image": None,
            "images": [],
            "journal_text": None,
        }
        waypoint = self.repository.create_waypoint(fields)
        _logger.info("Created waypoint %s", waypoint.id)
        return waypoint

    async def update_waypoint(
        self, waypoint_id: UUID, changes: Mapping[str, object]
    ) -> Waypoint:
        """Apply a partial update and quarantine images it drops."""
        current = self.get_waypoint(waypoint_id)
        fields = self._validate_changes(waypoint_id, changes)
        if not fields:
            return current
        await self._require_stored_images(current, fields)
        updated = self.repository.update_waypoint(waypoint_id, fields)
        if updated is None:
            raise WaypointNotFound(waypoint_id)
        kept = set(updated.owned_images())
        dropped = [ref for ref in current.owned_images() if ref not in kept]
        await self._discard_images(dropped, mode="quarantine")
        return updated

    async def delete_waypoint(self, waypoint_id: UUID) -> None:
        """Clean up a waypoint's images, then delete its record."""
        waypoint = self.get_waypoint(waypoint_id)
        await self._discard_images(waypoint.owned_images(), mode=self.image_delete_mode)
        if not self.repository.delete_waypoint(waypoint_id):
            raise WaypointNotFound(waypoint_id)
        _logger.info("Deleted waypoint %s", waypoint_id)

    async def upload_images(
        self, waypoint_id: UUID, uploads: Sequence[ImageUpload]
    ) -> list[ImageReference]:
        """Store uploaded images for an existing waypoint."""
        self._validate_uploads(uploads)
        self.get_waypoint(waypoint_id)
        return await self._store_uploads(waypoint_id, uploads)

    async def save_journal(
        self,
        waypoint_id: UUID,
        journal_text: str | None = None,
        uploads: Sequence[ImageUpload] = (),
        removed: Collection[str] = (),
    ) -> Waypoint:
        """Commit pending uploads and removals together with the journal text.

        A journal_text of None keeps the stored text.
        """
        if uploads:
            self._validate_uploads(uploads)
        removed_refs = {self.blob_store.normalize(value) for value in removed}
        current = self.get_waypoint(waypoint_id)
        uploaded = await self._store_uploads(waypoint_id, uploads) if uploads else []
        images = [ref for ref in current.images if ref not in removed_refs]
        images.extend(uploaded)
        fields: dict[str, object] = {"images": images}
        if journal_text is not None:
            fields["journal_text"] = journal_text
        if current.primary_image in removed_refs:
            fields["primary_image"] = None
        try:
            updated = self.repository.update_waypoint(waypoint_id, fields)
        except StorageError:
            await self._discard_images(uploaded, mode="purge")
            raise
        if updated is None:
            await self._discard_images(uploaded, mode="purge")
            raise WaypointNotFound(waypoint_id)
        stale = [ref for ref in current.owned_images() if ref in removed_refs]
        await self._discard_images(stale, mode="quarantine")
        _logger.info(
            "Saved journal for waypoint %s (added=%s, removed=%s)",
            waypoint_id,
            len(uploaded),
            len(stale),
        )
        return updated

    async def quarantine_image(self, value: str) -> ImageReference:
        """Soft-delete an image so it is no longer served."""
        reference = self.blob_store.normalize(value)
        await self.blob_store.quarantine(reference)
        _logger.info("Quarantined image %s", reference)
        return reference

    async def restore_image(self, value: str) -> ImageReference:
        """Move a quarantined image back into the servable area."""
        reference = self.blob_store.normalize(value)
        await self.blob_store.restore(reference)
        _logger.info("Restored image %s", reference)
        return reference

    async def resolve_image(self, value: str) -> str:
        """Return the URL of a current image."""
        return await self.blob_store.resolve(self.blob_store.normalize(value))

    async def abandon_removals(self, values: Sequence[str]) -> list[ImageReference]:
        """Restore quarantined images best-effort, returning those restored."""
        restored: list[ImageReference] = []
        for value in values:
            try:
                restored.append(await self.restore_image(value))
            except WorldJournalError as exc:
                _logger.warning("Failed to restore image %s: %s", value, exc)
        return restored

    def _validate_changes(
        self, waypoint_id: UUID, changes: Mapping[str, object]
    ) -> dict[str, object]:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        fields = dict(changes)
        if "lat" in fields:
            fields["lat"] = _validate_coordinate("lat", fields["lat"], 90.0)
        if "lng" in fields:
            fields["lng"] = _validate_coordinate("lng", fields["lng"], 180.0)
        if "title" in fields:
            fields["title"] = _validate_title(fields["title"])
        if "images" in fields:
            raw_images = fields["images"]
            if not isinstance(raw_images, Sequence) or isinstance(raw_images, str):
                raise ValidationError("images must be a list of references")
            images = [self._owned_reference(waypoint_id, value) for value in raw_images]
            if len(set(images)) != len(images):
                raise ValidationError("images must not contain duplicates")
            fields["images"] = images
        if fields.get("primary_image") is not None:
            fields["primary_image"] = self._owned_reference(
                waypoint_id, fields["primary_image"]
            )
        return fields

    async def _require_stored_images(
        self, current: Waypoint, fields: Mapping[str, object]
    ) -> None:
        """Reject newly referenced images that have no servable blob."""
        known = set(current.owned_images())
        candidates = list(fields.get("images") or [])
        if fields.get("primary_image") is not None:
            candidates.append(fields["primary_image"])
        for reference in candidates:
            if reference in known:
                continue
            try:
                await self.blob_store.resolve(reference)
            except BlobNotFound as exc:
                raise ValidationError(
                    f"Image {reference} has not been uploaded"
                ) from exc
            known.add(reference)

    def _owned_reference(self, waypoint_id: UUID, value: object) -> ImageReference:
        if not isinstance(value, str):
            raise ValidationError("Image references must be strings")
        reference = self.blob_store.normalize(value)
        if owner_of(reference) != waypoint_id:
            raise ValidationError(f"Image {reference} belongs to another waypoint")
        return reference

    def _validate_uploads(self, uploads: Sequence[ImageUpload]) -> None:
        if not uploads:
            raise ValidationError("No files uploaded")
        if len(uploads) > self.max_upload_files:
            raise ValidationError(
                f"At most {self.max_upload_files} files can be uploaded at once"
            )
        for upload in uploads:
            extension_for(upload.content_type)
            if not upload.data:
                raise ValidationError("Uploaded file is empty")

    async def _store_uploads(
        self, waypoint_id: UUID, uploads: Sequence[ImageUpload]
    ) -> list[ImageReference]:
        stored: list[ImageReference] = []
        try:
            for upload in uploads:
                reference = await self.blob_store.put(
                    upload.data, upload.content_type, waypoint_id
                )
                stored.append(reference)
        except WorldJournalError:
            await self._discard_images(stored, mode="purge")
            raise
        _logger.info("Stored %s image(s) for waypoint %s", len(stored), waypoint_id)
        return stored

    async def _discard_images(
        self,
        references: Sequence[ImageReference],
        mode: Literal["quarantine", "purge"],
    ) -> None:
        """Quarantine or purge images, logging failures without raising."""
        for reference in references:
            try:
                if mode == "purge":
                    await self.blob_store.purge(reference)
                else:
                    await self.blob_store.quarantine(reference)
            except BlobNotFound:
                _logger.info("Image %s already removed from uploads", reference)
            except WorldJournalError:
                _logger.exception("Failed to %s image %s", mode, reference)


def _validate_coordinate(name: str, value: object, limit: float) -> float:
    if value is None:
        raise ValidationError(f"{name} is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    number = float(value)
    if not math.isfinite(number) or not -limit <= number <= limit:
        raise ValidationError(f"{name} must be between {-limit:g} and {limit:g}")
    return number


def _validate_title(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("title is required")
    return value.strip()
