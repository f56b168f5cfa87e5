"""Journal editing session with reversible image removal."""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from world_journal.domain.waypoints import ImageReference, ImageUpload, Waypoint
from world_journal.errors import ValidationError
from world_journal.services.waypoints import WaypointService

_logger = logging.getLogger(__name__)


@dataclass
class JournalDraft:
    """Tracks staged uploads and pending removals until save or abandon.

    Removing a committed image quarantines it right away but leaves the stored
    record untouched. Saving commits uploads and removals in one record update.
    Abandoning restores every pending removal best-effort; restore failures are
    logged and cannot be reported back to the user.
    """

    service: WaypointService
    waypoint: Waypoint
    journal_text: str | None = None
    pending_add: list[ImageUpload] = field(default_factory=list)
    pending_remove: list[ImageReference] = field(default_factory=list)

    @classmethod
    def open(cls, service: WaypointService, waypoint_id: UUID) -> "JournalDraft":
        """Start a draft from the stored state of a waypoint."""
        waypoint = service.get_waypoint(waypoint_id)
        return cls(
            service=service, waypoint=waypoint, journal_text=waypoint.journal_text
        )

    @property
    def committed(self) -> tuple[ImageReference, ...]:
        """Images stored on the waypoint when the draft was opened or saved."""
        return self.waypoint.images

    @property
    def visible_images(self) -> list[ImageReference]:
        """Committed images minus the ones pending removal."""
        return [ref for ref in self.committed if ref not in self.pending_remove]

    @property
    def has_changes(self) -> bool:
        """Return true when saving would change the waypoint."""
        return bool(
            self.pending_add
            or self.pending_remove
            or self.journal_text != self.waypoint.journal_text
        )

    def stage(self, upload: ImageUpload) -> None:
        """Queue a file for upload on the next save."""
        self.pending_add.append(upload)

    async def remove(self, reference: ImageReference) -> None:
        """Quarantine a committed image and mark it for removal."""
        if reference not in self.committed:
            raise ValidationError(f"Image {reference} is not on this waypoint")
        if reference in self.pending_remove:
            return
        await self.service.quarantine_image(reference)
        self.pending_remove.append(reference)

    async def save(self) -> Waypoint:
        """Upload staged files and commit removals with the journal text."""
        self.waypoint = await self.service.save_journal(
            self.waypoint.id,
            self.journal_text,
            uploads=list(self.pending_add),
            removed=list(self.pending_remove),
        )
        self.journal_text = self.waypoint.journal_text
        self._clear()
        return self.waypoint

    async def abandon(self) -> list[ImageReference]:
        """Discard pending changes, restoring quarantined images."""
        restored = await self.service.abandon_removals(self.pending_remove)
        if len(restored) != len(self.pending_remove):
            _logger.warning(
                "Abandoned draft for waypoint %s with %s unrestored image(s)",
                self.waypoint.id,
                len(self.pending_remove) - len(restored),
            )
        self.journal_text = self.waypoint.journal_text
        self._clear()
        return restored

    def _clear(self) -> None:
        self.pending_add = []
        self.pending_remove = []
