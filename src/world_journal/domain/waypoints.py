"""Domain models for waypoints and their images."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

ImageReference = str


@dataclass(frozen=True)
class Waypoint:
    """A geotagged journal entry."""

    id: UUID
    lat: float
    lng: float
    title: str
    description: str | None = None
    primary_image: ImageReference | None = None
    images: tuple[ImageReference, ...] = ()
    journal_text: str | None = None

    def owned_images(self) -> list[ImageReference]:
        """Return every image reference held by the waypoint, primary first."""
        owned = list(self.images)
        if self.primary_image and self.primary_image not in owned:
            owned.insert(0, self.primary_image)
        return owned


@dataclass(frozen=True)
class ImageUpload:
    """Raw image bytes waiting to be stored."""

    data: bytes
    content_type: str | None
    filename: str | None = None


@dataclass(frozen=True)
class QuarantinedBlob:
    """A soft-deleted image waiting for the retention sweep."""

    reference: ImageReference
    modified_at: datetime


@dataclass(frozen=True)
class SweepReport:
    """Outcome of a single retention sweep."""

    purged: list[ImageReference] = field(default_factory=list)
    kept: list[ImageReference] = field(default_factory=list)
    failed: list[ImageReference] = field(default_factory=list)
