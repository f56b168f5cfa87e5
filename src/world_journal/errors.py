"""Error types raised by the World Journal services and adapters."""


class WorldJournalError(Exception):
    """Base class for application errors."""


class ValidationError(WorldJournalError):
    """A required field is missing or a value is out of range."""


class NotFoundError(WorldJournalError):
    """The requested waypoint or image does not exist."""


class WaypointNotFound(NotFoundError):
    """No waypoint exists for the given id."""

    def __init__(self, waypoint_id: object) -> None:
        super().__init__(f"Waypoint not found: {waypoint_id}")
        self.waypoint_id = waypoint_id


class BlobNotFound(NotFoundError):
    """No blob exists for the reference in the expected area."""

    def __init__(self, reference: str, area: str = "uploads") -> None:
        super().__init__(f"Image not found in {area}: {reference}")
        self.reference = reference
        self.area = area


class UnsupportedMediaType(WorldJournalError):
    """Upload content type is not an allowed image type."""

    def __init__(self, content_type: str | None) -> None:
        super().__init__(f"Unsupported media type: {content_type or 'unknown'}")
        self.content_type = content_type


class StorageError(WorldJournalError):
    """The waypoint store failed or rejected an operation."""


class BlobStoreError(WorldJournalError):
    """The image store failed or rejected an operation."""
