"""Request and response models for the HTTP API."""

from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from world_journal.domain.waypoints import Waypoint


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WaypointCreate(_CamelModel):
    """Payload for creating a waypoint."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    title: str = Field(min_length=1)
    description: str | None = None


class WaypointUpdate(_CamelModel):
    """Partial update; only fields present in the payload are changed."""

    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    primary_image: str | None = None
    images: list[str] | None = None
    journal_text: str | None = None

    def changes(self) -> dict[str, object]:
        """Return the fields explicitly set by the client."""
        return self.model_dump(exclude_unset=True)


class WaypointOut(_CamelModel):
    """Waypoint as returned to clients."""

    id: UUID
    lat: float
    lng: float
    title: str
    description: str | None
    primary_image: str | None
    images: list[str]
    journal_text: str | None

    @classmethod
    def from_domain(cls, waypoint: Waypoint) -> "WaypointOut":
        """Build the response model from a domain waypoint."""
        return cls(
            id=waypoint.id,
            lat=waypoint.lat,
            lng=waypoint.lng,
            title=waypoint.title,
            description=waypoint.description,
            primary_image=waypoint.primary_image,
            images=list(waypoint.images),
            journal_text=waypoint.journal_text,
        )


class ImageRequest(BaseModel):
    """Identifies an image by reference or by its public URL."""

    reference: str = Field(
        min_length=1, validation_alias=AliasChoices("reference", "imageUrl")
    )


class UploadResult(BaseModel):
    """References and URLs of newly stored images."""

    references: list[str]
    urls: list[str]


class MessageOut(BaseModel):
    """Plain acknowledgement."""

    message: str
    reference: str | None = None
