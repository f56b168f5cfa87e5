"""Waypoint CRUD and journal endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, File, Form, Request, Response, UploadFile, status

from world_journal.api.schemas import WaypointCreate, WaypointOut, WaypointUpdate
from world_journal.domain.waypoints import ImageUpload

if TYPE_CHECKING:
    from world_journal.containers import AppContainer

router = APIRouter(prefix="/api/waypoints", tags=["waypoints"])


@router.get("")
async def list_waypoints(request: Request) -> list[WaypointOut]:
    """Return every waypoint."""
    container: AppContainer = request.app.state.container
    waypoints = container.waypoint_service.list_waypoints()
    return [WaypointOut.from_domain(waypoint) for waypoint in waypoints]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_waypoint(payload: WaypointCreate, request: Request) -> WaypointOut:
    """Create a waypoint from lat, lng and title."""
    container: AppContainer = request.app.state.container
    waypoint = container.waypoint_service.create_waypoint(
        lat=payload.lat,
        lng=payload.lng,
        title=payload.title,
        description=payload.description,
    )
    return WaypointOut.from_domain(waypoint)


@router.get("/{waypoint_id}")
async def get_waypoint(waypoint_id: UUID, request: Request) -> WaypointOut:
    """Return a single waypoint."""
    container: AppContainer = request.app.state.container
    return WaypointOut.from_domain(container.waypoint_service.get_waypoint(waypoint_id))


@router.put("/{waypoint_id}")
async def update_waypoint(
    waypoint_id: UUID, payload: WaypointUpdate, request: Request
) -> WaypointOut:
    """Replace the fields present in the payload."""
    container: AppContainer = request.app.state.container
    waypoint = await container.waypoint_service.update_waypoint(
        waypoint_id, payload.changes()
    )
    return WaypointOut.from_domain(waypoint)


@router.delete("/{waypoint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_waypoint(waypoint_id: UUID, request: Request) -> Response:
    """Delete a waypoint along with its images."""
    container: AppContainer = request.app.state.container
    await container.waypoint_service.delete_waypoint(waypoint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{waypoint_id}/journal")
async def save_journal(
    waypoint_id: UUID,
    request: Request,
    journal_text: str | None = Form(default=None, alias="journalText"),
    removed: list[str] | None = Form(default=None),
    images: list[UploadFile] | None = File(default=None),
) -> WaypointOut:
    """Commit staged uploads and pending removals with the journal text."""
    container: AppContainer = request.app.state.container
    uploads = [await read_upload(upload) for upload in images or []]
    waypoint = await container.waypoint_service.save_journal(
        waypoint_id,
        journal_text,
        uploads=uploads,
        removed=removed or [],
    )
    return WaypointOut.from_domain(waypoint)


async def read_upload(upload: UploadFile) -> ImageUpload:
    """Read an uploaded file into memory."""
    return ImageUpload(
        data=await upload.read(),
        content_type=upload.content_type,
        filename=upload.filename,
    )
