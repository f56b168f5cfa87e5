"""Image upload, quarantine and restore endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse

from world_journal.api.schemas import ImageRequest, MessageOut, UploadResult
from world_journal.api.waypoints import read_upload

if TYPE_CHECKING:
    from world_journal.containers import AppContainer

router = APIRouter(prefix="/api", tags=["images"])


@router.post("/upload")
async def upload_images(
    request: Request,
    waypoint_id: UUID = Form(alias="waypointId"),
    images: list[UploadFile] | None = File(default=None),
) -> UploadResult:
    """Store one or more images for a waypoint without committing them."""
    container: AppContainer = request.app.state.container
    service = container.waypoint_service
    uploads = [await read_upload(upload) for upload in images or []]
    references = await service.upload_images(waypoint_id, uploads)
    urls = [await service.resolve_image(reference) for reference in references]
    return UploadResult(references=references, urls=urls)


@router.delete("/delete-image")
async def quarantine_image(payload: ImageRequest, request: Request) -> MessageOut:
    """Soft-delete an image until the journal is saved or abandoned."""
    container: AppContainer = request.app.state.container
    reference = await container.waypoint_service.quarantine_image(payload.reference)
    return MessageOut(message="Image moved to quarantine", reference=reference)


@router.post("/restore-image")
async def restore_image(payload: ImageRequest, request: Request) -> MessageOut:
    """Bring a quarantined image back."""
    container: AppContainer = request.app.state.container
    reference = await container.waypoint_service.restore_image(payload.reference)
    return MessageOut(message="Image restored", reference=reference)


@router.get("/images/{reference:path}")
async def resolve_image(reference: str, request: Request) -> RedirectResponse:
    """Redirect to the current URL of an image."""
    container: AppContainer = request.app.state.container
    url = await container.waypoint_service.resolve_image(reference)
    return RedirectResponse(url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
