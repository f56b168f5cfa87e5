"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import Client, create_client

from world_journal.adapters.local_blob_store import LocalBlobStore
from world_journal.adapters.supabase_blob_store import SupabaseBlobStore
from world_journal.adapters.supabase_waypoint_repository import (
    SupabaseWaypointRepository,
)
from world_journal.config import Settings
from world_journal.services.images import BlobStore
from world_journal.services.retention import RetentionSweeper
from world_journal.services.waypoints import WaypointService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    waypoint_service: WaypointService
    retention_sweeper: RetentionSweeper


def build_blob_store(settings: Settings, supabase_client: Client) -> BlobStore:
    """Create the blob store selected by settings."""
    if settings.blob_backend == "local":
        return LocalBlobStore.create(
            uploads_dir=settings.uploads_dir,
            deleted_dir=settings.deleted_uploads_dir,
            public_base_url=settings.public_base_url,
        )
    return SupabaseBlobStore(
        client=supabase_client,
        supabase_url=settings.supabase_url,
        bucket=settings.storage_bucket,
        quarantine_prefix=settings.quarantine_prefix,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    blob_store = build_blob_store(resolved_settings, supabase_client)
    waypoint_service = WaypointService(
        repository=SupabaseWaypointRepository(supabase_client),
        blob_store=blob_store,
        image_delete_mode=resolved_settings.image_delete_mode,
        max_upload_files=resolved_settings.max_upload_files,
    )
    retention_sweeper = RetentionSweeper(
        blob_store=blob_store,
        retention=resolved_settings.retention_window,
    )
    return AppContainer(
        settings=resolved_settings,
        waypoint_service=waypoint_service,
        retention_sweeper=retention_sweeper,
    )
