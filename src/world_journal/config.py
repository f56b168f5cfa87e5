"""Application configuration."""

import os
from datetime import timedelta
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    blob_backend: Literal["supabase", "local"] = "supabase"
    storage_bucket: str = "images"
    quarantine_prefix: str = "deleted"
    uploads_dir: str = "uploads"
    deleted_uploads_dir: str = "deleted_uploads"
    public_base_url: str = "http://localhost:3001"
    retention_days: int = Field(default=7, ge=0)
    sweep_interval_seconds: int = Field(default=86400, ge=0)
    image_delete_mode: Literal["quarantine", "purge"] = "quarantine"
    max_upload_files: int = Field(default=10, ge=1)
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def retention_window(self) -> timedelta:
        """Return how long quarantined images are kept."""
        return timedelta(days=self.retention_days)
