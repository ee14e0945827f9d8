"""Remote store connection settings."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from tutorsync.core.constants import DEFAULT_STATUS_COLUMN, DEFAULT_STORAGE_BUCKET
from tutorsync.core.errors import ConfigError


class StoreConfig(BaseModel):
    """Where the platform's data and blob storage live.

    The service key is never stored in config files; only the name of the
    environment variable holding it.
    """

    url: str | None = Field(default=None, description="Project base URL")
    url_env: str = Field(default="SUPABASE_URL", description="Env var with the base URL")
    service_key_env: str = Field(
        default="SUPABASE_SERVICE_ROLE_KEY",
        description="Env var with the service role key",
    )
    storage_bucket: str = Field(default=DEFAULT_STORAGE_BUCKET)
    status_column: str = Field(default=DEFAULT_STATUS_COLUMN)
    documents_table: str = Field(default="documents")
    document_content_table: str = Field(default="document_content")
    videos_table: str = Field(default="videos")
    video_transcripts_table: str = Field(default="video_transcripts")
    http_timeout_seconds: float = Field(
        default=8.0, gt=0, description="Transport-level timeout for each HTTP request"
    )

    def resolve_url(self) -> str:
        url = self.url or os.environ.get(self.url_env, "")
        if not url:
            raise ConfigError(f"store url not configured (set url or ${self.url_env})")
        return url.rstrip("/")

    def resolve_service_key(self) -> str:
        key = os.environ.get(self.service_key_env, "")
        if not key:
            raise ConfigError(f"service key not configured (set ${self.service_key_env})")
        return key
