"""Logging, notification and connectivity settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class LogConfig(BaseModel):
    """Structured logging settings passed to `configure_logging()`."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="json for structured, console for human-readable, "
        "both for console to stderr and JSON to file",
    )
    file_path: Path | None = Field(default=None)
    max_file_size_mb: int = Field(default=20, gt=0, le=1000)
    backup_count: int = Field(default=3, ge=0, le=100)

    @model_validator(mode="after")
    def _require_file_for_both(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError("file_path is required when format is 'both'")
        return self


class NotificationConfig(BaseModel):
    """Where user-facing notifications are delivered."""

    sinks: list[Literal["console", "log"]] = Field(
        default_factory=lambda: ["console"],
        description="console renders with rich; log writes structured events",
    )


class ConnectivityConfig(BaseModel):
    """Connectivity monitor behavior."""

    quiet: bool = Field(default=False, description="Suppress online/offline notifications")
    check_store_on_reconnect: bool = Field(
        default=True,
        description="Ping the store when coming back online and report the result",
    )
