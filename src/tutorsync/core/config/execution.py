"""Retry and timeout configuration models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from tutorsync.core.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
    DEFAULT_INITIAL_DELAY_MS,
    DEFAULT_JITTER_MS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)


class RetryPolicy(BaseModel):
    """Exponential backoff policy for one invocation.

    The delay before retry ``n`` (0-based) is
    ``initial_delay_ms * backoff_factor ** n`` plus uniform jitter in
    ``[0, jitter_ms)``.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="Retries after the first attempt"
    )
    initial_delay_ms: int = Field(
        default=DEFAULT_INITIAL_DELAY_MS, gt=0, description="Delay before the first retry"
    )
    backoff_factor: float = Field(
        default=DEFAULT_BACKOFF_FACTOR, gt=1, description="Multiplier per retry"
    )
    jitter_ms: int = Field(
        default=DEFAULT_JITTER_MS, ge=0, description="Upper bound (exclusive) of added jitter"
    )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class TimeoutConfig(BaseModel):
    """Time bounds for remote calls, in seconds."""

    request_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        description="Bound for ordinary reads and writes",
    )
    download_seconds: float = Field(
        default=DEFAULT_DOWNLOAD_TIMEOUT_SECONDS,
        gt=0,
        description="Bound for blob downloads, which may hang upstream",
    )
