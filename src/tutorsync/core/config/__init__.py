"""Pydantic configuration models, re-exported for convenience."""

from tutorsync.core.config.execution import RetryPolicy, TimeoutConfig
from tutorsync.core.config.observability import (
    ConnectivityConfig,
    LogConfig,
    NotificationConfig,
)
from tutorsync.core.config.settings import TutorsyncConfig
from tutorsync.core.config.store import StoreConfig

__all__ = [
    "ConnectivityConfig",
    "LogConfig",
    "NotificationConfig",
    "RetryPolicy",
    "StoreConfig",
    "TimeoutConfig",
    "TutorsyncConfig",
]
