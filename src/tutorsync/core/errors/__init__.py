"""Error classification and the resilience exception hierarchy."""

from tutorsync.core.errors.codes import ErrorCategory, ErrorCode
from tutorsync.core.errors.models import ClassifiedError
from tutorsync.core.errors.exceptions import (
    ConfigError,
    IllegalTransition,
    JobFailed,
    OfflineError,
    ResilienceError,
    StoreError,
    TimedOut,
    UnknownStatus,
)
from tutorsync.core.errors.classifier import (
    TRANSIENT_KINDS,
    TRANSIENT_PATTERNS,
    classify,
    is_transient,
)

__all__ = [
    "ErrorCategory",
    "ErrorCode",
    "ClassifiedError",
    "ConfigError",
    "IllegalTransition",
    "JobFailed",
    "OfflineError",
    "ResilienceError",
    "StoreError",
    "TimedOut",
    "UnknownStatus",
    "TRANSIENT_KINDS",
    "TRANSIENT_PATTERNS",
    "classify",
    "is_transient",
]
