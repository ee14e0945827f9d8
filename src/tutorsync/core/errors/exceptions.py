"""Exceptions raised by the resilience layer."""

from __future__ import annotations

from typing import Any


class ResilienceError(Exception):
    """Base class for errors raised by tutorsync itself."""


class TimedOut(ResilienceError, TimeoutError):
    """An operation did not settle within its time bound.

    The underlying operation may still be running; see
    `tutorsync.execution.timeout` for the cancellation contract.
    """

    def __init__(self, timeout_seconds: float, operation: str | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.operation = operation
        label = f"{operation} " if operation else ""
        super().__init__(f"{label}timed out after {int(timeout_seconds * 1000)}ms")


class StoreError(ResilienceError):
    """A remote store call returned a non-null error."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        details: Any = None,
    ) -> None:
        self.status = status
        self.details = details
        super().__init__(message)


class JobFailed(ResilienceError):
    """A job step failed after its retry budget, or terminally.

    Attributes:
        job_id: The job whose status was set to failed.
        step: Name of the step that failed.
        cause: The error observed on the last attempt.
    """

    def __init__(self, job_id: str, step: str, cause: BaseException) -> None:
        self.job_id = job_id
        self.step = step
        self.cause = cause
        super().__init__(f"job {job_id} failed at step '{step}': {cause}")


class IllegalTransition(ResilienceError):
    """A status write would move a job backwards or out of a final state."""

    def __init__(self, job_id: str, current: str, target: str) -> None:
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"job {job_id}: illegal status transition {current} -> {target}")


class UnknownStatus(ResilienceError, ValueError):
    """A job row holds a status value outside the known set."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unknown job status: {value!r}")


class OfflineError(ResilienceError):
    """The guard refused to start a call because the device is offline."""

    def __init__(self, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__("network unavailable: device is offline")


class ConfigError(ResilienceError):
    """Configuration could not be loaded or validated."""
