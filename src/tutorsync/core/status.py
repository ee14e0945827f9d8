"""Job status model.

A job row moves forward only:

    pending -> processing -> completed
                          -> failed

Nothing leaves completed or failed; resets are done by hand, outside this
layer.
"""

from __future__ import annotations

from enum import Enum

from tutorsync.core.errors import UnknownStatus


class JobStatus(str, Enum):
    """Persisted status of a processing job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_final(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    def can_transition_to(self, target: JobStatus) -> bool:
        """Whether a write from this status to `target` is allowed."""
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


# Older rows were written with "error" instead of "failed".
_LEGACY_ALIASES: dict[str, JobStatus] = {"error": JobStatus.FAILED}


def parse_status(value: str | None) -> JobStatus:
    """Read a persisted status value; a missing status means pending.

    Raises:
        UnknownStatus: For values that are not a known status.
    """
    if value is None or value == "":
        return JobStatus.PENDING
    if value in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[value]
    try:
        return JobStatus(value)
    except ValueError:
        raise UnknownStatus(value) from None
