"""Resilience primitives and the job runner."""

from tutorsync.execution.guard import OperationGuard
from tutorsync.execution.jobs import (
    JobResult,
    JobRunner,
    JobStatusWriter,
    JobStep,
    StepContext,
)
from tutorsync.execution.retry import compute_delay, run_with_retry
from tutorsync.execution.timeout import run_with_timeout

__all__ = [
    "JobResult",
    "JobRunner",
    "JobStatusWriter",
    "JobStep",
    "OperationGuard",
    "StepContext",
    "compute_delay",
    "run_with_retry",
    "run_with_timeout",
]
