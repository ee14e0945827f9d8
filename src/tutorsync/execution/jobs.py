"""Job status machine for long-running processing.

A job is a row in the remote store. `JobRunner.run_job()` drives it through
``pending -> processing -> completed | failed`` while executing named steps
in strict order:

1. write ``processing``;
2. run each step under the guard's retry policy (and its timeout, if the
   step declares one); a step never starts before the previous one settles;
3. on the first step that still fails, write ``failed`` and raise
   `JobFailed`; remaining steps are skipped;
4. otherwise write ``completed``.

Status writes that fail are logged and do not change the outcome. The row
may therefore lag behind what actually happened until a later write lands.

Only one `run_job` per job id may be active at a time; nothing here
enforces that.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from tutorsync.core.config import RetryPolicy
from tutorsync.core.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, DEFAULT_STATUS_COLUMN
from tutorsync.core.errors import IllegalTransition, JobFailed
from tutorsync.core.logging import ExecutionContext, get_logger, with_context
from tutorsync.core.status import JobStatus
from tutorsync.execution.guard import OperationGuard
from tutorsync.execution.retry import RetryHook
from tutorsync.execution.timeout import run_with_timeout
from tutorsync.store import RemoteStore

_logger = get_logger("jobs")


@dataclass
class StepContext:
    """Passed to every step: the job id and earlier steps' outputs."""

    job_id: str
    outputs: dict[str, Any] = field(default_factory=dict)

    def output(self, step: str) -> Any:
        """Return the output of an earlier step.

        Raises:
            KeyError: If that step has not run.
        """
        return self.outputs[step]


StepFn = Callable[[StepContext], Awaitable[Any]]


@dataclass(frozen=True)
class JobStep:
    """A named unit of remote work inside a job.

    Attributes:
        name: Unique within the job; reported in `JobFailed`.
        run: Coroutine function taking the StepContext. Called once per attempt.
        timeout_seconds: Bound for the step including its retries; set it for
            steps whose upstream may hang, such as downloads.
        policy: Overrides the runner's retry policy for this step.
    """

    name: str
    run: StepFn
    timeout_seconds: float | None = None
    policy: RetryPolicy | None = None


@dataclass
class JobResult:
    """Outcome of a completed job run."""

    job_id: str
    status: JobStatus
    outputs: dict[str, Any]
    duration_seconds: float
    status_persisted: bool = True
    """False if any status write during the run failed."""


class JobStatusWriter:
    """Writes one job's status column(s), forward-only.

    Tracks the last status this run reached; a write that would move
    backwards or out of a final status raises `IllegalTransition` before
    touching the store. Store failures are logged and reported as False.
    """

    def __init__(
        self,
        store: RemoteStore,
        table: str,
        job_id: str,
        *,
        columns: Sequence[str] = (DEFAULT_STATUS_COLUMN,),
        key: str = "id",
        current: JobStatus = JobStatus.PENDING,
        write_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._table = table
        self._job_id = job_id
        self._columns = tuple(columns)
        self._key = key
        self._write_timeout = write_timeout_seconds
        self._log = _logger.bind(table=table, job_id=job_id)
        self.status = current
        self.failed_writes = 0

    async def write(self, target: JobStatus) -> bool:
        """Move to `target` and persist it.

        Returns:
            True if the store accepted the write.

        Raises:
            IllegalTransition: `target` is not reachable from the current status.
        """
        if not self.status.can_transition_to(target):
            raise IllegalTransition(self._job_id, self.status.value, target.value)
        self.status = target

        values = {column: target.value for column in self._columns}
        try:
            result = await run_with_timeout(
                lambda: self._store.update_rows(self._table, {self._key: self._job_id}, values),
                self._write_timeout,
                name="status_write",
            )
            result.unwrap()
        except Exception as e:
            self.failed_writes += 1
            self._log.warning(
                "job_status_write_failed",
                status=target.value,
                error=str(e),
            )
            return False
        self._log.debug("job_status_written", status=target.value)
        return True


class JobRunner:
    """Runs jobs stored in one table.

    Args:
        store: Remote store holding the job rows.
        table: Job table, such as ``documents`` or ``videos``.
        guard: Retry/timeout wrapper for steps. Defaults to a silent guard
            with the standard policy (3 retries, 500ms initial delay,
            factor 2, 100ms jitter).
        status_columns: Columns that receive the status value.
        on_retry: Observer for step retries.
    """

    def __init__(
        self,
        store: RemoteStore,
        table: str,
        *,
        guard: OperationGuard | None = None,
        status_columns: Sequence[str] = (DEFAULT_STATUS_COLUMN,),
        on_retry: RetryHook | None = None,
    ) -> None:
        self._store = store
        self._table = table
        self._guard = guard or OperationGuard()
        self._status_columns = tuple(status_columns)
        self._on_retry = on_retry
        self._log = _logger.bind(table=table)

    async def run_job(
        self,
        job_id: str,
        steps: Sequence[JobStep],
        *,
        current_status: JobStatus = JobStatus.PENDING,
    ) -> JobResult:
        """Execute `steps` in order, persisting status transitions.

        Args:
            job_id: Primary key of the job row.
            steps: Steps with unique names.
            current_status: Status the row holds now.

        Returns:
            JobResult with status completed and each step's output.

        Raises:
            JobFailed: A step failed; ``failed`` was written (or attempted).
            IllegalTransition: The job is already completed or failed.
            ValueError: Step names are not unique.
        """
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ValueError(f"step names must be unique: {names}")

        writer = JobStatusWriter(
            self._store,
            self._table,
            job_id,
            columns=self._status_columns,
            current=current_status,
        )
        ctx = ExecutionContext(job_id=job_id, component="jobs")
        started = time.monotonic()

        with with_context(ctx):
            await writer.write(JobStatus.PROCESSING)
            self._log.info("job_started", steps=names)

            step_ctx = StepContext(job_id=job_id)
            for step in steps:
                with with_context(ctx.with_step(step.name)):
                    try:
                        output = await self._guard.call(
                            functools.partial(step.run, step_ctx),
                            name=step.name,
                            timeout_seconds=step.timeout_seconds,
                            policy=step.policy,
                            on_retry=self._on_retry,
                        )
                    except Exception as exc:
                        self._log.error("job_step_failed", error=str(exc))
                        await writer.write(JobStatus.FAILED)
                        raise JobFailed(job_id, step.name, exc) from exc
                    step_ctx.outputs[step.name] = output
                    self._log.debug("job_step_completed")

            await writer.write(JobStatus.COMPLETED)
            duration = time.monotonic() - started
            self._log.info(
                "job_completed",
                duration_seconds=round(duration, 3),
                status_persisted=writer.failed_writes == 0,
            )

        return JobResult(
            job_id=job_id,
            status=writer.status,
            outputs=dict(step_ctx.outputs),
            duration_seconds=duration,
            status_persisted=writer.failed_writes == 0,
        )
