"""Rich output helpers for the tutorsync CLI."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from tutorsync.core.status import JobStatus
from tutorsync.execution import JobResult

console = Console()

STATUS_COLORS: dict[JobStatus, str] = {
    JobStatus.PENDING: "yellow",
    JobStatus.PROCESSING: "blue",
    JobStatus.COMPLETED: "green",
    JobStatus.FAILED: "red",
}


def format_status(status: JobStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def render_job_result(result: JobResult, title: str) -> Table:
    """Table with one row per step output, plus the final status."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Step")
    table.add_column("Output")
    for step, output in result.outputs.items():
        if isinstance(output, bytes):
            summary = f"{len(output)} bytes"
        elif isinstance(output, list):
            summary = f"{len(output)} items"
        else:
            summary = str(output)[:60]
        table.add_row(step, summary)
    table.caption = (
        f"job {result.job_id}: {format_status(result.status)} "
        f"in {result.duration_seconds:.2f}s"
    )
    return table
