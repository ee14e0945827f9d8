"""Commands that run one processing job.

These stand in for the platform's HTTP trigger: an operator (or a scheduled
task) invokes them once per uploaded object.

Exit codes:
  0: Job completed
  1: Job failed, the row was missing, already processed or had an unknown
     status, or the store was unreachable
  2: Configuration problem
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.markup import escape

from tutorsync.connectivity import ConnectivityMonitor, ManualConnectivitySource, create_monitor
from tutorsync.core.config import TutorsyncConfig
from tutorsync.core.errors import (
    ConfigError,
    IllegalTransition,
    JobFailed,
    OfflineError,
    StoreError,
    UnknownStatus,
)
from tutorsync.core.logging import get_logger
from tutorsync.execution import JobResult, OperationGuard
from tutorsync.notifications import create_notification_manager
from tutorsync.pipelines import DocumentProcessor, VideoProcessor
from tutorsync.pipelines.documents import summarize
from tutorsync.store import RemoteStore, RestStore

from ..helpers import configure_global_logging, load_config
from ..output import console, render_job_result

_logger = get_logger("cli.process")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to YAML configuration",
    exists=True,
    readable=True,
)


def build_store(config: TutorsyncConfig) -> RemoteStore:
    """Create the store used by commands. Tests patch this."""
    return RestStore.from_config(config.store)


def _log_connectivity(online: bool) -> None:
    _logger.info("connectivity_changed", online=online)


async def _check_connectivity(
    store: RemoteStore,
    source: ManualConnectivitySource,
    monitor: ConnectivityMonitor,
) -> None:
    """Ping the store once before the job and feed the result to the monitor.

    A CLI process has no platform connectivity events, so the store ping
    stands in for them. The guard then refuses every call while offline.
    """
    if not await store.ping():
        source.emit("offline")
    await monitor.wait_for_checks()


def _run(
    config: TutorsyncConfig,
    job: Callable[[RemoteStore, OperationGuard], Awaitable[JobResult]],
) -> JobResult:
    try:
        store = build_store(config)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(2) from None

    notifications = create_notification_manager(config.notifications, console)
    source = ManualConnectivitySource(online=True)
    monitor = create_monitor(source, config.connectivity, notifications, store)
    guard = OperationGuard(config.retry, notifications=notifications, monitor=monitor)

    async def main() -> JobResult:
        try:
            with monitor.subscribe(_log_connectivity):
                await _check_connectivity(store, source, monitor)
                return await job(store, guard)
        finally:
            await store.close()

    try:
        return asyncio.run(main())
    except JobFailed as e:
        console.print(
            f"[red]Job failed at step '{escape(e.step)}':[/red] {escape(str(e.cause))}"
        )
        raise typer.Exit(1) from None
    except IllegalTransition as e:
        console.print(f"[yellow]Nothing to do:[/yellow] {escape(str(e))}")
        raise typer.Exit(1) from None
    except UnknownStatus as e:
        console.print(f"[red]Cannot process row:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    except OfflineError:
        console.print("[red]Store unreachable;[/red] no job was started")
        raise typer.Exit(1) from None
    except StoreError as e:
        console.print(f"[red]Store error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


def _emit(result: JobResult, title: str, json_output: bool, summary: dict[str, Any]) -> None:
    if json_output:
        console.print(json.dumps(summary, indent=2))
    else:
        console.print(render_job_result(result, title))
        if not result.status_persisted:
            console.print("[yellow]Warning:[/yellow] status write failed; the row may lag behind")


def process_document(
    storage_path: str = typer.Argument(..., help="Storage path of the uploaded document"),
    config_file: Path | None = _CONFIG_OPTION,
    json_output: bool = typer.Option(False, "--json", "-j", help="Print a JSON summary"),
) -> None:
    """Extract an uploaded document's content into document_content."""
    config = load_config(config_file, console)
    configure_global_logging(console, config)

    async def job(store: RemoteStore, guard: OperationGuard) -> JobResult:
        return await DocumentProcessor(store, config, guard=guard).process(storage_path)

    result = _run(config, job)
    _emit(result, f"Document {storage_path}", json_output, summarize(result))


def process_video(
    video_id: str = typer.Argument(..., help="Id of the video row"),
    config_file: Path | None = _CONFIG_OPTION,
    json_output: bool = typer.Option(False, "--json", "-j", help="Print a JSON summary"),
) -> None:
    """Transcribe a video's caption track into video_transcripts."""
    config = load_config(config_file, console)
    configure_global_logging(console, config)

    async def job(store: RemoteStore, guard: OperationGuard) -> JobResult:
        return await VideoProcessor(store, config, guard=guard).process(video_id)

    result = _run(config, job)
    segments = result.outputs.get("store_transcripts") or []
    _emit(
        result,
        f"Video {video_id}",
        json_output,
        {"success": True, "status": result.status.value, "segments": len(segments)},
    )
