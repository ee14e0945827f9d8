"""Video transcription job.

Steps, run under the job status machine against the ``videos`` table:

    fetch_media -> transcribe -> store_transcripts

Both ``processing_status`` and ``transcript_status`` follow the job status.
Transcription itself is pluggable; the bundled `WebVTTTranscriber` reads
segments from an uploaded WebVTT or SRT caption track.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Protocol

from tutorsync.core.config import TutorsyncConfig
from tutorsync.core.logging import get_logger
from tutorsync.core.status import parse_status
from tutorsync.execution import JobResult, JobRunner, JobStep, OperationGuard, StepContext
from tutorsync.store import RemoteStore, Row

_logger = get_logger("pipelines.videos")

_CUE_TIMING = re.compile(
    r"(?P<start>(?:\d+:)?\d{1,2}:\d{2}[.,]\d{3})\s*-->\s*(?P<end>(?:\d+:)?\d{1,2}:\d{2}[.,]\d{3})"
)


@dataclass(frozen=True)
class TranscriptSegment:
    """A span of speech, times in seconds from the start of the video."""

    start_time: float
    end_time: float
    text: str

    def to_row(self, video_id: str) -> Row:
        return {
            "video_id": video_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "text": self.text,
        }


class Transcriber(Protocol):
    def __call__(self, video: Row, media: bytes) -> Awaitable[list[TranscriptSegment]]: ...


def _parse_timestamp(value: str) -> float:
    parts = value.replace(",", ".").split(":")
    seconds = float(parts[-1])
    minutes = int(parts[-2])
    hours = int(parts[-3]) if len(parts) == 3 else 0
    return hours * 3600 + minutes * 60 + seconds


def parse_webvtt(text: str) -> list[TranscriptSegment]:
    """Parse WebVTT (or SRT) cues into segments.

    Cue identifiers, the WEBVTT header, NOTE blocks and styling are skipped.

    Raises:
        ValueError: The text contains no timed cues.
    """
    segments: list[TranscriptSegment] = []
    for block in re.split(r"\r?\n\s*\r?\n", text.strip()):
        lines = [line.strip() for line in block.splitlines() if line.strip()]
        for index, line in enumerate(lines):
            match = _CUE_TIMING.search(line)
            if match is None:
                continue
            body = " ".join(lines[index + 1 :])
            body = re.sub(r"<[^>]+>", "", body).strip()
            if body:
                segments.append(
                    TranscriptSegment(
                        start_time=_parse_timestamp(match.group("start")),
                        end_time=_parse_timestamp(match.group("end")),
                        text=body,
                    )
                )
            break
    if not segments:
        raise ValueError("caption track contains no timed cues")
    return segments


class WebVTTTranscriber:
    """Reads segments from a WebVTT/SRT caption track."""

    async def __call__(self, video: Row, media: bytes) -> list[TranscriptSegment]:
        return parse_webvtt(media.decode("utf-8-sig", errors="replace"))


class VideoProcessor:
    """Runs the transcription job for one video row.

    Args:
        store: Remote store.
        config: Table names, bucket, timeouts and retry policy.
        transcriber: Produces segments from the video row and its media.
        guard: Shared guard; built from ``config.retry`` when omitted.
    """

    STATUS_COLUMNS = ("processing_status", "transcript_status")

    def __init__(
        self,
        store: RemoteStore,
        config: TutorsyncConfig | None = None,
        *,
        transcriber: Transcriber | None = None,
        guard: OperationGuard | None = None,
    ) -> None:
        self._store = store
        self._config = config or TutorsyncConfig()
        self._transcriber: Transcriber = transcriber or WebVTTTranscriber()
        self._guard = guard or OperationGuard(self._config.retry)

    async def find_video(self, video_id: str) -> Row:
        table = self._config.store.videos_table

        async def fetch() -> Row:
            result = await self._store.fetch_row(table, {"id": video_id})
            return result.unwrap()

        return await self._guard.call(
            fetch,
            name="find_video",
            timeout_seconds=self._config.timeouts.request_seconds,
        )

    def build_steps(self, video: Row) -> list[JobStep]:
        store_cfg = self._config.store
        timeouts = self._config.timeouts

        async def fetch_media(ctx: StepContext) -> bytes:
            result = await self._store.download(store_cfg.storage_bucket, video["storage_path"])
            return result.unwrap()

        async def transcribe(ctx: StepContext) -> list[TranscriptSegment]:
            return await self._transcriber(video, ctx.output("fetch_media"))

        async def store_transcripts(ctx: StepContext) -> list[Row]:
            segments: list[TranscriptSegment] = ctx.output("transcribe")
            rows = [segment.to_row(ctx.job_id) for segment in segments]
            result = await self._store.insert_rows(store_cfg.video_transcripts_table, rows)
            return result.unwrap()

        return [
            JobStep("fetch_media", fetch_media, timeout_seconds=timeouts.download_seconds),
            JobStep("transcribe", transcribe),
            JobStep("store_transcripts", store_transcripts, timeout_seconds=timeouts.request_seconds),
        ]

    async def process(self, video_id: str) -> JobResult:
        """Transcribe the video with id `video_id`.

        Raises:
            StoreError: The video row could not be found; no status written.
            JobFailed: A step failed; the row is marked failed.
            IllegalTransition: The video was already processed.
            UnknownStatus: The row holds an unrecognised status; nothing written.
        """
        video = await self.find_video(video_id)
        _logger.info("video_found", video_id=video_id)

        runner = JobRunner(
            self._store,
            self._config.store.videos_table,
            guard=self._guard,
            status_columns=self.STATUS_COLUMNS,
        )
        return await runner.run_job(
            str(video["id"]),
            self.build_steps(video),
            current_status=parse_status(video.get("processing_status")),
        )
