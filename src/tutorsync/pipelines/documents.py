"""Document ingestion job.

Triggered once per uploaded file. Finds the ``documents`` row for the
storage path, then runs three steps under the job status machine:

    download -> extract -> store_content

The extracted text is split into sections and written to
``document_content``, one row per section.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import PurePosixPath
from typing import Any

from tutorsync.core.config import TutorsyncConfig
from tutorsync.core.logging import get_logger
from tutorsync.core.status import parse_status
from tutorsync.execution import JobResult, JobRunner, JobStep, OperationGuard, StepContext
from tutorsync.store import RemoteStore, Row

_logger = get_logger("pipelines.documents")

TEXT_SUFFIXES = frozenset({".txt", ".md", ".csv", ".json", ".html", ".htm", ".xml"})
MAX_SECTION_CHARS = 4000

Extractor = Callable[[Row, bytes], str]


def extract_text(document: Row, blob: bytes) -> str:
    """Default extractor: decode text formats, describe everything else.

    Binary formats (PDF, slides) are left to a dedicated extractor passed to
    `DocumentProcessor`.
    """
    filename = str(document.get("filename") or "")
    if PurePosixPath(filename).suffix.lower() in TEXT_SUFFIXES:
        return blob.decode("utf-8", errors="replace")
    return f"Extracted content from {filename} ({len(blob)} bytes)."


def split_sections(text: str, max_chars: int = MAX_SECTION_CHARS) -> list[str]:
    """Split text on paragraph breaks into sections of at most `max_chars`.

    A single paragraph longer than the limit is cut hard. Empty text gives
    one empty section so every document has at least one content row.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    sections: list[str] = []
    current = ""
    for paragraph in paragraphs:
        while len(paragraph) > max_chars:
            if current:
                sections.append(current)
                current = ""
            sections.append(paragraph[:max_chars])
            paragraph = paragraph[max_chars:]
        if not paragraph:
            continue
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) > max_chars:
            sections.append(current)
            current = paragraph
        else:
            current = candidate
    if current or not sections:
        sections.append(current)
    return sections


class DocumentProcessor:
    """Runs the ingestion job for one uploaded document.

    Args:
        store: Remote store.
        config: Table names, bucket, timeouts and retry policy.
        guard: Shared guard; built from ``config.retry`` when omitted.
        extractor: Turns the document row and its bytes into text.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: TutorsyncConfig | None = None,
        *,
        guard: OperationGuard | None = None,
        extractor: Extractor = extract_text,
    ) -> None:
        self._store = store
        self._config = config or TutorsyncConfig()
        self._guard = guard or OperationGuard(self._config.retry)
        self._extractor = extractor

    async def find_document(self, storage_path: str) -> Row:
        """Look up the document row for a storage path.

        Raises:
            StoreError: No such row, or the store failed after retries.
        """
        table = self._config.store.documents_table

        async def fetch() -> Row:
            result = await self._store.fetch_row(table, {"storage_path": storage_path})
            return result.unwrap()

        return await self._guard.call(
            fetch,
            name="find_document",
            timeout_seconds=self._config.timeouts.request_seconds,
        )

    def build_steps(self, document: Row) -> list[JobStep]:
        store_cfg = self._config.store
        timeouts = self._config.timeouts

        async def download(ctx: StepContext) -> bytes:
            result = await self._store.download(store_cfg.storage_bucket, document["storage_path"])
            return result.unwrap()

        async def extract(ctx: StepContext) -> list[str]:
            text = self._extractor(document, ctx.output("download"))
            return split_sections(text)

        async def store_content(ctx: StepContext) -> list[Row]:
            rows: list[Row] = [
                {
                    "document_id": document["id"],
                    "section_number": number,
                    "content": section,
                    "processing_status": "completed",
                }
                for number, section in enumerate(ctx.output("extract"), start=1)
            ]
            result = await self._store.insert_rows(store_cfg.document_content_table, rows)
            return result.unwrap()

        return [
            JobStep("download", download, timeout_seconds=timeouts.download_seconds),
            JobStep("extract", extract),
            JobStep("store_content", store_content, timeout_seconds=timeouts.request_seconds),
        ]

    async def process(self, storage_path: str) -> JobResult:
        """Ingest the document stored at `storage_path`.

        Raises:
            StoreError: The document row could not be found; no status written.
            JobFailed: A step failed; the row is marked failed.
            IllegalTransition: The document was already processed.
            UnknownStatus: The row holds an unrecognised status; nothing written.
        """
        document = await self.find_document(storage_path)
        _logger.info("document_found", document_id=document["id"], storage_path=storage_path)

        runner = JobRunner(
            self._store,
            self._config.store.documents_table,
            guard=self._guard,
            status_columns=(self._config.store.status_column,),
        )
        return await runner.run_job(
            str(document["id"]),
            self.build_steps(document),
            current_status=parse_status(document.get(self._config.store.status_column)),
        )


def summarize(result: JobResult) -> dict[str, Any]:
    """Response-style summary of a finished ingestion run."""
    sections = result.outputs.get("store_content") or []
    return {
        "success": True,
        "document_id": result.job_id,
        "status": result.status.value,
        "sections": len(sections),
        "status_persisted": result.status_persisted,
    }
