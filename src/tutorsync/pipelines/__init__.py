"""Processing jobs built on the job status machine."""

from tutorsync.pipelines.documents import DocumentProcessor, extract_text, split_sections
from tutorsync.pipelines.videos import (
    TranscriptSegment,
    VideoProcessor,
    WebVTTTranscriber,
    parse_webvtt,
)

__all__ = [
    "DocumentProcessor",
    "TranscriptSegment",
    "VideoProcessor",
    "WebVTTTranscriber",
    "extract_text",
    "parse_webvtt",
    "split_sections",
]
