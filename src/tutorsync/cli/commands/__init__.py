"""CLI command implementations."""

from .process import process_document, process_video
from .validate import validate

__all__ = ["process_document", "process_video", "validate"]
