"""Pytest fixtures for tutorsync tests."""

import logging
from collections.abc import Generator

import pytest
import structlog

from tutorsync.core.config import RetryPolicy, TutorsyncConfig
from tutorsync.notifications import NotificationManager, RecordingNotifier
from tutorsync.store import InMemoryStore


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    from tutorsync.cli import helpers

    helpers.reset_logging_state()
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    helpers.reset_logging_state()
    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


class FakeSleep:
    """Records requested backoff delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FixedRandom:
    """rng stand-in whose uniform() always returns the same value."""

    def __init__(self, value: float) -> None:
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Standard retry budget with no jitter."""
    return RetryPolicy(max_retries=3, initial_delay_ms=500, backoff_factor=2, jitter_ms=0)


@pytest.fixture
def recorder() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def notifications(recorder: RecordingNotifier) -> NotificationManager:
    return NotificationManager([recorder])


@pytest.fixture
def config() -> TutorsyncConfig:
    """Config with no jitter and short delays."""
    return TutorsyncConfig.model_validate(
        {
            "retry": {"max_retries": 3, "initial_delay_ms": 1, "jitter_ms": 0},
            "timeouts": {"request_seconds": 2, "download_seconds": 2},
        }
    )


@pytest.fixture
def document_store() -> InMemoryStore:
    """Store holding one pending text document and its blob."""
    return InMemoryStore(
        tables={
            "documents": [
                {
                    "id": "doc-1",
                    "filename": "notes.md",
                    "storage_path": "user-1/notes.md",
                    "processing_status": "pending",
                }
            ]
        },
        blobs={("user-content", "user-1/notes.md"): b"# Notes\n\nFirst paragraph.\n\nSecond."},
    )


@pytest.fixture
def video_store() -> InMemoryStore:
    """Store holding one pending video whose media is a WebVTT track."""
    captions = (
        "WEBVTT\n\n"
        "1\n00:00:00.000 --> 00:00:02.500\nHello and welcome.\n\n"
        "2\n00:00:02.500 --> 00:00:05.000\n<v Tutor>Today we cover fractions.</v>\n"
    )
    return InMemoryStore(
        tables={
            "videos": [
                {
                    "id": "vid-1",
                    "storage_path": "user-1/lesson.vtt",
                    "processing_status": "pending",
                    "transcript_status": "pending",
                }
            ]
        },
        blobs={("user-content", "user-1/lesson.vtt"): captions.encode()},
    )
