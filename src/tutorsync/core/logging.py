"""Structured logging for tutorsync.

Wraps structlog with component loggers and an execution context that carries
job correlation fields (job_id, run_id, step) across awaits.

Example usage:
    from tutorsync.core.logging import configure_logging, get_logger

    configure_logging(level="DEBUG", format="console")
    logger = get_logger("jobs")
    logger.info("job_started", job_id="doc-42")

    ctx = ExecutionContext(job_id="doc-42")
    with with_context(ctx.with_step("download")):
        logger.debug("step_started")  # includes job_id, run_id, step
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Keys whose values are never written to logs. Matched as substrings.
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "service_key",
    "service_role",
    "token",
    "secret",
    "password",
    "authorization",
    "bearer",
})


@dataclass(frozen=True)
class ExecutionContext:
    """Correlation fields attached to every log entry inside `with_context()`.

    Attributes:
        job_id: Identifier of the job row being processed.
        run_id: Unique id of this invocation.
        step: Name of the step currently executing, if any.
        component: Component emitting the entries.
    """

    job_id: str
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    step: str | None = None
    component: str = "unknown"

    def with_step(self, step: str) -> ExecutionContext:
        return replace(self, step=step)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "job_id": self.job_id,
            "run_id": self.run_id,
            "component": self.component,
        }
        if self.step is not None:
            result["step"] = self.step
        return result


_current_context: ContextVar[ExecutionContext | None] = ContextVar(
    "tutorsync_context", default=None
)


def get_current_context() -> ExecutionContext | None:
    """Return the active ExecutionContext, or None outside a context block."""
    return _current_context.get()


@contextmanager
def with_context(ctx: ExecutionContext) -> Iterator[ExecutionContext]:
    """Set the ExecutionContext for the duration of a block.

    ContextVar keeps the value isolated per asyncio task, so concurrent jobs
    never see each other's fields.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor merging ExecutionContext fields.

    Explicitly logged keys take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            event_dict.setdefault(key, value)
    return event_dict


class TutorsyncLogger:
    """Component logger wrapping structlog.

    The structlog logger is fetched on every call so that loggers created at
    import time still honor a later `configure_logging()`.
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> TutorsyncLogger:
        """Return a new logger with additional bound context."""
        new_logger = TutorsyncLogger.__new__(TutorsyncLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an error with traceback; call from inside an except block."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]
    if include_context:
        processors.append(_add_context)
    if include_timestamps:
        processors.append(_add_timestamp)
    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 20,
    backup_count: int = 3,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure structlog and the stdlib root logger.

    Call once at startup.

    Args:
        level: Minimum level captured.
        format: "console" for colored stderr output, "json" for JSON lines
            (to file_path if given, else stdout), "both" for console on
            stderr plus JSON in file_path.
        file_path: Log file, rotated at max_file_size_mb.
        max_file_size_mb: Rotation threshold.
        backup_count: Rotated files kept.
        include_timestamps: Add ISO8601 UTC timestamps.
        include_context: Merge ExecutionContext fields.

    Raises:
        ValueError: If format="both" without file_path.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    if format in ("json", "both"):
        if file_path is not None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(
                RotatingFileHandler(
                    file_path,
                    maxBytes=max_file_size_mb * 1024 * 1024,
                    backupCount=backup_count,
                    encoding="utf-8",
                )
            )
        else:
            handlers.append(logging.StreamHandler(sys.stdout))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> TutorsyncLogger:
    """Get a logger bound to a component name."""
    return TutorsyncLogger(component, **initial_context)


__all__ = [
    "ExecutionContext",
    "SENSITIVE_PATTERNS",
    "TutorsyncLogger",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
