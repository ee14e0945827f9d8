"""Bound an operation's duration.

The operation runs as its own task and races a timer. If the timer wins,
`TimedOut` is raised and the task is sent a cancellation request, but it is
not awaited: an operation that shields itself or blocks inside a callback
keeps running in the background. Remote calls that have already reached the
server may still complete there. Callers needing a hard stop must pass an
operation that honors cancellation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tutorsync.core.errors import TimedOut
from tutorsync.core.logging import get_logger

_logger = get_logger("timeout")

R = TypeVar("R")


def _consume_result(task: asyncio.Task[object]) -> None:
    # Abandoned tasks must still have their outcome retrieved, otherwise
    # asyncio reports "exception was never retrieved" at shutdown.
    if not task.cancelled():
        task.exception()


async def run_with_timeout(
    operation: Callable[[], Awaitable[R]],
    timeout_seconds: float,
    *,
    name: str | None = None,
) -> R:
    """Run `operation`, failing with `TimedOut` after `timeout_seconds`.

    Args:
        operation: Zero-argument coroutine factory.
        timeout_seconds: Bound in seconds; must be positive.
        name: Label used in the error message and logs.

    Returns:
        The operation's result, if it settles in time.

    Raises:
        TimedOut: The timer fired first.
        ValueError: timeout_seconds is not positive.
        Exception: Whatever the operation raised, if it settled in time.
    """
    if timeout_seconds <= 0:
        raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds}")

    task: asyncio.Task[R] = asyncio.ensure_future(operation())
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if task in done:
        return task.result()

    task.cancel()
    task.add_done_callback(_consume_result)
    _logger.warning("operation_timed_out", operation=name, timeout_seconds=timeout_seconds)
    raise TimedOut(timeout_seconds, name)
