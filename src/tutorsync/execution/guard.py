"""Caller-side wrapper combining connectivity, timeout and retry.

The retry and timeout primitives only succeed or raise. This guard is where
their outcomes turn into user-facing effects: a timeout produces an error
notification, and calls are refused up front while the device is offline.
Retries stay silent.

Example usage:
    guard = OperationGuard(RetryPolicy(), notifications=manager, monitor=monitor)
    blob = await guard.call(
        lambda: download(store, path),
        name="download",
        timeout_seconds=30,
    )
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from tutorsync.core.config import RetryPolicy
from tutorsync.core.errors import OfflineError, TimedOut
from tutorsync.core.logging import get_logger
from tutorsync.execution.retry import RetryHook, run_with_retry
from tutorsync.execution.timeout import run_with_timeout

if TYPE_CHECKING:
    from tutorsync.connectivity import ConnectivityMonitor
    from tutorsync.notifications import NotificationManager

_logger = get_logger("guard")

R = TypeVar("R")


class OperationGuard:
    """Runs remote operations under one retry policy and optional timeout.

    Args:
        policy: Default retry policy for calls that do not pass their own.
        notifications: Receives the timeout notification. None keeps the
            guard silent.
        monitor: When given and offline, calls raise `OfflineError` without
            being attempted.
        sleep: Backoff sleep, injectable for tests.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        notifications: NotificationManager | None = None,
        monitor: ConnectivityMonitor | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._notifications = notifications
        self._monitor = monitor
        self._sleep = sleep

    def should_attempt(self) -> bool:
        """False while a monitor reports the device offline."""
        return self._monitor is None or self._monitor.online

    async def call(
        self,
        operation: Callable[[], Awaitable[R]],
        *,
        name: str | None = None,
        timeout_seconds: float | None = None,
        policy: RetryPolicy | None = None,
        on_retry: RetryHook | None = None,
    ) -> R:
        """Run `operation` with retry, bounded by `timeout_seconds` if given.

        The timeout covers the whole retry loop, backoff sleeps included.

        Raises:
            OfflineError: The monitor reports offline; nothing was attempted.
            TimedOut: The bound elapsed; a notification was emitted.
            Exception: The operation's own last error.
        """
        if not self.should_attempt():
            _logger.info("operation_skipped_offline", operation=name)
            raise OfflineError(name)

        effective = policy or self.policy

        async def retrying() -> R:
            return await run_with_retry(operation, effective, on_retry, sleep=self._sleep)

        if timeout_seconds is None:
            return await retrying()

        try:
            return await run_with_timeout(retrying, timeout_seconds, name=name)
        except TimedOut as exc:
            if self._notifications is not None:
                self._notifications.error(
                    "Request timed out",
                    f"{name or 'The request'} did not respond within {exc.timeout_seconds:g}s",
                )
            raise
