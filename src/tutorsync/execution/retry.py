"""Retry with exponential backoff and jitter.

Each failed attempt is classified. Terminal failures propagate at once;
transient ones are retried after a growing delay until the policy's budget
is spent, at which point the last error propagates unchanged.

Example usage:
    from tutorsync.core.config import RetryPolicy
    from tutorsync.execution.retry import run_with_retry

    row = await run_with_retry(
        lambda: fetch_document(store, path),
        RetryPolicy(max_retries=3, initial_delay_ms=500),
        on_retry=lambda attempt, error, delay: print(attempt, delay),
    )
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar

from tutorsync.core.config import RetryPolicy
from tutorsync.core.errors import TimedOut, classify
from tutorsync.core.logging import get_logger

_logger = get_logger("retry")

R = TypeVar("R")

Operation = Callable[[], Awaitable[R]]
RetryHook = Callable[[int, BaseException, float], Any]
"""Called before each retry with (retry number from 1, error, delay seconds)."""


class _Uniform(Protocol):
    def uniform(self, a: float, b: float) -> float: ...


def compute_delay(policy: RetryPolicy, retry_index: int, rng: _Uniform = random) -> float:
    """Delay in seconds before retry `retry_index` (0-based).

    ``initial_delay_ms * backoff_factor ** retry_index`` plus jitter in
    ``[0, jitter_ms)``.
    """
    base_ms = policy.initial_delay_ms * policy.backoff_factor**retry_index
    jitter_ms = 0.0
    if policy.jitter_ms > 0:
        jitter_ms = rng.uniform(0, policy.jitter_ms)
        # uniform() may return its upper bound through float rounding
        if jitter_ms >= policy.jitter_ms:
            jitter_ms = 0.0
    return (base_ms + jitter_ms) / 1000.0


async def run_with_retry(
    operation: Operation[R],
    policy: RetryPolicy,
    on_retry: RetryHook | None = None,
    *,
    retry_timeouts: bool = False,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: _Uniform = random,
) -> R:
    """Run `operation`, retrying transient failures with backoff.

    Attempts are strictly sequential. The first attempt always runs;
    ``policy.max_retries`` further attempts are allowed for transient errors.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Backoff policy.
        on_retry: Optional observer called before each backoff sleep.
        retry_timeouts: Retry `TimedOut` raised by an attempt. Off by default,
            a timeout propagates after one occurrence.
        sleep: Awaitable delay, injectable for tests.
        rng: Source of jitter.

    Returns:
        The operation's result.

    Raises:
        Exception: The last error, when it is terminal or the budget is spent.
    """
    retries = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if isinstance(exc, TimedOut) and not retry_timeouts:
                raise
            classified = classify(exc)
            if classified.is_terminal:
                _logger.debug("retry_not_attempted", reason="terminal", **classified.to_dict())
                raise
            if retries >= policy.max_retries:
                _logger.debug(
                    "retry_budget_exhausted",
                    attempts=policy.max_attempts,
                    **classified.to_dict(),
                )
                raise

            delay = compute_delay(policy, retries, rng)
            retries += 1
            _logger.debug(
                "retry_scheduled",
                retry=retries,
                max_retries=policy.max_retries,
                delay_seconds=round(delay, 3),
                error_code=classified.error_code.value,
            )
            if on_retry is not None:
                on_retry(retries, exc, delay)
            await sleep(delay)
