"""Tests for tutorsync.execution.retry.

Tests cover:
- Delay schedule (exponential growth, jitter bounds)
- Attempt counting against the retry budget
- Terminal errors propagate without retry
- TimedOut is not retried unless asked
- on_retry observer arguments
"""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from tutorsync.core.config import RetryPolicy
from tutorsync.core.errors import StoreError, TimedOut
from tutorsync.execution import compute_delay, run_with_retry


class FixedRandom:
    def __init__(self, value: float) -> None:
        self.value = value

    def uniform(self, a: float, b: float) -> float:
        return self.value


class FlakyOperation:
    """Fails with the queued errors, then returns `result`."""

    def __init__(self, *errors: BaseException, result: object = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def _transient() -> Exception:
    return StoreError("upstream unavailable", status=503)


class TestComputeDelay:
    """Tests for the backoff schedule."""

    def test_exponential_without_jitter(self) -> None:
        policy = RetryPolicy(initial_delay_ms=500, backoff_factor=2, jitter_ms=0)
        delays = [compute_delay(policy, n) for n in range(4)]
        assert delays == [0.5, 1.0, 2.0, 4.0]

    def test_jitter_is_added(self) -> None:
        policy = RetryPolicy(initial_delay_ms=500, backoff_factor=2, jitter_ms=100)
        assert compute_delay(policy, 1, FixedRandom(42.0)) == pytest.approx(1.042)

    def test_jitter_upper_bound_is_exclusive(self) -> None:
        policy = RetryPolicy(initial_delay_ms=500, backoff_factor=2, jitter_ms=100)
        assert compute_delay(policy, 0, FixedRandom(100.0)) == pytest.approx(0.5)

    def test_random_jitter_stays_in_range(self) -> None:
        policy = RetryPolicy(initial_delay_ms=500, backoff_factor=2, jitter_ms=100)
        for n in range(3):
            base = 0.5 * 2**n
            for _ in range(50):
                delay = compute_delay(policy, n)
                assert base <= delay < base + 0.1


class TestRunWithRetry:
    """Tests for the retry loop."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, fast_policy: RetryPolicy, fake_sleep) -> None:
        op = FlakyOperation()
        assert await run_with_retry(op, fast_policy, sleep=fake_sleep) == "ok"
        assert op.calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        op = FlakyOperation(_transient(), _transient())
        assert await run_with_retry(op, fast_policy, sleep=fake_sleep) == "ok"
        assert op.calls == 3
        assert fake_sleep.delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_budget_exhausted_raises_last_error(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        errors = [StoreError(f"failed to fetch #{i}") for i in range(10)]
        op = FlakyOperation(*errors)
        with pytest.raises(StoreError, match="#3"):
            await run_with_retry(op, fast_policy, sleep=fake_sleep)
        assert op.calls == fast_policy.max_retries + 1
        assert fake_sleep.delays == [0.5, 1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_budget_logs_attempt_count(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        op = FlakyOperation(*[_transient() for _ in range(10)])
        with capture_logs() as logs, pytest.raises(StoreError):
            await run_with_retry(op, fast_policy, sleep=fake_sleep)
        exhausted = [e for e in logs if e["event"] == "retry_budget_exhausted"]
        assert [e["attempts"] for e in exhausted] == [op.calls]
        assert op.calls == fast_policy.max_attempts

    @pytest.mark.asyncio
    async def test_terminal_error_not_retried(self, fast_policy: RetryPolicy, fake_sleep) -> None:
        error = ValueError("malformed payload")
        op = FlakyOperation(error)
        with pytest.raises(ValueError) as exc_info:
            await run_with_retry(op, fast_policy, sleep=fake_sleep)
        assert exc_info.value is error
        assert op.calls == 1
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, fast_policy: RetryPolicy, fake_sleep) -> None:
        op = FlakyOperation(StoreError("row not found", status=404))
        with pytest.raises(StoreError):
            await run_with_retry(op, fast_policy, sleep=fake_sleep)
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_zero_retries_runs_once(self, fake_sleep) -> None:
        op = FlakyOperation(_transient())
        with pytest.raises(StoreError):
            await run_with_retry(op, RetryPolicy(max_retries=0), sleep=fake_sleep)
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_timed_out_not_retried_by_default(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        op = FlakyOperation(TimedOut(1.0, "download"))
        with pytest.raises(TimedOut):
            await run_with_retry(op, fast_policy, sleep=fake_sleep)
        assert op.calls == 1

    @pytest.mark.asyncio
    async def test_timed_out_retried_when_enabled(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        op = FlakyOperation(TimedOut(1.0, "download"))
        result = await run_with_retry(op, fast_policy, retry_timeouts=True, sleep=fake_sleep)
        assert result == "ok"
        assert op.calls == 2

    @pytest.mark.asyncio
    async def test_on_retry_receives_attempt_error_and_delay(
        self, fast_policy: RetryPolicy, fake_sleep
    ) -> None:
        first, second = _transient(), _transient()
        seen: list[tuple[int, BaseException, float]] = []
        op = FlakyOperation(first, second)

        await run_with_retry(
            op,
            fast_policy,
            on_retry=lambda n, e, d: seen.append((n, e, d)),
            sleep=fake_sleep,
        )

        assert seen == [(1, first, 0.5), (2, second, 1.0)]

    @pytest.mark.asyncio
    async def test_attempts_are_sequential(self, fast_policy: RetryPolicy, fake_sleep) -> None:
        """No attempt starts before the previous one has settled."""
        in_flight = 0
        max_in_flight = 0
        remaining = [_transient(), _transient()]

        async def op() -> str:
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            try:
                if remaining:
                    raise remaining.pop()
                return "done"
            finally:
                in_flight -= 1

        assert await run_with_retry(op, fast_policy, sleep=fake_sleep) == "done"
        assert max_in_flight == 1
