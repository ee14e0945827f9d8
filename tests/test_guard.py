"""Tests for tutorsync.execution.guard.OperationGuard."""

from __future__ import annotations

import asyncio

import pytest

from tutorsync.connectivity import ConnectivityMonitor, ManualConnectivitySource
from tutorsync.core.config import RetryPolicy
from tutorsync.core.errors import OfflineError, StoreError, TimedOut
from tutorsync.execution import OperationGuard
from tutorsync.notifications import NotificationKind, NotificationManager, RecordingNotifier


class TestOperationGuard:
    """Tests for the caller-side boundary."""

    @pytest.mark.asyncio
    async def test_retries_are_silent(
        self,
        fast_policy: RetryPolicy,
        fake_sleep,
        notifications: NotificationManager,
        recorder: RecordingNotifier,
    ) -> None:
        errors = [StoreError("bad gateway", status=502)] * 2

        async def op() -> str:
            if errors:
                raise errors.pop()
            return "row"

        guard = OperationGuard(fast_policy, notifications, sleep=fake_sleep)
        assert await guard.call(op, name="fetch") == "row"
        assert recorder.sent == []
        assert len(fake_sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_do_not_notify(
        self,
        fast_policy: RetryPolicy,
        fake_sleep,
        notifications: NotificationManager,
        recorder: RecordingNotifier,
    ) -> None:
        async def op() -> None:
            raise StoreError("failed to fetch")

        guard = OperationGuard(fast_policy, notifications, sleep=fake_sleep)
        with pytest.raises(StoreError):
            await guard.call(op, name="fetch")
        assert recorder.sent == []

    @pytest.mark.asyncio
    async def test_timeout_notifies_exactly_once(
        self,
        notifications: NotificationManager,
        recorder: RecordingNotifier,
    ) -> None:
        async def op() -> None:
            await asyncio.sleep(10)

        guard = OperationGuard(RetryPolicy(), notifications)
        with pytest.raises(TimedOut):
            await guard.call(op, name="download", timeout_seconds=0.02)

        assert len(recorder.sent) == 1
        notification = recorder.sent[0]
        assert notification.kind is NotificationKind.ERROR
        assert notification.message == "Request timed out"
        assert "download" in (notification.description or "")

    @pytest.mark.asyncio
    async def test_timeout_covers_backoff(self, recorder: RecordingNotifier) -> None:
        """The bound applies to the whole retry loop, sleeps included."""
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            raise StoreError("network error: reset")

        policy = RetryPolicy(max_retries=5, initial_delay_ms=1000, jitter_ms=0)
        guard = OperationGuard(policy, NotificationManager([recorder]))
        with pytest.raises(TimedOut):
            await guard.call(op, timeout_seconds=0.05)
        assert calls == 1
        assert recorder.messages == ["Request timed out"]

    @pytest.mark.asyncio
    async def test_silent_without_notifications(self) -> None:
        async def op() -> None:
            await asyncio.sleep(10)

        with pytest.raises(TimedOut):
            await OperationGuard().call(op, timeout_seconds=0.01)

    @pytest.mark.asyncio
    async def test_offline_refuses_without_attempting(
        self,
        notifications: NotificationManager,
        recorder: RecordingNotifier,
    ) -> None:
        monitor = ConnectivityMonitor(ManualConnectivitySource(online=False))
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1

        guard = OperationGuard(notifications=notifications, monitor=monitor)
        assert guard.should_attempt() is False
        with pytest.raises(OfflineError):
            await guard.call(op, name="fetch")
        assert calls == 0
        assert recorder.sent == []

    @pytest.mark.asyncio
    async def test_per_call_policy_overrides_default(self, fake_sleep) -> None:
        calls = 0

        async def op() -> None:
            nonlocal calls
            calls += 1
            raise StoreError("service unavailable", status=503)

        guard = OperationGuard(RetryPolicy(max_retries=5), sleep=fake_sleep)
        with pytest.raises(StoreError):
            await guard.call(op, policy=RetryPolicy(max_retries=1))
        assert calls == 2

    @pytest.mark.asyncio
    async def test_going_offline_after_construction_is_honored(self) -> None:
        """The guard sees connectivity changes even with no subscribers."""
        source = ManualConnectivitySource(online=True)
        guard = OperationGuard(monitor=ConnectivityMonitor(source))
        calls = 0

        async def op() -> str:
            nonlocal calls
            calls += 1
            return "ok"

        source.emit("offline")
        assert guard.should_attempt() is False
        with pytest.raises(OfflineError):
            await guard.call(op, name="fetch")

        source.emit("online")
        assert await guard.call(op, name="fetch") == "ok"
        assert calls == 1
