"""Online/offline state machine over platform connectivity signals.

The platform delivers bare ``"online"`` and ``"offline"`` events, often
repeatedly. The monitor turns them into a de-duplicated state and a callback
stream:

    online --offline--> offline --online--> online

Signals that match the current state are ignored. Each real transition
notifies the user (unless quiet) and calls every subscriber with the new
state.

Platform listeners are attached lazily: the first subscriber attaches both,
the last one to leave releases both.

Example usage:
    source = ManualConnectivitySource(online=True)
    monitor = ConnectivityMonitor(source, notifications=manager)

    subscription = monitor.subscribe(lambda online: print("online:", online))
    source.emit("offline")   # prints "online: False"
    source.emit("offline")   # ignored
    subscription.unsubscribe()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Literal, Protocol

from tutorsync.core.logging import get_logger
from tutorsync.notifications import NotificationManager

if TYPE_CHECKING:
    from tutorsync.core.config import ConnectivityConfig
    from tutorsync.store import RemoteStore

_logger = get_logger("connectivity")

Signal = Literal["online", "offline"]
SIGNALS: tuple[Signal, ...] = ("online", "offline")

StatusCallback = Callable[[bool], object]
HealthCheck = Callable[[], Awaitable[bool]]


class ConnectivitySource(Protocol):
    """The platform's connectivity signal."""

    def is_online(self) -> bool: ...

    def add_listener(self, signal: Signal, handler: Callable[[], None]) -> None: ...

    def remove_listener(self, signal: Signal, handler: Callable[[], None]) -> None: ...


class ManualConnectivitySource:
    """Connectivity source driven by explicit `emit()` calls.

    Stands in for the browser's window events in tests and in the CLI.
    """

    def __init__(self, online: bool = True) -> None:
        self._online = online
        self._listeners: dict[Signal, list[Callable[[], None]]] = {s: [] for s in SIGNALS}

    def is_online(self) -> bool:
        return self._online

    def add_listener(self, signal: Signal, handler: Callable[[], None]) -> None:
        self._listeners[signal].append(handler)

    def remove_listener(self, signal: Signal, handler: Callable[[], None]) -> None:
        if handler in self._listeners[signal]:
            self._listeners[signal].remove(handler)

    def listener_count(self, signal: Signal) -> int:
        return len(self._listeners[signal])

    def emit(self, signal: Signal) -> None:
        """Deliver a signal to every listener, as the platform would."""
        self._online = signal == "online"
        for handler in list(self._listeners[signal]):
            handler()


class Subscription:
    """Handle returned by `ConnectivityMonitor.subscribe()`.

    Usable as a context manager; leaving the block unsubscribes.
    """

    def __init__(self, monitor: ConnectivityMonitor, callback: StatusCallback) -> None:
        self._monitor = monitor
        self._callback = callback

    def unsubscribe(self) -> None:
        self._monitor.unsubscribe(self._callback)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class ConnectivityMonitor:
    """Tracks connectivity and fans transitions out to subscribers.

    Construct once and pass it to the consumers that need it.

    Args:
        source: Platform signal source; its current value is the initial state.
        notifications: Where transition notifications go. None disables them.
        quiet: Suppress transition notifications while still calling back.
        health_check: Optional async check run after coming back online, such
            as the store's ``ping``. Its result picks the reconnect message.
    """

    def __init__(
        self,
        source: ConnectivitySource,
        notifications: NotificationManager | None = None,
        *,
        quiet: bool = False,
        health_check: HealthCheck | None = None,
    ) -> None:
        self._source = source
        self._notifications = notifications
        self._quiet = quiet
        self._health_check = health_check
        self._online = source.is_online()
        self._callbacks: list[StatusCallback] = []
        self._attached = False
        self._pending_checks: set[asyncio.Task[None]] = set()

    @property
    def online(self) -> bool:
        """Current state. Read from the source while no listeners are attached."""
        if not self._attached:
            return self._source.is_online()
        return self._online

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: StatusCallback) -> Subscription:
        """Register `callback`; it is called with the new state on each transition."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)
        if not self._attached:
            self._attach()
        return Subscription(self, callback)

    def unsubscribe(self, callback: StatusCallback) -> None:
        """Deregister `callback`. Unknown callbacks are ignored."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)
        if not self._callbacks and self._attached:
            self._detach()

    def _attach(self) -> None:
        # State may have drifted while nobody was listening
        self._online = self._source.is_online()
        self._source.add_listener("online", self._on_online)
        self._source.add_listener("offline", self._on_offline)
        self._attached = True
        _logger.debug("connectivity_listeners_attached", online=self._online)

    def _detach(self) -> None:
        self._source.remove_listener("online", self._on_online)
        self._source.remove_listener("offline", self._on_offline)
        self._attached = False
        _logger.debug("connectivity_listeners_released")

    def _on_online(self) -> None:
        self.handle_signal("online")

    def _on_offline(self) -> None:
        self.handle_signal("offline")

    def handle_signal(self, signal: Signal) -> bool:
        """Apply a raw platform signal.

        Returns:
            True if the signal caused a transition, False if it repeated the
            current state.

        Raises:
            ValueError: For anything other than "online" or "offline".
        """
        if signal not in SIGNALS:
            raise ValueError(f"unknown connectivity signal: {signal!r}")
        now_online = signal == "online"
        if now_online == self._online:
            return False

        self._online = now_online
        _logger.info("connectivity_changed", online=now_online)
        if now_online:
            self._announce_online()
        else:
            self._notify_error("You're offline", "Please check your internet connection")
        self._dispatch(now_online)
        return True

    def _dispatch(self, online: bool) -> None:
        for callback in list(self._callbacks):
            try:
                callback(online)
            except Exception:
                _logger.exception("connectivity_callback_failed", online=online)

    def _notify(self, message: str, description: str) -> None:
        if self._notifications is not None and not self._quiet:
            self._notifications.info(message, description)

    def _notify_error(self, message: str, description: str) -> None:
        if self._notifications is not None and not self._quiet:
            self._notifications.error(message, description)

    def _announce_online(self) -> None:
        if self._health_check is None:
            self._notify("Connected", "You're back online")
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run the check on; report connectivity alone
            self._notify("Connected", "You're back online")
            return
        task = loop.create_task(self._verify_store())
        self._pending_checks.add(task)
        task.add_done_callback(self._pending_checks.discard)

    async def _verify_store(self) -> None:
        assert self._health_check is not None
        try:
            reachable = await self._health_check()
        except Exception as e:
            _logger.warning("store_health_check_failed", error=str(e))
            self._notify_error("Database Connection Error", "Unable to verify database connection")
            return
        if reachable:
            self._notify("Connected", "You're back online and database connection restored")
        else:
            self._notify_error(
                "Database Connection Error",
                "You're online but database connection is unavailable",
            )

    async def wait_for_checks(self) -> None:
        """Wait for any reconnect health checks still in flight."""
        if self._pending_checks:
            await asyncio.gather(*self._pending_checks)


def create_monitor(
    source: ConnectivitySource,
    config: ConnectivityConfig,
    notifications: NotificationManager | None = None,
    store: RemoteStore | None = None,
) -> ConnectivityMonitor:
    """Build a monitor from config, pinging `store` on reconnect if enabled."""
    health_check = store.ping if store is not None and config.check_store_on_reconnect else None
    return ConnectivityMonitor(
        source,
        notifications,
        quiet=config.quiet,
        health_check=health_check,
    )
