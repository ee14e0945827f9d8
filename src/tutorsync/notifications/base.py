"""Notification channel base types.

User-facing notifications are the toast-style messages a person sees: going
offline, coming back online, a request that timed out. They are emitted only
at the caller boundary (`OperationGuard`, `ConnectivityMonitor`), never from
the retry or timeout primitives, and never for silent retries.

Notifiers are synchronous because connectivity signals arrive on plain
event callbacks with no awaiting caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, runtime_checkable

from tutorsync.core.logging import get_logger
from tutorsync.utils.time import utc_now

_logger = get_logger("notifications")


class NotificationKind(str, Enum):
    """Visual severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """One user-facing message."""

    kind: NotificationKind
    message: str
    description: str | None = None
    timestamp: datetime = field(default_factory=utc_now)

    def format(self) -> str:
        """Single-line rendering: ``message: description``."""
        if self.description:
            return f"{self.message}: {self.description}"
        return self.message


@runtime_checkable
class Notifier(Protocol):
    """A sink that displays or records notifications.

    `send` returns False on delivery failure; it may also raise, in which
    case the manager logs the error and carries on.
    """

    def send(self, notification: Notification) -> bool: ...


class NotificationManager:
    """Fans a notification out to every registered notifier.

    A failing notifier never interrupts the caller or the other notifiers.

    Example usage:
        manager = NotificationManager([ConsoleNotifier()])
        manager.notify(NotificationKind.ERROR, "You're offline",
                       "Please check your internet connection")
    """

    def __init__(self, notifiers: list[Notifier] | None = None) -> None:
        self._notifiers: list[Notifier] = list(notifiers or [])

    def add_notifier(self, notifier: Notifier) -> None:
        self._notifiers.append(notifier)

    def remove_notifier(self, notifier: Notifier) -> None:
        """Remove a notifier.

        Raises:
            ValueError: If it is not registered.
        """
        self._notifiers.remove(notifier)

    @property
    def notifier_count(self) -> int:
        return len(self._notifiers)

    def notify(
        self,
        kind: NotificationKind,
        message: str,
        description: str | None = None,
    ) -> dict[str, bool]:
        """Deliver a notification to all notifiers.

        Returns:
            Delivery success keyed by notifier class name.
        """
        notification = Notification(kind=kind, message=message, description=description)
        results: dict[str, bool] = {}
        for notifier in self._notifiers:
            name = type(notifier).__name__
            try:
                results[name] = notifier.send(notification)
            except Exception as e:
                _logger.warning("notifier_failed", notifier=name, error=str(e))
                results[name] = False
        return results

    def info(self, message: str, description: str | None = None) -> dict[str, bool]:
        return self.notify(NotificationKind.INFO, message, description)

    def success(self, message: str, description: str | None = None) -> dict[str, bool]:
        return self.notify(NotificationKind.SUCCESS, message, description)

    def error(self, message: str, description: str | None = None) -> dict[str, bool]:
        return self.notify(NotificationKind.ERROR, message, description)
