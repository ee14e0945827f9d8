"""Notifier implementations: rich console, structured log, recorder."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from tutorsync.core.logging import get_logger
from tutorsync.notifications.base import Notification, NotificationKind

_logger = get_logger("notifications.sinks")

KIND_STYLES: dict[NotificationKind, str] = {
    NotificationKind.INFO: "cyan",
    NotificationKind.SUCCESS: "green",
    NotificationKind.ERROR: "bold red",
}


class ConsoleNotifier:
    """Prints notifications to a rich console, styled by kind."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def send(self, notification: Notification) -> bool:
        style = KIND_STYLES[notification.kind]
        self._console.print(f"[{style}]{escape(notification.message)}[/{style}]")
        if notification.description:
            self._console.print(f"  [dim]{escape(notification.description)}[/dim]")
        return True


class LogNotifier:
    """Writes notifications as structured log events.

    Useful for headless runs where nobody watches a console.
    """

    def send(self, notification: Notification) -> bool:
        log = _logger.warning if notification.kind is NotificationKind.ERROR else _logger.info
        log(
            "user_notification",
            kind=notification.kind.value,
            message=notification.message,
            description=notification.description,
        )
        return True


class RecordingNotifier:
    """Keeps every notification in memory; used in tests.

    Attributes:
        sent: Notifications received, in order.
    """

    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self._fail_next = False

    def set_fail_next(self, should_fail: bool = True) -> None:
        """Make the next send() return False without recording."""
        self._fail_next = should_fail

    def send(self, notification: Notification) -> bool:
        if self._fail_next:
            self._fail_next = False
            return False
        self.sent.append(notification)
        return True

    def of_kind(self, kind: NotificationKind) -> list[Notification]:
        return [n for n in self.sent if n.kind is kind]

    @property
    def messages(self) -> list[str]:
        return [n.message for n in self.sent]
