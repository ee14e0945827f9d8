"""Build notifiers from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tutorsync.core.logging import get_logger
from tutorsync.notifications.base import NotificationManager, Notifier
from tutorsync.notifications.sinks import ConsoleNotifier, LogNotifier

if TYPE_CHECKING:
    from rich.console import Console

    from tutorsync.core.config import NotificationConfig

_logger = get_logger("notifications.factory")


def create_notification_manager(
    config: NotificationConfig,
    console: Console | None = None,
) -> NotificationManager:
    """Create a NotificationManager with the sinks named in `config`."""
    notifiers: list[Notifier] = []
    for sink in config.sinks:
        if sink == "console":
            notifiers.append(ConsoleNotifier(console))
        elif sink == "log":
            notifiers.append(LogNotifier())
        else:
            _logger.warning("unknown_notification_sink", sink=sink)
    return NotificationManager(notifiers)


__all__ = ["create_notification_manager"]
