"""User-facing notification channel.

Usage:
    from tutorsync.notifications import NotificationManager, ConsoleNotifier

    manager = NotificationManager([ConsoleNotifier()])
    manager.error("Request timed out", "The server took too long to respond")
"""

from tutorsync.notifications.base import (
    Notification,
    NotificationKind,
    NotificationManager,
    Notifier,
)
from tutorsync.notifications.factory import create_notification_manager
from tutorsync.notifications.sinks import ConsoleNotifier, LogNotifier, RecordingNotifier

__all__ = [
    "ConsoleNotifier",
    "LogNotifier",
    "Notification",
    "NotificationKind",
    "NotificationManager",
    "Notifier",
    "RecordingNotifier",
    "create_notification_manager",
]
