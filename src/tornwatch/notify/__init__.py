"""Operator notifications: records, dispatcher and sinks."""

from tornwatch.notify.discord import DiscordDirectMessageSink, LoggingSink
from tornwatch.notify.dispatcher import NotificationDispatcher, NotificationSink, Notifier
from tornwatch.notify.events import Notification, NotificationKind

__all__ = [
    "DiscordDirectMessageSink",
    "LoggingSink",
    "Notification",
    "NotificationDispatcher",
    "NotificationKind",
    "NotificationSink",
    "Notifier",
]
