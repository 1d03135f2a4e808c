"""
Tender Portal Monitor - Notifications Package

Creates notification records and delivers them over the real-time
broadcast channel and, optionally, Outlook email.
"""

from notifications.broadcaster import Broadcaster, LocalBroadcaster, NullBroadcaster
from notifications.emitter import NotificationEmitter
from notifications.sender import OutlookError, OutlookSender
from notifications.templates import EmailTemplates

__all__ = [
    "Broadcaster",
    "LocalBroadcaster",
    "NullBroadcaster",
    "NotificationEmitter",
    "OutlookError",
    "OutlookSender",
    "EmailTemplates",
]
