"""
Notification creation and delivery.

Every notification is persisted first and only then published, so a
subscriber never sees a notification that is not in the database.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from database.db import Database, PersistenceFailure
from database.models import (
    CHANNEL_DASHBOARD,
    CHANNEL_EMAIL,
    NOTIFICATION_NEW_TENDER,
    NOTIFICATION_SCAN_SUMMARY,
    Notification,
    Portal,
    Tender,
)
from notifications.broadcaster import (
    EVENT_NEW_NOTIFICATION,
    EVENT_NEW_TENDER,
    Broadcaster,
    NullBroadcaster,
)
from notifications.sender import OutlookError, OutlookSender
from notifications.templates import EmailTemplates

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """Creates, persists and publishes monitor notifications."""

    def __init__(
        self,
        db: Database,
        broadcaster: Optional[Broadcaster] = None,
        email_sender: Optional[OutlookSender] = None,
    ):
        """
        Initialize emitter.

        Args:
            db: Database used to persist notifications
            broadcaster: Real-time channel (events are dropped if None)
            email_sender: Sender for the email channel (disabled if None)
        """
        self.db = db
        self.broadcaster = broadcaster or NullBroadcaster()
        self.email_sender = email_sender

    def _persist(self, notification: Notification) -> bool:
        try:
            notification.id = self.db.insert_notification(notification)
            return True
        except PersistenceFailure as e:
            logger.error(f"Could not store {notification.type} notification: {e}")
            return False

    def emit_new_tender(self, tender: Tender, portal: Portal) -> Optional[Notification]:
        """
        Raise the notification for a newly discovered tender.

        Args:
            tender: The persisted tender
            portal: Portal it was found on

        Returns:
            The stored notification, or None if it could not be stored
        """
        tender_data = tender.to_dict()
        notification = Notification(
            type=NOTIFICATION_NEW_TENDER,
            title="New Tender Found",
            message=f"{tender.title} found on {portal.name}",
            category="tender",
            priority=tender.priority,
            channels=[CHANNEL_DASHBOARD, CHANNEL_EMAIL],
            data={
                "tenderId": tender.id,
                "portalId": portal.id,
                "portalName": portal.name,
                "tenderData": tender_data,
            },
            created=datetime.now(),
            read=False,
        )

        if not self._persist(notification):
            return None

        self.broadcaster.emit(EVENT_NEW_TENDER, tender_data)
        self.broadcaster.emit(EVENT_NEW_NOTIFICATION, notification.to_dict())

        if self.email_sender is not None:
            self._send_tender_email(tender, portal)

        return notification

    def emit_scan_summary(self, stats: Dict[str, Any]) -> Optional[Notification]:
        """
        Raise the summary notification for a scan cycle.

        Nothing is created when the cycle found no new tenders.

        Args:
            stats: Dict with totalNewTenders, successfulScans, failedScans,
                scanTime and duration

        Returns:
            The stored notification, or None if none was created
        """
        total_new = stats.get("totalNewTenders", 0)
        if total_new <= 0:
            logger.debug("No new tenders, skipping scan summary")
            return None

        notification = Notification(
            type=NOTIFICATION_SCAN_SUMMARY,
            title="Portal Scan Complete",
            message=(
                f"Found {total_new} new tender(s) across "
                f"{stats.get('successfulScans', 0)} portal(s)"
            ),
            category="system",
            priority="medium",
            channels=[CHANNEL_DASHBOARD],
            data=dict(stats),
            created=datetime.now(),
            read=False,
        )

        if not self._persist(notification):
            return None

        self.broadcaster.emit(EVENT_NEW_NOTIFICATION, notification.to_dict())
        return notification

    def _send_tender_email(self, tender: Tender, portal: Portal) -> None:
        subject = self.email_sender.format_subject(
            title=tender.title,
            portal=portal.name,
            priority=tender.priority,
        )
        body = EmailTemplates.format_tender_email(
            tender=vars(tender),
            portal_name=portal.name,
            timestamp=datetime.now(),
        )

        try:
            self.email_sender.send_email(subject=subject, body=body)
        except OutlookError as e:
            logger.error(f"Failed to email tender {tender.id}: {e}")
