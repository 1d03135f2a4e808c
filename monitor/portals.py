"""
Portal catalog.

Portals are seeded from the configured catalog on startup and never
deleted; scans only update their counters.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from database.db import Database
from database.models import PORTAL_TYPES, Portal

logger = logging.getLogger(__name__)


class PortalRegistry:
    """Read and seed access to the monitored portals."""

    def __init__(self, db: Database, catalog: Optional[Iterable[Dict[str, Any]]] = None):
        """
        Initialize registry.

        Args:
            db: Database holding the portals table
            catalog: Seed entries (id, name, url, type, active, search_endpoint)
        """
        self.db = db
        self.catalog = [Portal.from_dict(entry) for entry in (catalog or [])]

        for portal in self.catalog:
            if portal.type not in PORTAL_TYPES:
                logger.warning(f"Portal {portal.id} has unknown type '{portal.type}'")

    def seed(self) -> int:
        """
        Insert every catalog portal that is not stored yet.

        Existing portals are left untouched, so running this again (or while
        a scan is in progress) changes nothing.

        Returns:
            Number of portals inserted
        """
        inserted = 0
        for portal in self.catalog:
            if self.db.insert_portal(portal):
                inserted += 1
                logger.info(f"Seeded portal: {portal.id} ({portal.name})")

        logger.debug(f"Portal seeding done: {inserted} of {len(self.catalog)} new")
        return inserted

    def list_active_portals(self) -> List[Portal]:
        """Return all portals flagged active."""
        return self.db.get_portals(active_only=True)

    def list_portals(self) -> List[Portal]:
        return self.db.get_portals()

    def get_portal(self, portal_id: str) -> Optional[Portal]:
        return self.db.get_portal(portal_id)

    def set_active(self, portal_id: str, active: bool) -> bool:
        """
        Enable or disable scanning of a portal.

        Returns:
            True if the portal exists
        """
        found = self.db.set_portal_active(portal_id, active)
        if found:
            logger.info(f"Portal {portal_id} {'enabled' if active else 'disabled'}")
        else:
            logger.warning(f"Cannot toggle unknown portal: {portal_id}")
        return found

    def record_scan(
        self,
        portal_id: str,
        scanned_at: datetime,
        total_tenders: int,
        new_tenders: int,
    ) -> None:
        self.db.update_portal_scan(portal_id, scanned_at, total_tenders, new_tenders)
