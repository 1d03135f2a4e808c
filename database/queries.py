"""
Read-side queries for the Tender Portal Monitor.

Aggregates used by the CLI listings and any dashboard built on top of
the database. Nothing here writes.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List

from database.db import Database
from database.models import Tender, to_iso


class TenderQueries:
    """Helper class for common tender-related queries."""

    def __init__(self, db: Database):
        """
        Initialize query helper.

        Args:
            db: Database instance
        """
        self.db = db

    def search_tenders(self, search_term: str, limit: int = 100) -> List[Tender]:
        """
        Search tenders by title or organization.

        Args:
            search_term: Search term
            limit: Maximum results

        Returns:
            List of matching tenders
        """
        pattern = f"%{search_term}%"
        query = """
        SELECT * FROM tenders
        WHERE title LIKE ? OR organization LIKE ?
        ORDER BY added_date DESC
        LIMIT ?
        """
        rows = self.db.fetch_all(query, (pattern, pattern, limit))
        return [Tender.from_row(row) for row in rows]

    def get_upcoming_deadlines(self, days: int = 7, limit: int = 100) -> List[Tender]:
        """
        Get tenders whose submission deadline falls within the next N days.

        Args:
            days: Days to look ahead
            limit: Maximum results

        Returns:
            List of tenders ordered by deadline
        """
        now = datetime.now()
        query = """
        SELECT * FROM tenders
        WHERE submission_deadline IS NOT NULL
        AND submission_deadline >= ?
        AND submission_deadline <= ?
        ORDER BY submission_deadline ASC
        LIMIT ?
        """
        rows = self.db.fetch_all(
            query,
            (to_iso(now), to_iso(now + timedelta(days=days)), limit),
        )
        return [Tender.from_row(row) for row in rows]

    def get_portal_statistics(self) -> List[Dict[str, Any]]:
        """
        Get tender statistics per portal.

        Returns:
            List of dictionaries with portal id, name, totals and last scan
        """
        query = """
        SELECT
            p.id as portal_id,
            p.name as name,
            p.active as active,
            p.last_scanned as last_scanned,
            COUNT(t.row_id) as stored_tenders,
            MAX(t.added_date) as last_tender
        FROM portals p
        LEFT JOIN tenders t ON t.portal_id = p.id
        GROUP BY p.id
        ORDER BY stored_tenders DESC, p.name
        """

        rows = self.db.fetch_all(query)
        return [dict(row) for row in rows]

    def get_unread_notification_count(self) -> int:
        row = self.db.fetch_one("SELECT COUNT(*) as cnt FROM notifications WHERE read = 0")
        return row["cnt"] if row else 0
