"""
Database connection and management for the Tender Portal Monitor.

Provides SQLite storage for portals, tenders and notifications. A single
connection is shared across threads (the scheduler runs scans on timer
threads while the control surface reads from the caller's thread), so
every statement runs under a re-entrant lock.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional, Set, Tuple

from database.models import Notification, Portal, Tender, dump_json, to_iso

logger = logging.getLogger(__name__)

# Database schema
SCHEMA = """
-- Portals table: catalog of monitored tender portals
CREATE TABLE IF NOT EXISTS portals (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    url TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'government',
    active INTEGER NOT NULL DEFAULT 1,
    search_endpoint TEXT,
    last_scanned TEXT,
    total_tenders INTEGER DEFAULT 0,
    new_tenders INTEGER DEFAULT 0
);

-- Tenders table: every tender discovered, at most once per portal
CREATE TABLE IF NOT EXISTS tenders (
    row_id INTEGER PRIMARY KEY AUTOINCREMENT,
    tender_id TEXT NOT NULL,
    portal_id TEXT NOT NULL,
    title TEXT NOT NULL,
    organization TEXT,
    description TEXT,
    value REAL,
    publish_date TEXT,
    submission_deadline TEXT,
    location TEXT,
    category TEXT,
    keywords TEXT,
    source TEXT,
    source_url TEXT,
    discovered TEXT,
    status TEXT,
    priority TEXT,
    added_date TEXT NOT NULL,
    matched_keyword TEXT,
    UNIQUE(portal_id, tender_id)
);

-- Notifications table: per-tender and scan summary notifications
CREATE TABLE IF NOT EXISTS notifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    message TEXT NOT NULL,
    category TEXT,
    priority TEXT,
    data TEXT,
    channels TEXT,
    created TEXT NOT NULL,
    read INTEGER NOT NULL DEFAULT 0
);

-- Indexes for performance
CREATE INDEX IF NOT EXISTS idx_tenders_portal ON tenders(portal_id);
CREATE INDEX IF NOT EXISTS idx_tenders_added ON tenders(added_date);
CREATE INDEX IF NOT EXISTS idx_notifications_created ON notifications(created);
CREATE INDEX IF NOT EXISTS idx_notifications_type ON notifications(type);
"""


class PersistenceFailure(Exception):
    """Raised when a record cannot be written to storage."""

    def __init__(self, record: str, message: str):
        self.record = record
        self.message = message
        super().__init__(f"[{record}] {message}")


class Database:
    """SQLite database manager with context manager support."""

    def __init__(self, db_path: str = "data/tenders.db"):
        """
        Initialize database manager.

        Args:
            db_path: Path to SQLite database file (":memory:" for a throwaway db)
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        """
        Get or create database connection.

        Returns:
            SQLite connection object
        """
        with self._lock:
            if self._connection is None:
                self._connection = sqlite3.connect(
                    self.db_path,
                    check_same_thread=False,
                )
                self._connection.row_factory = sqlite3.Row

                if self.db_path != ":memory:":
                    self._connection.execute("PRAGMA journal_mode=WAL")

                logger.debug(f"Connected to database: {self.db_path}")

            return self._connection

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._connection:
                try:
                    self._connection.close()
                    logger.debug("Database connection closed")
                except sqlite3.Error as e:
                    logger.warning(f"Error closing database: {e}")
                finally:
                    self._connection = None

    def __enter__(self) -> "Database":
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Cursor, None, None]:
        """
        Context manager for database transactions.

        Automatically commits on success or rolls back on error.

        Yields:
            Database cursor
        """
        with self._lock:
            conn = self.connect()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error(f"Transaction rolled back: {e}")
                raise

    def initialize(self) -> None:
        """Initialize database schema."""
        with self._lock:
            conn = self.connect()
            try:
                conn.executescript(SCHEMA)
                conn.commit()
                logger.info(f"Database initialized: {self.db_path}")
            except sqlite3.Error as e:
                logger.error(f"Failed to initialize database: {e}")
                raise

    def fetch_one(
        self,
        query: str,
        params: Tuple = (),
    ) -> Optional[sqlite3.Row]:
        """Execute query and fetch one result."""
        with self._lock:
            return self.connect().execute(query, params).fetchone()

    def fetch_all(
        self,
        query: str,
        params: Tuple = (),
    ) -> List[sqlite3.Row]:
        """Execute query and fetch all results."""
        with self._lock:
            return self.connect().execute(query, params).fetchall()

    # =========================================================================
    # Portal Operations
    # =========================================================================

    def insert_portal(self, portal: Portal) -> bool:
        """
        Insert a portal unless one with the same id exists.

        Args:
            portal: Portal to insert

        Returns:
            True if inserted, False if the id was already present
        """
        query = """
        INSERT OR IGNORE INTO portals (
            id, name, url, type, active, search_endpoint,
            last_scanned, total_tenders, new_tenders
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = (
            portal.id,
            portal.name,
            portal.url,
            portal.type,
            int(portal.active),
            portal.search_endpoint,
            to_iso(portal.last_scanned),
            portal.total_tenders,
            portal.new_tenders,
        )

        with self.transaction() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount > 0

    def get_portals(self, active_only: bool = False) -> List[Portal]:
        """
        Get portals ordered by name.

        Args:
            active_only: Only return portals flagged active

        Returns:
            List of Portal objects
        """
        if active_only:
            rows = self.fetch_all("SELECT * FROM portals WHERE active = 1 ORDER BY name")
        else:
            rows = self.fetch_all("SELECT * FROM portals ORDER BY name")
        return [Portal.from_row(row) for row in rows]

    def get_portal(self, portal_id: str) -> Optional[Portal]:
        row = self.fetch_one("SELECT * FROM portals WHERE id = ?", (portal_id,))
        return Portal.from_row(row) if row else None

    def set_portal_active(self, portal_id: str, active: bool) -> bool:
        """
        Enable or disable a portal.

        Returns:
            True if the portal exists
        """
        with self.transaction() as cursor:
            cursor.execute(
                "UPDATE portals SET active = ? WHERE id = ?",
                (int(active), portal_id),
            )
            return cursor.rowcount > 0

    def update_portal_scan(
        self,
        portal_id: str,
        scanned_at: datetime,
        total_tenders: int,
        new_tenders: int,
    ) -> None:
        """
        Record the outcome of scanning a portal.

        Args:
            portal_id: Portal id
            scanned_at: When the scan ran
            total_tenders: Relevant tenders the portal returned
            new_tenders: How many of them were new

        Raises:
            PersistenceFailure: If the write fails
        """
        query = """
        UPDATE portals
        SET last_scanned = ?, total_tenders = ?, new_tenders = ?
        WHERE id = ?
        """
        try:
            with self.transaction() as cursor:
                cursor.execute(
                    query,
                    (to_iso(scanned_at), total_tenders, new_tenders, portal_id),
                )
        except sqlite3.Error as e:
            raise PersistenceFailure(f"portal/{portal_id}", str(e)) from e

    # =========================================================================
    # Tender Operations
    # =========================================================================

    def get_tender_ids(self, portal_id: str) -> Set[str]:
        """
        Get the ids of all tenders already stored for a portal.

        Args:
            portal_id: Portal id

        Returns:
            Set of tender ids
        """
        rows = self.fetch_all(
            "SELECT tender_id FROM tenders WHERE portal_id = ?",
            (portal_id,),
        )
        return {row["tender_id"] for row in rows}

    def insert_tender(self, tender: Tender) -> bool:
        """
        Insert a single tender (ignore if duplicate).

        The (portal_id, tender_id) unique constraint makes this an atomic
        insert-if-absent.

        Args:
            tender: Tender to insert

        Returns:
            True if inserted, False if duplicate

        Raises:
            PersistenceFailure: If the write fails
        """
        query = """
        INSERT OR IGNORE INTO tenders (
            tender_id, portal_id, title, organization, description, value,
            publish_date, submission_deadline, location, category, keywords,
            source, source_url, discovered, status, priority, added_date,
            matched_keyword
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """

        params = (
            tender.id,
            tender.portal_id,
            tender.title,
            tender.organization,
            tender.description,
            tender.value,
            to_iso(tender.publish_date),
            to_iso(tender.submission_deadline),
            tender.location,
            tender.category,
            dump_json(list(tender.keywords)),
            tender.source,
            tender.source_url,
            to_iso(tender.discovered),
            tender.status,
            tender.priority,
            to_iso(tender.added_date or datetime.now()),
            tender.matched_keyword,
        )

        try:
            with self.transaction() as cursor:
                cursor.execute(query, params)
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise PersistenceFailure(f"{tender.portal_id}/{tender.id}", str(e)) from e

    def get_tenders(
        self,
        portal_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Tender]:
        """
        Get stored tenders, newest first.

        Args:
            portal_id: Optional portal filter
            limit: Maximum records to return

        Returns:
            List of Tender objects
        """
        if portal_id:
            query = """
            SELECT * FROM tenders
            WHERE portal_id = ?
            ORDER BY added_date DESC, row_id DESC
            LIMIT ?
            """
            rows = self.fetch_all(query, (portal_id, limit))
        else:
            query = """
            SELECT * FROM tenders
            ORDER BY added_date DESC, row_id DESC
            LIMIT ?
            """
            rows = self.fetch_all(query, (limit,))

        return [Tender.from_row(row) for row in rows]

    def get_tender_count(self, portal_id: Optional[str] = None) -> int:
        """
        Get total tender count.

        Args:
            portal_id: Optional portal filter

        Returns:
            Number of tenders
        """
        if portal_id:
            row = self.fetch_one(
                "SELECT COUNT(*) as cnt FROM tenders WHERE portal_id = ?",
                (portal_id,),
            )
        else:
            row = self.fetch_one("SELECT COUNT(*) as cnt FROM tenders")

        return row["cnt"] if row else 0

    # =========================================================================
    # Notification Operations
    # =========================================================================

    def insert_notification(self, notification: Notification) -> int:
        """
        Persist a notification.

        Args:
            notification: Notification to insert

        Returns:
            Row id of the stored notification

        Raises:
            PersistenceFailure: If the write fails
        """
        query = """
        INSERT INTO notifications (
            type, title, message, category, priority,
            data, channels, created, read
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """

        params = (
            notification.type,
            notification.title,
            notification.message,
            notification.category,
            notification.priority,
            dump_json(notification.data),
            dump_json(list(notification.channels)),
            to_iso(notification.created),
            int(notification.read),
        )

        try:
            with self.transaction() as cursor:
                cursor.execute(query, params)
                return cursor.lastrowid
        except sqlite3.Error as e:
            raise PersistenceFailure(f"notification/{notification.type}", str(e)) from e

    def get_notifications(
        self,
        limit: int = 50,
        unread_only: bool = False,
        notification_type: Optional[str] = None,
    ) -> List[Notification]:
        """
        Get notifications, newest first.

        Args:
            limit: Maximum records to return
            unread_only: Skip notifications marked read by a consumer
            notification_type: Optional type filter

        Returns:
            List of Notification objects
        """
        clauses = []
        params: list = []
        if unread_only:
            clauses.append("read = 0")
        if notification_type:
            clauses.append("type = ?")
            params.append(notification_type)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"""
        SELECT * FROM notifications
        {where}
        ORDER BY created DESC, id DESC
        LIMIT ?
        """
        params.append(limit)

        rows = self.fetch_all(query, tuple(params))
        return [Notification.from_row(row) for row in rows]
