"""
Control surface of the tender portal monitor.

PortalMonitor wires the components together from configuration and
exposes the operations an outer layer (CLI, HTTP API) needs: start and
stop monitoring, trigger a scan, and read portals, tenders and
notifications.
"""

import logging
from typing import Any, Dict, List, Optional

from database.db import Database
from database.queries import TenderQueries
from database.models import Notification, Portal, Tender
from monitor.dedup import DeduplicationStore
from monitor.portals import PortalRegistry
from monitor.scan import Scanner, ScanStats, SourceFactory
from monitor.scheduler import Clock, ScanScheduler
from notifications.broadcaster import Broadcaster, LocalBroadcaster
from notifications.emitter import NotificationEmitter
from notifications.sender import OutlookSender
from sources.registry import SourceRegistry
from utils.keywords import KeywordMatcher
from utils.priority import PriorityScorer, ThresholdPriorityScorer

logger = logging.getLogger(__name__)


class PortalMonitor:
    """Facade over the scan loop and the stored results."""

    def __init__(
        self,
        db: Database,
        registry: PortalRegistry,
        scanner: Scanner,
        scheduler: ScanScheduler,
        broadcaster: Broadcaster,
    ):
        self.db = db
        self.registry = registry
        self.scanner = scanner
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.queries = TenderQueries(db)

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        broadcaster: Optional[Broadcaster] = None,
        clock: Optional[Clock] = None,
        source_for: Optional[SourceFactory] = None,
        scorer: Optional[PriorityScorer] = None,
    ) -> "PortalMonitor":
        """
        Build a ready-to-use monitor.

        Initializes the database schema and seeds the portal catalog.

        Args:
            config: Configuration dictionary (see utils.config)
            broadcaster: Real-time channel (in-process broadcaster if None)
            clock: Timer source for the scheduler (wall clock if None)
            source_for: Portal -> TenderSource factory (config-driven if None)
            scorer: Priority scoring function (config-driven if None)

        Returns:
            PortalMonitor instance
        """
        db = Database(config["database"]["path"])
        db.initialize()

        registry = PortalRegistry(db, config.get("portals", []))
        registry.seed()

        keywords_config = config.get("keywords", {})
        matcher = KeywordMatcher(
            keywords=keywords_config.get("terms", []),
            keywords_file=keywords_config.get("file"),
            exclusions=keywords_config.get("exclusions", []),
        )

        email_config = config.get("email", {})
        email_sender = OutlookSender(email_config) if email_config.get("enabled") else None

        broadcaster = broadcaster or LocalBroadcaster()
        emitter = NotificationEmitter(db, broadcaster, email_sender)

        monitoring = config.get("monitoring", {})
        scanner = Scanner(
            registry=registry,
            source_for=source_for or SourceRegistry(config),
            dedup=DeduplicationStore(db),
            emitter=emitter,
            matcher=matcher,
            scorer=scorer or ThresholdPriorityScorer.from_config(config),
            max_workers=monitoring.get("max_workers", 8),
            fetch_timeout=config.get("scraping", {}).get("fetch_timeout", 300),
        )

        scheduler = ScanScheduler(
            scan_fn=scanner.perform_scan,
            interval_minutes=monitoring.get("interval_minutes", 60),
            clock=clock,
        )

        return cls(db, registry, scanner, scheduler, broadcaster)

    @property
    def is_monitoring(self) -> bool:
        return self.scheduler.is_active

    def start_monitoring(self) -> bool:
        """Start periodic scanning; a no-op if already running."""
        return self.scheduler.start()

    def stop_monitoring(self) -> bool:
        """Stop periodic scanning after any in-flight scan."""
        return self.scheduler.stop()

    def scan_now(self) -> ScanStats:
        """Run a single scan cycle in the calling thread."""
        return self.scanner.perform_scan()

    def list_portals(self) -> List[Portal]:
        return self.registry.list_portals()

    def set_portal_active(self, portal_id: str, active: bool) -> bool:
        return self.registry.set_active(portal_id, active)

    def list_tenders(self, portal_id: Optional[str] = None, limit: int = 100) -> List[Tender]:
        return self.db.get_tenders(portal_id=portal_id, limit=limit)

    def list_notifications(self, limit: int = 50, unread_only: bool = False) -> List[Notification]:
        return self.db.get_notifications(limit=limit, unread_only=unread_only)

    def search_tenders(self, term: str, limit: int = 100) -> List[Tender]:
        return self.queries.search_tenders(term, limit=limit)

    def upcoming_deadlines(self, days: int = 7, limit: int = 100) -> List[Tender]:
        return self.queries.get_upcoming_deadlines(days, limit=limit)

    def portal_statistics(self) -> List[Dict[str, Any]]:
        """Stored tender count and last scan time per portal."""
        return self.queries.get_portal_statistics()

    def unread_notification_count(self) -> int:
        return self.queries.get_unread_notification_count()

    def close(self) -> None:
        """Stop monitoring and release the database."""
        self.stop_monitoring()
        self.db.close()

    def __enter__(self) -> "PortalMonitor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
