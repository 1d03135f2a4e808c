"""
One scan cycle across all active portals.

Portals are fetched concurrently on a thread pool and the cycle waits for
every outcome before touching the database. Candidates are then filtered
for relevance, scored, de-duplicated and notified portal by portal. No
single portal or record failure escapes perform_scan().
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from database.models import Portal, Tender
from monitor.dedup import DeduplicationStore
from monitor.portals import PortalRegistry
from notifications.emitter import NotificationEmitter
from sources.base import FetchFailure, FetchTimeoutError, TenderSource
from utils.keywords import KeywordMatcher
from utils.priority import PriorityScorer, ThresholdPriorityScorer

logger = logging.getLogger(__name__)

SourceFactory = Callable[[Portal], TenderSource]
FetchOutcome = Union[List[Tender], FetchFailure]


@dataclass
class PortalScanResult:
    """Outcome of scanning a single portal."""

    portal_id: str
    portal_name: str
    success: bool
    records_found: int = 0
    records_relevant: int = 0
    records_new: int = 0
    error: Optional[str] = None


@dataclass
class ScanStats:
    """Aggregate outcome of a scan cycle."""

    scan_time: datetime
    duration: float = 0.0
    total_new_tenders: int = 0
    successful_scans: int = 0
    failed_scans: int = 0
    portal_results: List[PortalScanResult] = field(default_factory=list)
    aborted: bool = False

    def to_summary(self) -> Dict[str, Any]:
        """Summary payload stored on the scan-summary notification."""
        return {
            "totalNewTenders": self.total_new_tenders,
            "successfulScans": self.successful_scans,
            "failedScans": self.failed_scans,
            "scanTime": self.scan_time,
            "duration": round(self.duration, 3),
        }


def filter_by_keywords(candidates: List[Tender], matcher: KeywordMatcher) -> List[Tender]:
    """
    Keep the candidates whose text mentions a configured keyword.

    Title, description and the candidate's own keyword list are searched.
    The first matching keyword is recorded on the tender.

    Args:
        candidates: Tenders returned by a source
        matcher: KeywordMatcher instance

    Returns:
        Relevant tenders, in their original order
    """
    relevant = []

    for tender in candidates:
        match = matcher.get_first_match([
            tender.title,
            tender.description,
            " ".join(tender.keywords),
        ])
        if match:
            tender.matched_keyword = match
            relevant.append(tender)

    return relevant


class Scanner:
    """Runs scan cycles."""

    def __init__(
        self,
        registry: PortalRegistry,
        source_for: SourceFactory,
        dedup: DeduplicationStore,
        emitter: NotificationEmitter,
        matcher: KeywordMatcher,
        scorer: Optional[PriorityScorer] = None,
        max_workers: int = 8,
        fetch_timeout: Optional[float] = 300,
    ):
        """
        Initialize scanner.

        Args:
            registry: Portal catalog
            source_for: Returns the TenderSource serving a portal
            dedup: New-tender filter
            emitter: Notification emitter
            matcher: Relevance filter
            scorer: Priority scoring function (threshold scorer if None)
            max_workers: Upper bound on concurrent portal fetches
            fetch_timeout: Seconds to wait for the fetches (None waits forever)
        """
        self.registry = registry
        self.source_for = source_for
        self.dedup = dedup
        self.emitter = emitter
        self.matcher = matcher
        self.scorer = scorer or ThresholdPriorityScorer()
        self.max_workers = max(1, max_workers)
        self.fetch_timeout = fetch_timeout

    def perform_scan(self) -> ScanStats:
        """
        Run one full scan cycle.

        Returns:
            Aggregate statistics for the cycle
        """
        logger.info("Starting portal scan...")
        stats = ScanStats(scan_time=datetime.now())
        started = time.monotonic()

        try:
            portals = self.registry.list_active_portals()
        except Exception as e:
            stats.aborted = True
            stats.duration = time.monotonic() - started
            logger.error(f"Cannot read portal catalog, scan abandoned: {e}", exc_info=True)
            return stats

        if not portals:
            logger.warning("No active portals to scan")

        outcomes = self._fetch_all(portals)

        for portal in portals:
            outcome = outcomes[portal.id]
            if isinstance(outcome, FetchFailure):
                result = PortalScanResult(
                    portal_id=portal.id,
                    portal_name=portal.name,
                    success=False,
                    error=str(outcome),
                )
                logger.error(f"Failed to scan {portal.name}: {outcome}")
            else:
                result = self._process_portal(portal, outcome)

            stats.portal_results.append(result)
            if result.success:
                stats.successful_scans += 1
                stats.total_new_tenders += result.records_new
            else:
                stats.failed_scans += 1

        stats.duration = time.monotonic() - started
        self.emitter.emit_scan_summary(stats.to_summary())
        self._log_summary(stats)

        return stats

    def _fetch_one(self, portal: Portal) -> List[Tender]:
        source = self.source_for(portal)
        return source.fetch_candidates(portal)

    def _fetch_all(self, portals: List[Portal]) -> Dict[str, FetchOutcome]:
        """Fetch every portal concurrently and collect each outcome."""
        if not portals:
            return {}

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(portals)),
            thread_name_prefix="portal-fetch",
        )
        futures = {executor.submit(self._fetch_one, portal): portal for portal in portals}

        never_started = set()
        try:
            _, not_done = wait(futures, timeout=self.fetch_timeout)
            for future in not_done:
                # Only succeeds for fetches still queued behind busy workers
                if future.cancel():
                    never_started.add(future)
        finally:
            # A stuck fetch keeps its thread; the cycle does not wait for it
            executor.shutdown(wait=False, cancel_futures=True)

        outcomes: Dict[str, FetchOutcome] = {}
        for future, portal in futures.items():
            if future in never_started:
                outcomes[portal.id] = FetchTimeoutError(
                    portal.id,
                    f"Not started within the {self.fetch_timeout}s scan deadline, all fetch workers busy",
                )
                continue
            if future in not_done:
                outcomes[portal.id] = FetchTimeoutError(
                    portal.id, f"No answer within {self.fetch_timeout}s"
                )
                continue

            try:
                outcomes[portal.id] = future.result()
            except FetchFailure as e:
                outcomes[portal.id] = e
            except Exception as e:
                outcomes[portal.id] = FetchFailure(portal.id, str(e))

        return outcomes

    def _process_portal(self, portal: Portal, candidates: List[Tender]) -> PortalScanResult:
        """
        Filter, store and notify the candidates of one portal.

        Once the new tenders are stored the portal counts as scanned: a
        failure to update the portal counters or to notify one tender is
        logged and does not affect the other tenders.
        """
        result = PortalScanResult(
            portal_id=portal.id,
            portal_name=portal.name,
            success=False,
            records_found=len(candidates),
        )

        try:
            relevant = filter_by_keywords(candidates, self.matcher)
            for tender in relevant:
                tender.portal_id = portal.id
                tender.priority = self.scorer(tender)

            new_tenders = self.dedup.filter_new(relevant, portal.id)
        except Exception as e:
            result.error = str(e)
            logger.error(f"Error processing {portal.name}: {e}", exc_info=True)
            return result

        result.success = True
        result.records_relevant = len(relevant)
        result.records_new = len(new_tenders)

        portal.last_scanned = datetime.now()
        portal.total_tenders = len(relevant)
        portal.new_tenders = len(new_tenders)
        try:
            self.registry.record_scan(
                portal.id,
                portal.last_scanned,
                portal.total_tenders,
                portal.new_tenders,
            )
        except Exception as e:
            logger.error(
                f"Could not update scan counters of {portal.name}: {e}",
                exc_info=True,
            )

        for tender in new_tenders:
            try:
                self.emitter.emit_new_tender(tender, portal)
            except Exception as e:
                logger.error(
                    f"Could not notify tender {tender.id} from {portal.name}: {e}",
                    exc_info=True,
                )

        logger.info(
            f"{portal.name}: {len(candidates)} total, {len(relevant)} matched keywords, "
            f"{len(new_tenders)} new"
        )
        return result

    def _log_summary(self, stats: ScanStats) -> None:
        logger.info("-" * 60)
        logger.info("SCAN SUMMARY")
        logger.info("-" * 60)
        logger.info(
            f"Portals: {stats.successful_scans} succeeded, {stats.failed_scans} failed"
        )
        logger.info(
            f"New tenders: {stats.total_new_tenders} "
            f"(scan completed in {stats.duration:.1f}s)"
        )
