"""
Base tender source for the Tender Portal Monitor.

A source turns one portal into a list of candidate Tender records. The
records are not yet persisted; their ids are assigned by the source and
are unique within the portal.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from database.models import Portal, Tender


class FetchFailure(Exception):
    """Raised when candidates for a portal cannot be retrieved."""

    def __init__(self, portal_id: str, message: str):
        self.portal_id = portal_id
        self.message = message
        super().__init__(f"[{portal_id}] {message}")


class FetchTimeoutError(FetchFailure):
    """Raised when a portal does not answer in time."""

    pass


class FetchParseError(FetchFailure):
    """Raised when a portal returns data that cannot be parsed."""

    pass


class TenderSource(ABC):
    """
    Abstract base class for all tender sources.

    Subclasses implement fetch(); callers use fetch_candidates(), which adds
    timing, logging and the conversion of any error into FetchFailure.
    """

    SOURCE_NAME: str = "base"

    def __init__(
        self,
        config: Dict[str, Any],
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize source.

        Args:
            config: Configuration dictionary
            logger: Logger instance (creates one if not provided)
        """
        self.config = config
        self.logger = logger or logging.getLogger(f"sources.{self.SOURCE_NAME}")

        scraping_config = config.get("scraping", {})
        self.headless = scraping_config.get("headless", True)
        self.user_agent = scraping_config.get("user_agent")
        self.page_load_timeout = scraping_config.get("page_load_timeout", 60)

    def fetch_candidates(self, portal: Portal) -> List[Tender]:
        """
        Retrieve candidate tenders for a portal.

        Args:
            portal: Portal to fetch

        Returns:
            List of unpersisted Tender records

        Raises:
            FetchFailure: If the portal is unreachable or returns bad data
        """
        self.logger.info(f"Fetching {portal.name} ({portal.id}) via {self.SOURCE_NAME}")
        start_time = time.monotonic()

        try:
            candidates = self.fetch(portal)
        except FetchFailure:
            elapsed = time.monotonic() - start_time
            self.logger.error(f"Fetch of {portal.id} failed after {elapsed:.1f}s")
            raise
        except Exception as e:
            elapsed = time.monotonic() - start_time
            self.logger.error(
                f"Fetch of {portal.id} failed after {elapsed:.1f}s: {e}",
                exc_info=True,
            )
            raise FetchFailure(portal.id, str(e)) from e

        elapsed = time.monotonic() - start_time
        self.logger.info(
            f"Fetched {portal.id}: {len(candidates)} candidates in {elapsed:.1f}s"
        )
        return candidates

    @abstractmethod
    def fetch(self, portal: Portal) -> List[Tender]:
        """
        Execute the retrieval logic for a portal.

        Returns:
            List of Tender records

        Raises:
            FetchFailure: If retrieval fails
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source={self.SOURCE_NAME})"
