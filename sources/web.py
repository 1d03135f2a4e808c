"""
Browser-backed tender source.

Loads the portal's listing page (``portal.url + portal.search_endpoint``)
in headless Chrome and hands the rendered HTML to the subclass parser.
"""

from abc import abstractmethod
from typing import List, Optional

from bs4 import BeautifulSoup
from selenium.common.exceptions import TimeoutException, WebDriverException

from database.models import Portal, Tender
from sources.base import FetchFailure, FetchParseError, FetchTimeoutError, TenderSource
from sources.utils import normalize_url
from utils.browser import BrowserManager


class HttpTenderSource(TenderSource):
    """
    Base class for sources that scrape a portal's HTML listing.

    Subclasses implement parse(). WAIT_SELECTOR, when set, is awaited before
    the page source is read.
    """

    SOURCE_NAME = "http"
    WAIT_SELECTOR: Optional[str] = None

    def listing_url(self, portal: Portal) -> str:
        return normalize_url(portal.search_endpoint, portal.url) or portal.url

    def load_html(self, url: str) -> str:
        """Render a page and return its HTML."""
        browser = BrowserManager(
            headless=self.headless,
            user_agent=self.user_agent,
            page_load_timeout=self.page_load_timeout,
        )
        return browser.load_page(url, wait_selector=self.WAIT_SELECTOR)

    def fetch(self, portal: Portal) -> List[Tender]:
        url = self.listing_url(portal)

        try:
            html = self.load_html(url)
        except TimeoutException as e:
            raise FetchTimeoutError(portal.id, f"Timed out loading {url}") from e
        except WebDriverException as e:
            raise FetchFailure(portal.id, f"Browser error loading {url}: {e.msg}") from e

        soup = BeautifulSoup(html, "lxml")

        try:
            return self.parse(soup, portal)
        except FetchFailure:
            raise
        except (AttributeError, IndexError, KeyError, ValueError) as e:
            raise FetchParseError(portal.id, f"Unexpected page layout: {e}") from e

    @abstractmethod
    def parse(self, soup: BeautifulSoup, portal: Portal) -> List[Tender]:
        """
        Extract tenders from a rendered listing page.

        Args:
            soup: Parsed page
            portal: Portal the page belongs to

        Returns:
            List of Tender records
        """
        pass
