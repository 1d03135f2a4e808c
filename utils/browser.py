"""
Browser/WebDriver utilities for the Tender Portal Monitor.

Portal pages are rendered in headless Chrome so that listings built by
JavaScript are present before the HTML is handed to the parser.
"""

import logging
import time
from contextlib import contextmanager
from typing import Generator, Optional

from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException, WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class BrowserManager:
    """Manages a Selenium WebDriver instance with automatic cleanup."""

    COOKIE_SELECTORS = [
        "#cookie-accept",
        ".cookie-consent-accept",
        "#accept-cookies",
        "button[data-action='accept']",
        "//button[contains(text(), 'Accept')]",
        "//button[contains(text(), 'I Agree')]",
    ]

    def __init__(
        self,
        headless: bool = True,
        user_agent: Optional[str] = None,
        page_load_timeout: int = 60,
        implicit_wait: int = 10,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode
            user_agent: Custom user agent string
            page_load_timeout: Seconds before a page load is abandoned
            implicit_wait: Default implicit wait time in seconds
        """
        self.headless = headless
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.page_load_timeout = page_load_timeout
        self.implicit_wait = implicit_wait
        self.driver: Optional[webdriver.Chrome] = None

    def _create_chrome_options(self) -> ChromeOptions:
        """Create Chrome options with standard settings."""
        options = ChromeOptions()

        if self.headless:
            options.add_argument("--headless=new")

        options.add_argument("--no-sandbox")
        options.add_argument("--disable-dev-shm-usage")
        options.add_argument("--disable-gpu")
        options.add_argument("--window-size=1920,1080")
        options.add_argument(f"--user-agent={self.user_agent}")
        options.add_experimental_option("excludeSwitches", ["enable-automation"])

        return options

    def create_driver(self) -> webdriver.Chrome:
        """
        Create and return a new WebDriver instance.

        Returns:
            Chrome WebDriver instance
        """
        try:
            service = ChromeService(ChromeDriverManager().install())
            self.driver = webdriver.Chrome(
                service=service,
                options=self._create_chrome_options(),
            )
            self.driver.implicitly_wait(self.implicit_wait)
            self.driver.set_page_load_timeout(self.page_load_timeout)
            logger.debug("WebDriver created successfully")
            return self.driver

        except WebDriverException as e:
            logger.error(f"Failed to create WebDriver: {e}")
            raise

    def close_driver(self) -> None:
        """Close the current WebDriver instance."""
        if self.driver:
            try:
                self.driver.quit()
                logger.debug("WebDriver closed")
            except WebDriverException as e:
                logger.warning(f"Error closing WebDriver: {e}")
            finally:
                self.driver = None

    @contextmanager
    def get_driver(self) -> Generator[webdriver.Chrome, None, None]:
        """
        Context manager for WebDriver usage.

        Example:
            with browser_manager.get_driver() as driver:
                driver.get("https://etenders.gov.in")
        """
        try:
            yield self.create_driver()
        finally:
            self.close_driver()

    def accept_cookies(self, driver: webdriver.Chrome) -> bool:
        """
        Try to accept a cookie consent dialog.

        Returns:
            True if a consent button was clicked
        """
        for selector in self.COOKIE_SELECTORS:
            by = By.XPATH if selector.startswith("//") else By.CSS_SELECTOR
            try:
                element = driver.find_element(by, selector)
            except NoSuchElementException:
                continue

            if element.is_displayed() and element.is_enabled():
                element.click()
                logger.debug(f"Accepted cookies using selector: {selector}")
                time.sleep(1)
                return True

        return False

    def load_page(
        self,
        url: str,
        wait_selector: Optional[str] = None,
        wait_timeout: int = 20,
    ) -> str:
        """
        Open a URL in a fresh browser and return the rendered HTML.

        Args:
            url: Page to load
            wait_selector: Optional CSS selector to wait for before reading
            wait_timeout: Seconds to wait for ``wait_selector``

        Returns:
            Page HTML

        Raises:
            TimeoutException: If the page or the awaited element never loads
        """
        with self.get_driver() as driver:
            driver.get(url)
            self.accept_cookies(driver)

            if wait_selector:
                WebDriverWait(driver, wait_timeout).until(
                    EC.presence_of_element_located((By.CSS_SELECTOR, wait_selector))
                )

            return driver.page_source
