"""
Playwright browser driver adapter - Implements BrowserDriver protocol.

Drives a real browser through Playwright's synchronous API. Each driver
owns one Playwright instance, one browser and one page for the lifetime
of a session. Playwright failures are translated into SessionError so
test code only deals with domain errors.
"""

import logging
from typing import Any

from playwright.sync_api import Browser, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError

from src.domain.exceptions import SessionError

logger = logging.getLogger(__name__)

# Friendly names accepted in settings, mapped to Playwright browser types.
BROWSER_ALIASES = {
    "chromium": "chromium",
    "chrome": "chromium",
    "firefox": "firefox",
    "webkit": "webkit",
    "safari": "webkit",
}


class PlaywrightBrowserDriver:
    """
    Implements BrowserDriver protocol via playwright.sync_api.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, headless: bool = True, timeout_ms: int = 10_000) -> None:
        self._headless = headless
        self._timeout_ms = timeout_ms
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None

    def open(self, kind: str) -> None:
        """
        Launch a browser of the given kind with a single blank page.

        Raises:
            SessionError: Unknown kind, driver already open, or launch failure
        """
        browser_type_name = BROWSER_ALIASES.get(kind.lower())
        if browser_type_name is None:
            raise SessionError(
                f"Unsupported browser kind {kind!r} (expected one of {sorted(BROWSER_ALIASES)})"
            )
        if self._page is not None:
            raise SessionError("Driver already has an open browser")

        logger.info("Launching %s (headless=%s)", browser_type_name, self._headless)
        try:
            self._playwright = sync_playwright().start()
        except PlaywrightError as e:
            raise SessionError(f"Failed to start Playwright for {kind}: {e.message}") from e
        try:
            browser_type = getattr(self._playwright, browser_type_name)
            self._browser = browser_type.launch(headless=self._headless)
            self._page = self._browser.new_page()
            self._page.set_default_timeout(self._timeout_ms)
        except PlaywrightError as e:
            self._shutdown()
            raise SessionError(f"Failed to launch {kind}: {e.message}") from e

    def close(self) -> None:
        """
        Close the browser and stop Playwright.

        Raises:
            SessionError: Nothing is open, or Playwright failed during shutdown
        """
        if self._playwright is None:
            raise SessionError("Driver has no open browser")
        self._shutdown()

    def navigate(self, url: str) -> None:
        page = self._require_page()
        try:
            page.goto(url)
        except PlaywrightError as e:
            raise SessionError(f"Navigation to {url} failed: {e.message}") from e

    def current_url(self) -> str:
        return self._require_page().url

    def title(self) -> str:
        return self._require_page().title()

    def find(self, selector: str) -> Any | None:
        try:
            return self._require_page().query_selector(selector)
        except PlaywrightError as e:
            raise SessionError(f"Invalid selector {selector!r}: {e.message}") from e

    def click(self, selector: str) -> None:
        try:
            self._require_page().click(selector)
        except PlaywrightError as e:
            raise SessionError(f"Click on {selector!r} failed: {e.message}") from e

    def text(self, selector: str) -> str:
        try:
            return self._require_page().inner_text(selector)
        except PlaywrightError as e:
            raise SessionError(f"Reading text of {selector!r} failed: {e.message}") from e

    def _require_page(self) -> Page:
        if self._page is None:
            raise SessionError("Driver has no open browser")
        return self._page

    def _shutdown(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._page = None
        self._playwright = None
        try:
            try:
                if browser is not None:
                    browser.close()
            finally:
                if playwright is not None:
                    playwright.stop()
        except PlaywrightError as e:
            raise SessionError(f"Failed to shut down browser: {e.message}") from e
