"""Browser adapters - Browser automation driver implementations."""

from .playwright_driver import BROWSER_ALIASES, PlaywrightBrowserDriver

__all__ = ["BROWSER_ALIASES", "PlaywrightBrowserDriver"]
