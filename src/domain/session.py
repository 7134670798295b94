"""
Browser session - Lifecycle and group runner for browser-driven tests.

Session Lifecycle (forward-only)
================================

    NOT_STARTED -> ACTIVE   (open)
    ACTIVE      -> CLOSED   (close)

CLOSED is terminal. Every page operation requires ACTIVE and raises
SessionError otherwise, as does closing a session that is not active.

One session is shared by every test case of a group, so page state
(cookies, current URL, form input) carries over from one case to the
next unless a case resets it.
"""

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import SessionError
from .ports import BrowserDriver

logger = logging.getLogger(__name__)

DriverFactory = Callable[[], BrowserDriver]
SessionCase = Callable[["BrowserSession"], None]


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    CLOSED = "closed"


class BrowserSession:
    """Single owned browser connection of a given kind."""

    def __init__(self, driver: BrowserDriver, kind: str) -> None:
        self._driver = driver
        self.kind = kind
        self.state = SessionState.NOT_STARTED

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE

    def open(self) -> "BrowserSession":
        if self.state is not SessionState.NOT_STARTED:
            raise SessionError(f"Cannot open {self.kind} session in state {self.state.value}")
        self._driver.open(self.kind)
        self.state = SessionState.ACTIVE
        logger.info("Opened %s browser session", self.kind)
        return self

    def close(self) -> None:
        if self.state is not SessionState.ACTIVE:
            raise SessionError(f"Cannot close {self.kind} session in state {self.state.value}")
        # Terminal even if the driver fails to shut down cleanly
        self.state = SessionState.CLOSED
        self._driver.close()
        logger.info("Closed %s browser session", self.kind)

    def navigate(self, url: str) -> None:
        self._require_active()
        logger.debug("[%s] navigate %s", self.kind, url)
        self._driver.navigate(url)

    def current_url(self) -> str:
        self._require_active()
        return self._driver.current_url()

    def title(self) -> str:
        self._require_active()
        return self._driver.title()

    def find(self, selector: str) -> Any:
        """
        Locate the first element matching selector.

        Raises:
            SessionError: No active session or no matching element
        """
        self._require_active()
        element = self._driver.find(selector)
        if element is None:
            raise SessionError(f"No element matches {selector!r} on {self._driver.current_url()}")
        return element

    def text(self, selector: str) -> str:
        self.find(selector)
        return self._driver.text(selector)

    def click(self, selector: str) -> None:
        self.find(selector)
        logger.debug("[%s] click %s", self.kind, selector)
        self._driver.click(selector)

    def _require_active(self) -> None:
        if self.state is not SessionState.ACTIVE:
            raise SessionError(f"No active {self.kind} session (state: {self.state.value})")

    def __enter__(self) -> "BrowserSession":
        return self.open()

    def __exit__(self, exc_type: type[BaseException] | None, exc: object, tb: object) -> None:
        if not self.is_active:
            return
        if exc_type is None:
            self.close()
            return
        # Let the block's own exception propagate over a failed shutdown
        try:
            self.close()
        except Exception:
            logger.warning("Failed to close %s browser session", self.kind, exc_info=True)

    def __repr__(self) -> str:
        return f"BrowserSession(kind={self.kind!r}, state={self.state.value})"


@contextmanager
def session_scope(driver_factory: DriverFactory, kind: str) -> Iterator[BrowserSession]:
    """
    Open a session of the given kind and close it on exit.

    The session is released even when the enclosed block raises.
    """
    with BrowserSession(driver_factory(), kind) as session:
        yield session


@dataclass(frozen=True)
class CaseOutcome:
    """Result of running one test case against one browser kind."""

    kind: str
    name: str
    passed: bool
    error: BaseException | None = None


def _case_name(case: SessionCase) -> str:
    return getattr(case, "__name__", repr(case))


def run_session_groups(
    kinds: Iterable[str],
    cases: Sequence[SessionCase],
    driver_factory: DriverFactory,
) -> list[CaseOutcome]:
    """
    Run every case against a fresh session of each kind, in order.

    For each kind: open a session, run all cases sequentially against
    it, then close it whether or not any case failed. A failing case
    (assertion or SessionError) is recorded and the group continues.

    Args:
        kinds: Browser kinds, in run order
        cases: Test callables taking the shared session
        driver_factory: Creates a new driver for each session

    Returns:
        Outcomes in execution order
    """
    outcomes: list[CaseOutcome] = []
    for kind in kinds:
        with session_scope(driver_factory, kind) as session:
            for case in cases:
                name = _case_name(case)
                try:
                    case(session)
                except Exception as e:
                    logger.warning("[%s] %s failed: %s", kind, name, e)
                    outcomes.append(CaseOutcome(kind, name, passed=False, error=e))
                else:
                    outcomes.append(CaseOutcome(kind, name, passed=True))
    return outcomes
