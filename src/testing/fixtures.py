"""
pytest plugin - Browser session fixtures shared by a test module.

Enable with `pytest_plugins = ["src.testing.fixtures"]` in a conftest.

Every test requesting `browser_session` is parametrized over the
configured browser kinds at module scope. pytest then runs all of a
module's tests against one session of the first kind, closes it, and
repeats with the next kind. The session is shared: page state left by
one test is visible to the next.
"""

from collections.abc import Iterator

import pytest

from src.config.settings import get_settings
from src.dependencies import get_driver_factory
from src.domain.session import BrowserSession, DriverFactory, session_scope


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--browser-kind",
        action="append",
        dest="browser_kinds",
        default=None,
        help="Browser kind to run session tests against (repeatable, in order). "
        "Defaults to the BROWSER_KINDS setting.",
    )


def pytest_generate_tests(metafunc: pytest.Metafunc) -> None:
    if "browser_kind" in metafunc.fixturenames:
        kinds = metafunc.config.getoption("browser_kinds") or get_settings().browser_kinds
        metafunc.parametrize("browser_kind", kinds, scope="module")


@pytest.fixture(scope="session")
def browser_driver_factory() -> DriverFactory:
    """Driver factory used for every session; override to swap drivers."""
    return get_driver_factory()


@pytest.fixture(scope="module")
def browser_session(
    browser_kind: str, browser_driver_factory: DriverFactory
) -> Iterator[BrowserSession]:
    """Open one session per module and kind, closed even if tests fail."""
    with session_scope(browser_driver_factory, browser_kind) as session:
        yield session
