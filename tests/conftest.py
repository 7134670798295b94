"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory fact store and submitter
- Recording fake browser driver
- Browser session fixtures (src.testing.fixtures plugin)
"""

from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest

from src.adapters.repository.memory import InMemoryFactStore
from src.domain.submitter import TransactionSubmitter
from tests.fakes import DOCS_PAGES, FakeBrowserDriver

pytest_plugins = ["pytester", "src.testing.fixtures"]


@pytest.fixture
def store() -> InMemoryFactStore:
    """Fresh in-memory fact store for each test."""
    return InMemoryFactStore()


@pytest.fixture
def submitter(store: InMemoryFactStore) -> Iterator[TransactionSubmitter]:
    """Submitter over the in-memory store with a small async worker pool."""
    with ThreadPoolExecutor(max_workers=2) as executor:
        yield TransactionSubmitter(connection=store, executor=executor)


@pytest.fixture
def driver_events() -> list[tuple]:
    return []


@pytest.fixture
def fake_driver_factory(driver_events: list[tuple]) -> Callable[[], FakeBrowserDriver]:
    """Factory creating FakeBrowserDriver instances over DOCS_PAGES."""

    def create_driver() -> FakeBrowserDriver:
        return FakeBrowserDriver(DOCS_PAGES, driver_events)

    return create_driver
