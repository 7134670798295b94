"""
Dependency wiring - Factories for stores, submitters and browser drivers.

This module wires settings to infrastructure adapters and domain
services so callers (scripts, test fixtures) never construct adapters
by hand.
"""

import logging
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

from psycopg_pool import ConnectionPool

from src.adapters.browser.playwright_driver import PlaywrightBrowserDriver
from src.adapters.repository.postgres import PostgresFactStore, run_migrations
from src.config.settings import Settings, get_settings
from src.domain.ports import DatabaseConnection
from src.domain.session import DriverFactory
from src.domain.submitter import TransactionSubmitter

logger = logging.getLogger(__name__)


@contextmanager
def open_fact_store(settings: Settings | None = None) -> Iterator[PostgresFactStore]:
    """
    Open a PostgreSQL-backed fact store.

    Manages the store lifecycle:
    - Creates database connection pool
    - Runs migrations
    - Closes connection pool on exit
    """
    settings = settings or get_settings()

    logger.info("Connecting to database...")
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )
    try:
        logger.info("Running database migrations...")
        run_migrations(pool)
        yield PostgresFactStore(pool)
    finally:
        pool.close()
        logger.info("Database connection pool closed")


@contextmanager
def open_submitter(
    connection: DatabaseConnection, settings: Settings | None = None
) -> Iterator[TransactionSubmitter]:
    """
    Create a submitter with a worker pool for transact_async().

    Pending async submissions finish before the pool shuts down.
    """
    settings = settings or get_settings()
    with ThreadPoolExecutor(
        max_workers=settings.submit_workers, thread_name_prefix="transact"
    ) as executor:
        yield TransactionSubmitter(connection=connection, executor=executor)


def get_driver_factory(settings: Settings | None = None) -> DriverFactory:
    """Return a factory producing a fresh Playwright driver per session."""
    settings = settings or get_settings()

    def create_driver() -> PlaywrightBrowserDriver:
        return PlaywrightBrowserDriver(
            headless=settings.browser_headless,
            timeout_ms=settings.browser_timeout_ms,
        )

    return create_driver
