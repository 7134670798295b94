"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from typing import Any, Protocol

from .query import Query
from .transaction import Snapshot, TransactionRequest, TransactionResult


class DatabaseConnection(Protocol):
    """Port interface for the append-only fact store."""

    def submit(self, request: TransactionRequest) -> TransactionResult:
        """
        Apply a transaction request atomically.

        Resolves every placeholder to a freshly allocated permanent id,
        writes the resulting facts in one transaction and reports the
        snapshots on either side of it.

        Args:
            request: Ordered assign/retract operations

        Returns:
            TransactionResult with before/after snapshots, written facts
            and the placeholder mapping

        Raises:
            SubmissionError: Constraint violation, conflicting write or
                lost connectivity
        """
        ...

    def snapshot(self) -> Snapshot:
        """Return a handle to the current state of the store."""
        ...

    def query(self, snapshot: Snapshot, query: Query, *params: Any) -> set[tuple]:
        """
        Evaluate a pattern query against the facts visible in a snapshot.

        Args:
            snapshot: Point in time to read
            query: Find/where pattern query
            *params: Positional values for query.params

        Returns:
            Set of result tuples, one element per find variable
        """
        ...

    def entity(self, snapshot: Snapshot, entity_id: int) -> dict[str, Any]:
        """Return {attribute: value} currently asserted for an entity."""
        ...


class BrowserDriver(Protocol):
    """Port interface for a browser automation driver."""

    def open(self, kind: str) -> None:
        """Launch a browser of the given kind and open a blank page."""
        ...

    def close(self) -> None:
        """Close the browser and release the driver connection."""
        ...

    def navigate(self, url: str) -> None:
        """Load url in the current page and wait for it to settle."""
        ...

    def current_url(self) -> str: ...

    def title(self) -> str: ...

    def find(self, selector: str) -> Any | None:
        """Return a handle to the first element matching selector, or None."""
        ...

    def click(self, selector: str) -> None: ...

    def text(self, selector: str) -> str: ...
