"""
In-memory fact store adapter - Implements DatabaseConnection protocol.

Keeps the fact log in process memory. Suitable for demos and unit tests;
nothing survives the process.
"""

import itertools
import logging
import threading
from typing import Any

from src.domain.query import Query, evaluate
from src.domain.transaction import (
    Fact,
    Snapshot,
    TransactionRequest,
    TransactionResult,
    expand_request,
    visible_facts,
)

logger = logging.getLogger(__name__)


class InMemoryFactStore:
    """
    Implements DatabaseConnection protocol with a list of facts.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Submissions are serialized by a lock; reads copy the log first.
    """

    def __init__(self, first_entity_id: int = 1000) -> None:
        self._facts: list[Fact] = []
        self._basis_t = 0
        self._entity_ids = itertools.count(first_entity_id)
        self._lock = threading.Lock()

    def submit(self, request: TransactionRequest) -> TransactionResult:
        with self._lock:
            basis_before = self._basis_t
            tx = basis_before + 1

            def current_value(entity: int, attribute: str) -> Any | None:
                for fact in reversed(visible_facts(self._facts, basis_before)):
                    if fact.entity == entity and fact.attribute == attribute:
                        return fact.value
                return None

            facts, tempids = expand_request(
                request,
                tx=tx,
                allocate_id=lambda: next(self._entity_ids),
                current_value=current_value,
            )
            self._facts.extend(facts)
            self._basis_t = tx

        logger.debug("In-memory transaction %d wrote %d facts", tx, len(facts))
        return TransactionResult(
            db_before=Snapshot(basis_before),
            db_after=Snapshot(tx),
            tx_data=facts,
            tempids=tempids,
        )

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(self._basis_t)

    def query(self, snapshot: Snapshot, query: Query, *params: Any) -> set[tuple]:
        return evaluate(self._visible(snapshot), query, params)

    def entity(self, snapshot: Snapshot, entity_id: int) -> dict[str, Any]:
        return {
            fact.attribute: fact.value
            for fact in self._visible(snapshot)
            if fact.entity == entity_id
        }

    def _visible(self, snapshot: Snapshot) -> list[Fact]:
        with self._lock:
            facts = list(self._facts)
        return visible_facts(facts, snapshot.basis_t)
