"""
Transaction model - Requests, facts, snapshots and results.

A transaction request is an ordered list of assign/retract operations on
(entity, attribute, value). Entities are either permanent ids (positive)
or request-scoped placeholders (negative) that the store resolves to
fresh permanent ids when the request is accepted.

Expansion Rules
===============

expand_request() turns a request into the facts actually written:

- Placeholders resolve to newly allocated ids in first-use order
- Attributes are cardinality-one: assigning a different value first
  writes a retraction of the current one
- Retracting a value that is not currently asserted writes nothing
- Retracting against a placeholder is a constraint violation
- Assigning two different values to the same (entity, attribute) in
  one request is a constraint violation, unless the first value is
  retracted in between
- Float values must be finite

Every store applies these rules, so results have the same shape
regardless of backend.
"""

import math
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from .exceptions import SubmissionError, SubmissionFailure, UnknownPlaceholderError

SUPPORTED_VALUE_TYPES = (str, int, float, bool)


class Op(str, Enum):
    """Kind of attribute operation."""

    ASSIGN = "assign"
    RETRACT = "retract"


@dataclass(frozen=True)
class Operation:
    """One attribute operation within a request."""

    op: Op
    entity: int
    attribute: str
    value: Any

    def __post_init__(self) -> None:
        if isinstance(self.entity, bool) or not isinstance(self.entity, int) or self.entity == 0:
            raise ValueError(f"Entity must be a non-zero integer id, got {self.entity!r}")
        if not isinstance(self.attribute, str) or not self.attribute.strip():
            raise ValueError("Attribute name must be a non-empty string")
        if not isinstance(self.value, SUPPORTED_VALUE_TYPES):
            raise ValueError(
                f"Unsupported value for {self.attribute}: {self.value!r} "
                f"(expected str, int, float or bool)"
            )
        if isinstance(self.value, float) and not math.isfinite(self.value):
            raise ValueError(f"Non-finite float for {self.attribute}: {self.value!r}")

    @property
    def is_placeholder(self) -> bool:
        return self.entity < 0


@dataclass(frozen=True)
class Fact:
    """Elementary fact written by a transaction."""

    entity: int
    attribute: str
    value: Any
    tx: int
    added: bool


@dataclass(frozen=True)
class Snapshot:
    """
    Opaque handle to the store state as of a basis transaction.

    basis_t is the id of the last transaction visible in the snapshot
    (0 for an empty store).
    """

    basis_t: int


class TransactionRequest:
    """
    Ordered builder for assign/retract operations.

    Placeholders handed out by placeholder() are negative and only
    meaningful within this request.
    """

    def __init__(self) -> None:
        self._operations: list[Operation] = []
        self._next_placeholder = -1

    def placeholder(self) -> int:
        """Allocate a fresh placeholder id for a new entity."""
        placeholder = self._next_placeholder
        self._next_placeholder -= 1
        return placeholder

    def assign(self, entity: int, attribute: str, value: Any) -> "TransactionRequest":
        self._add(Operation(Op.ASSIGN, entity, attribute, value))
        return self

    def retract(self, entity: int, attribute: str, value: Any) -> "TransactionRequest":
        self._add(Operation(Op.RETRACT, entity, attribute, value))
        return self

    def assign_map(self, entity: int, attributes: Mapping[str, Any]) -> "TransactionRequest":
        """Assign every attribute of a map to one entity, in map order."""
        for attribute, value in attributes.items():
            self.assign(entity, attribute, value)
        return self

    def _add(self, operation: Operation) -> None:
        # Keep explicit placeholders from colliding with allocated ones
        if operation.entity <= self._next_placeholder:
            self._next_placeholder = operation.entity - 1
        self._operations.append(operation)

    @property
    def operations(self) -> tuple[Operation, ...]:
        return tuple(self._operations)

    @property
    def placeholders(self) -> tuple[int, ...]:
        """Distinct placeholders referenced, in first-use order."""
        seen: dict[int, None] = {}
        for operation in self._operations:
            if operation.is_placeholder:
                seen.setdefault(operation.entity)
        return tuple(seen)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __repr__(self) -> str:
        return f"TransactionRequest({len(self._operations)} operations)"


@dataclass(frozen=True)
class TransactionResult:
    """Immutable outcome of an accepted submission."""

    db_before: Snapshot
    db_after: Snapshot
    tx_data: tuple[Fact, ...]
    tempids: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tx_data", tuple(self.tx_data))
        object.__setattr__(self, "tempids", MappingProxyType(dict(self.tempids)))

    @property
    def tx(self) -> int:
        return self.db_after.basis_t

    def resolve_tempid(self, placeholder: int) -> int:
        """
        Return the permanent id a placeholder resolved to.

        Raises:
            UnknownPlaceholderError: placeholder was not part of the request
        """
        try:
            return self.tempids[placeholder]
        except KeyError:
            raise UnknownPlaceholderError(placeholder) from None


def same_value(left: Any, right: Any) -> bool:
    """Equality that does not conflate True with 1 or 1 with 1.0."""
    return type(left) is type(right) and left == right


def expand_request(
    request: TransactionRequest,
    *,
    tx: int,
    allocate_id: Callable[[], int],
    current_value: Callable[[int, str], Any | None],
) -> tuple[list[Fact], dict[int, int]]:
    """
    Expand a request into the facts to write and the placeholder mapping.

    Args:
        request: Operations to apply
        tx: Id of the transaction being written
        allocate_id: Returns a fresh permanent entity id on each call
        current_value: Looks up the value currently asserted for
            (entity, attribute) before this transaction, or None

    Returns:
        Tuple of (facts in write order, placeholder -> permanent id)

    Raises:
        SubmissionError: CONSTRAINT_VIOLATION for retractions against
            placeholders and conflicting assigns within the request
    """
    tempids: dict[int, int] = {}
    pending: dict[tuple[int, str], Any | None] = {}
    assigned: dict[tuple[int, str], Any] = {}
    facts: list[Fact] = []

    for operation in request:
        if operation.is_placeholder:
            if operation.op is Op.RETRACT:
                raise SubmissionError(
                    SubmissionFailure.CONSTRAINT_VIOLATION,
                    f"Cannot retract {operation.attribute} from placeholder {operation.entity}",
                )
            if operation.entity not in tempids:
                tempids[operation.entity] = allocate_id()
            entity = tempids[operation.entity]
        else:
            entity = operation.entity

        key = (entity, operation.attribute)
        if key in pending:
            current = pending[key]
        else:
            current = current_value(entity, operation.attribute)

        if operation.op is Op.ASSIGN:
            if key in assigned and not same_value(assigned[key], operation.value):
                raise SubmissionError(
                    SubmissionFailure.CONSTRAINT_VIOLATION,
                    f"Conflicting values for {operation.attribute} on entity {entity}: "
                    f"{assigned[key]!r} and {operation.value!r}",
                )
            assigned[key] = operation.value
            if current is not None and not same_value(current, operation.value):
                facts.append(Fact(entity, operation.attribute, current, tx, False))
            facts.append(Fact(entity, operation.attribute, operation.value, tx, True))
            pending[key] = operation.value
        elif current is not None and same_value(current, operation.value):
            facts.append(Fact(entity, operation.attribute, operation.value, tx, False))
            pending[key] = None
            # A retracted value no longer conflicts with a later assign
            assigned.pop(key, None)

    return facts, tempids


def visible_facts(facts: list[Fact], basis_t: int) -> list[Fact]:
    """
    Reduce a fact log to the assertions still in effect at basis_t.

    The latest fact for each (entity, attribute, value) with tx <= basis_t
    wins; only those still marked added are returned.
    """
    latest: dict[tuple[int, str, type, Any], Fact] = {}
    for fact in facts:
        if fact.tx <= basis_t:
            latest[(fact.entity, fact.attribute, type(fact.value), fact.value)] = fact
    return [fact for fact in latest.values() if fact.added]
