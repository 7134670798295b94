"""
Pattern queries over visible facts.

A query names the variables to return (find) and a list of
(entity, attribute, value) clauses (where). Terms starting with "?"
are variables; anything else must match exactly. Clauses are joined
left to right on shared variables. Variables listed in params are
bound positionally from the caller's arguments before evaluation.

Example:
    Query(
        find=("?name",),
        where=(("?recipe", "recipe/cuisine", "?cuisine"),
               ("?recipe", "recipe/name", "?name")),
        params=("?cuisine",),
    )
"""

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .transaction import Fact, same_value


def is_variable(term: Any) -> bool:
    return isinstance(term, str) and term.startswith("?")


@dataclass(frozen=True)
class Query:
    """Find/where pattern query."""

    find: tuple[str, ...]
    where: tuple[tuple[Any, Any, Any], ...]
    params: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "find", tuple(self.find))
        object.__setattr__(self, "where", tuple(tuple(clause) for clause in self.where))
        object.__setattr__(self, "params", tuple(self.params))

        if not self.find:
            raise ValueError("Query must find at least one variable")
        for clause in self.where:
            if len(clause) != 3:
                raise ValueError(f"Clause must be (entity, attribute, value), got {clause!r}")
        for name in (*self.find, *self.params):
            if not is_variable(name):
                raise ValueError(f"{name!r} is not a variable (must start with '?')")

        bound = set(self.params)
        for clause in self.where:
            bound.update(term for term in clause if is_variable(term))
        unbound = [name for name in self.find if name not in bound]
        if unbound:
            raise ValueError(f"Find variables not bound by any clause: {unbound}")

    @property
    def attributes(self) -> frozenset[str] | None:
        """Constant attributes used by the clauses, or None if any is a variable."""
        names = set()
        for _, attribute, _ in self.where:
            if is_variable(attribute):
                return None
            names.add(attribute)
        return frozenset(names)


def _unify(
    clause: tuple[Any, Any, Any], fact: Fact, binding: dict[str, Any]
) -> dict[str, Any] | None:
    extended = binding
    for term, actual in zip(clause, (fact.entity, fact.attribute, fact.value)):
        if is_variable(term):
            if term in extended:
                if not same_value(extended[term], actual):
                    return None
            else:
                if extended is binding:
                    extended = dict(binding)
                extended[term] = actual
        elif not same_value(term, actual):
            return None
    return extended


def evaluate(facts: Iterable[Fact], query: Query, params: tuple[Any, ...]) -> set[tuple]:
    """
    Evaluate a query against an iterable of visible facts.

    Raises:
        ValueError: params does not match query.params in length
    """
    if len(params) != len(query.params):
        raise ValueError(f"Query expects {len(query.params)} params, got {len(params)}")

    by_attribute: dict[str, list[Fact]] = defaultdict(list)
    all_facts: list[Fact] = []
    for fact in facts:
        by_attribute[fact.attribute].append(fact)
        all_facts.append(fact)

    bindings: list[dict[str, Any]] = [dict(zip(query.params, params))]
    for clause in query.where:
        matched: list[dict[str, Any]] = []
        for binding in bindings:
            attribute = binding.get(clause[1], clause[1]) if is_variable(clause[1]) else clause[1]
            candidates = all_facts if is_variable(attribute) else by_attribute.get(attribute, [])
            for fact in candidates:
                extended = _unify(clause, fact, binding)
                if extended is not None:
                    matched.append(extended)
        bindings = matched
        if not bindings:
            break

    return {tuple(binding[name] for name in query.find) for binding in bindings}
