"""
Aggregation graph walks — cycle detection and leaf resolution.

The aggregation graph has an edge from every aggregate privilege to each of
its declared members. Both walks use an explicit stack and a visited set, so
their depth is bounded by the number of registered definitions no matter how
long (or how malformed) the aggregation chains in a snapshot are.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from privilege_integrity.privilege.definitions import PrivilegeDefinition
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode


def is_circular_aggregation(
    privilege_name: str,
    aggregate_name: str,
    definitions: Mapping[str, PrivilegeDefinition],
) -> bool:
    """
    Would declaring ``aggregate_name`` as a member of ``privilege_name``
    close a cycle?

    True if the two names are equal or if ``privilege_name`` is reachable
    from ``aggregate_name``. Every declared member is followed; a single
    path back is enough. Names without a definition are treated as leaves.
    """
    if privilege_name == aggregate_name:
        return True

    stack = [aggregate_name]
    visited = {aggregate_name}
    while stack:
        definition = definitions.get(stack.pop())
        if definition is None:
            continue
        for name in definition.declared_aggregate_names:
            if name == privilege_name:
                return True
            if name not in visited:
                visited.add(name)
                stack.append(name)
    return False


class AggregateResolver:
    """
    Resolves declared aggregate names down to atomic privilege names.

    Closures of registered aggregates are memoized, the definitions being
    immutable for the lifetime of a validation pass.
    """

    def __init__(self, definitions: Mapping[str, PrivilegeDefinition]) -> None:
        self.definitions = definitions
        self._closures: dict[str, frozenset[str]] = {}

    def _lookup(self, name: str) -> PrivilegeDefinition:
        definition = self.definitions.get(name)
        if definition is None:
            raise ConstraintViolation(
                ViolationCode.UNKNOWN_DECLARED_AGGREGATE,
                f"Invalid declared aggregate name {name}: Unknown privilege.",
            )
        return definition

    def closure_of(self, name: str) -> frozenset[str]:
        """Leaf closure of a single registered privilege."""
        if name in self._closures:
            return self._closures[name]

        definition = self._lookup(name)
        if not definition.is_aggregate:
            leaves = frozenset({name})
        else:
            leaves_set: set[str] = set()
            stack = list(definition.declared_aggregate_names)
            visited = {name, *stack}
            while stack:
                current = stack.pop()
                if current in self._closures:
                    leaves_set |= self._closures[current]
                    continue
                member = self._lookup(current)
                if not member.is_aggregate:
                    leaves_set.add(current)
                    continue
                for child in member.declared_aggregate_names:
                    if child not in visited:
                        visited.add(child)
                        stack.append(child)
            leaves = frozenset(leaves_set)

        self._closures[name] = leaves
        return leaves

    def resolve(self, names: Iterable[str]) -> frozenset[str]:
        """Flattened set of atomic names the given names decompose into."""
        leaves: set[str] = set()
        for name in names:
            leaves |= self.closure_of(name)
        return frozenset(leaves)


def resolve_aggregates(
    names: Iterable[str],
    definitions: Mapping[str, PrivilegeDefinition],
) -> frozenset[str]:
    """Resolve ``names`` to their leaf closure; see ``AggregateResolver``."""
    return AggregateResolver(definitions).resolve(names)
