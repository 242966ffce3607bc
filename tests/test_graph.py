"""
Tests for the aggregation graph walks.

Validates:
- Cycle detection over all declared members
- Leaf resolution
- Bounded traversal of long or malformed chains
"""

from __future__ import annotations

import pytest

from privilege_integrity.privilege.definitions import PrivilegeDefinition
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode
from privilege_integrity.validation.graph import (
    AggregateResolver,
    is_circular_aggregation,
    resolve_aggregates,
)


def _definitions(**aggregates: tuple[str, ...]) -> dict[str, PrivilegeDefinition]:
    return {
        name: PrivilegeDefinition(name, frozenset(members))
        for name, members in aggregates.items()
    }


class TestCircularAggregation:
    """Test cycle detection in the aggregation graph."""

    def test_self_reference_is_circular(self):
        assert is_circular_aggregation("x", "x", {})

    def test_atomic_member_is_not_circular(self):
        definitions = _definitions(read=())
        assert not is_circular_aggregation("x", "read", definitions)

    def test_transitive_reference_is_circular(self):
        definitions = _definitions(a=("b", "read"), b=("x", "read"), read=())
        assert is_circular_aggregation("x", "a", definitions)

    def test_any_sibling_path_is_enough(self):
        """A cycle through one member is not hidden by a later acyclic member."""
        definitions = _definitions(
            a=("b", "z1", "z2", "z3"),
            b=("x", "read"),
            z1=(),
            z2=(),
            z3=(),
            read=(),
        )
        assert is_circular_aggregation("x", "a", definitions)

    def test_unregistered_names_are_leaves(self):
        definitions = _definitions(a=("ghost", "read"), read=())
        assert not is_circular_aggregation("x", "a", definitions)
        assert not is_circular_aggregation("x", "ghost", definitions)

    def test_existing_cycle_terminates(self):
        definitions = _definitions(a=("b", "c"), b=("a", "c"), c=())
        assert not is_circular_aggregation("x", "a", definitions)


class TestResolveAggregates:
    """Test transitive resolution to atomic privileges."""

    def setup_method(self):
        self.definitions = _definitions(
            read=(),
            write=(),
            execute=(),
            read_write=("read", "write"),
            all=("read_write", "execute"),
        )

    def test_atomic_resolves_to_itself(self):
        assert resolve_aggregates(["read"], self.definitions) == {"read"}

    def test_aggregate_resolves_to_leaves(self):
        assert resolve_aggregates(["all"], self.definitions) == {"read", "write", "execute"}

    def test_overlapping_members_have_no_duplicates(self):
        leaves = resolve_aggregates(["read_write", "read"], self.definitions)
        assert leaves == frozenset({"read", "write"})

    def test_unknown_name_rejected(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            resolve_aggregates(["read", "ghost"], self.definitions)
        assert exc_info.value.code == ViolationCode.UNKNOWN_DECLARED_AGGREGATE

    def test_unknown_nested_name_rejected(self):
        definitions = _definitions(read=(), broken=("read", "ghost"))
        with pytest.raises(ConstraintViolation) as exc_info:
            resolve_aggregates(["broken"], definitions)
        assert exc_info.value.code == ViolationCode.UNKNOWN_DECLARED_AGGREGATE

    def test_closures_are_memoized(self):
        resolver = AggregateResolver(self.definitions)
        first = resolver.closure_of("all")
        assert resolver.closure_of("all") is first

    def test_existing_cycle_terminates(self):
        definitions = _definitions(a=("b", "read"), b=("a", "write"), read=(), write=())
        assert resolve_aggregates(["a"], definitions) == {"read", "write"}


class TestDeepChains:
    """Long aggregation chains must not exhaust the interpreter stack."""

    def setup_method(self):
        depth = 5000
        aggregates: dict[str, tuple[str, ...]] = {"leaf0": (), "leaf1": ()}
        aggregates["level0"] = ("leaf0", "leaf1")
        for i in range(1, depth):
            aggregates[f"level{i}"] = (f"level{i - 1}", "leaf0")
        self.top = f"level{depth - 1}"
        self.definitions = _definitions(**aggregates)

    def test_resolve_deep_chain(self):
        assert resolve_aggregates([self.top], self.definitions) == {"leaf0", "leaf1"}

    def test_cycle_check_deep_chain(self):
        assert not is_circular_aggregation("candidate", self.top, self.definitions)
        assert is_circular_aggregation("level0", self.top, self.definitions)
