"""
Tests for the Aggregation Validator.

Validates:
- Bit allocation of atomic privileges
- Well-formed aggregates
- Cycle, duplicate and equivalent aggregation rejection
"""

from __future__ import annotations

import pytest

from privilege_integrity.config import settings
from privilege_integrity.constants import REP_NEXT
from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.privilege.definitions import (
    PrivilegeDefinition,
    PrivilegeDefinitionReader,
)
from privilege_integrity.privilege.provider import PrivilegeBitsProvider
from privilege_integrity.privilege.writer import PrivilegeDefinitionWriter, initialize_store
from privilege_integrity.tree.snapshot import Snapshot
from privilege_integrity.validation.aggregation import AggregationValidator
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode


def _register(snapshot: Snapshot, name: str, *aggregates: str) -> Snapshot:
    return PrivilegeDefinitionWriter(snapshot).register(name, aggregates)


def _validator(before: Snapshot, after: Snapshot | None = None) -> AggregationValidator:
    privileges_before = before.get_node(settings.privileges_path)
    privileges_after = (after or before).get_node(settings.privileges_path)
    return AggregationValidator(
        definitions=PrivilegeDefinitionReader(privileges_before).read_definitions(),
        bits_provider=PrivilegeBitsProvider(privileges_before),
        privileges_after=privileges_after,
    )


def _with_next(snapshot: Snapshot, bits: PrivilegeBits) -> Snapshot:
    node = snapshot.get_node(settings.privileges_path).state
    return snapshot.with_node(settings.privileges_path, node.with_property(REP_NEXT, bits.to_words()))


class TestAtomicPrivileges:
    """Atomic privileges own one unique bit and advance the counter."""

    def setup_method(self):
        self.store = initialize_store()
        self.with_read = _register(self.store, "read")

    def test_new_bits_with_counter_advanced(self):
        validator = _validator(self.with_read, _with_next(self.with_read, PrivilegeBits(4)))
        validator.validate(PrivilegeDefinition("write"), PrivilegeBits(2))

    def test_missing_bits_rejected(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            _validator(self.with_read).validate(PrivilegeDefinition("write"), PrivilegeBits.empty())
        assert exc_info.value.code == ViolationCode.BITS_MISSING

    def test_bits_in_use_rejected(self):
        validator = _validator(self.with_read, _with_next(self.with_read, PrivilegeBits(4)))
        with pytest.raises(ConstraintViolation) as exc_info:
            validator.validate(PrivilegeDefinition("write"), PrivilegeBits(1))
        assert exc_info.value.code == ViolationCode.BITS_IN_USE

    def test_counter_not_advanced_rejected(self):
        with pytest.raises(ConstraintViolation) as exc_info:
            _validator(self.with_read).validate(PrivilegeDefinition("write"), PrivilegeBits(2))
        assert exc_info.value.code == ViolationCode.NEXT_BITS_NOT_UPDATED

    def test_counter_advanced_too_far_rejected(self):
        validator = _validator(self.with_read, _with_next(self.with_read, PrivilegeBits(8)))
        with pytest.raises(ConstraintViolation) as exc_info:
            validator.validate(PrivilegeDefinition("write"), PrivilegeBits(2))
        assert exc_info.value.code == ViolationCode.NEXT_BITS_NOT_UPDATED


class TestAggregatePrivileges:
    """Aggregates are unions of at least two registered privileges."""

    def setup_method(self):
        store = initialize_store()
        for name in ("read", "write", "execute"):
            store = _register(store, name)
        self.atomic = store
        self.store = _register(store, "read_write", "read", "write")

    def _validate(self, name: str, bits: int, *members: str) -> None:
        definition = PrivilegeDefinition(name, frozenset(members))
        _validator(self.store).validate(definition, PrivilegeBits(bits))

    def _rejects(self, code: ViolationCode, name: str, bits: int, *members: str) -> None:
        with pytest.raises(ConstraintViolation) as exc_info:
            self._validate(name, bits, *members)
        assert exc_info.value.code == code

    def test_valid_aggregate_accepted(self):
        definition = PrivilegeDefinition("read_write", frozenset({"read", "write"}))
        _validator(self.atomic).validate(definition, PrivilegeBits(0b011))

    def test_aggregate_of_aggregate_accepted(self):
        self._validate("all", 0b111, "read_write", "execute")

    def test_aggregate_bits_may_equal_existing_aggregate_bits(self):
        """Only atomic privileges must have unique bits."""
        self._validate("read_execute", 0b101, "read", "execute")

    def test_singular_aggregation_rejected(self):
        self._rejects(ViolationCode.SINGULAR_AGGREGATION, "only_read", 0b001, "read")

    def test_unregistered_member_rejected(self):
        self._rejects(ViolationCode.UNREGISTERED_AGGREGATE, "broken", 0b001, "read", "ghost")

    def test_self_reference_rejected(self):
        self._rejects(ViolationCode.CIRCULAR_AGGREGATION, "x", 0b001, "x", "read")

    def test_bits_not_union_of_members_rejected(self):
        self._rejects(ViolationCode.INVALID_AGGREGATE_BITS, "read_execute", 0b001, "read", "execute")

    def test_bits_union_of_leaves_not_members_rejected(self):
        """Bits must be the union of the direct members, not a superset."""
        self._rejects(ViolationCode.INVALID_AGGREGATE_BITS, "all", 0b1111, "read_write", "execute")

    def test_duplicate_members_rejected(self):
        self._rejects(ViolationCode.DUPLICATE_AGGREGATION, "write_read", 0b011, "write", "read")

    def test_equivalent_leaf_closure_rejected(self):
        self._rejects(ViolationCode.DUPLICATE_AGGREGATION, "all", 0b011, "read_write", "write")

    def test_equivalent_via_nested_existing_rejected(self):
        store = _register(self.store, "all", "read_write", "execute")
        definition = PrivilegeDefinition("everything", frozenset({"read", "write", "execute"}))
        with pytest.raises(ConstraintViolation) as exc_info:
            _validator(store).validate(definition, PrivilegeBits(0b111))
        assert exc_info.value.code == ViolationCode.DUPLICATE_AGGREGATION
        assert "'all'" in exc_info.value.message
