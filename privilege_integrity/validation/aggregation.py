"""
Aggregation Validator — accepts or rejects a single new privilege definition.

Checks, in order:

- the definition carries bits
- atomic privileges do not reuse bits and advance the allocation counter
- aggregates declare at least two members
- every declared member is registered and none closes a cycle
- an aggregate's bits are the union of its directly declared members' bits
- no registered aggregate declares the same members or resolves to the same
  leaf privileges
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.privilege.definitions import PrivilegeDefinition
from privilege_integrity.privilege.provider import PrivilegeBitsProvider
from privilege_integrity.tree.snapshot import NodeView
from privilege_integrity.validation.counter import check_next_bits
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode
from privilege_integrity.validation.graph import AggregateResolver, is_circular_aggregation

logger = logging.getLogger(__name__)


class AggregationValidator:
    """
    Validates proposed definitions against the definitions registered in the
    before snapshot.

    Args:
        definitions: Registered definitions (before snapshot).
        bits_provider: Bits of the registered definitions (before snapshot).
        privileges_after: Privileges node of the after snapshot, read for the
            allocation counter.
    """

    def __init__(
        self,
        definitions: Mapping[str, PrivilegeDefinition],
        bits_provider: PrivilegeBitsProvider,
        privileges_after: NodeView,
    ) -> None:
        self.definitions = definitions
        self.bits_provider = bits_provider
        self.privileges_after = privileges_after
        self.resolver = AggregateResolver(definitions)

    def validate(self, definition: PrivilegeDefinition, new_bits: PrivilegeBits) -> None:
        """
        Validate one new definition.

        Raises:
            ConstraintViolation: on the first rule the definition breaks.
        """
        if new_bits.is_empty():
            raise ConstraintViolation(ViolationCode.BITS_MISSING, "PrivilegeBits are missing.")

        colliding_names = self.bits_provider.get_privilege_names(new_bits)
        declared_names = definition.declared_aggregate_names

        # Atomic privilege
        if not declared_names:
            if colliding_names:
                logger.info(
                    "Privilege %s reuses bits of %s", definition.name, sorted(colliding_names)
                )
                raise ConstraintViolation(
                    ViolationCode.BITS_IN_USE, "PrivilegeBits already in use."
                )
            check_next_bits(new_bits, self.privileges_after)
            logger.debug("Accepted atomic privilege %s with %r", definition.name, new_bits)
            return

        if len(declared_names) == 1:
            raise ConstraintViolation(
                ViolationCode.SINGULAR_AGGREGATION,
                "Singular aggregation is equivalent to existing privilege.",
            )

        self._validate_aggregation(definition.name, declared_names, new_bits)
        logger.debug("Accepted aggregate privilege %s", definition.name)

    def _validate_aggregation(
        self,
        definition_name: str,
        declared_names: frozenset[str],
        new_bits: PrivilegeBits,
    ) -> None:
        for name in sorted(declared_names):
            if is_circular_aggregation(definition_name, name, self.definitions):
                raise ConstraintViolation(
                    ViolationCode.CIRCULAR_AGGREGATION,
                    "Detected circular aggregation within custom privilege caused by "
                    f"{name}",
                )
            if name not in self.definitions:
                raise ConstraintViolation(
                    ViolationCode.UNREGISTERED_AGGREGATE,
                    f"Declared aggregate '{name}' is not a registered privilege.",
                )

        leaf_closure = self.resolver.resolve(declared_names)

        if new_bits != self.bits_provider.get_bits(*declared_names):
            raise ConstraintViolation(
                ViolationCode.INVALID_AGGREGATE_BITS,
                "Invalid privilege bits for aggregated privilege definition.",
            )

        for existing in sorted(self.definitions.values(), key=lambda d: d.name):
            existing_declared = existing.declared_aggregate_names
            if not existing_declared:
                continue
            # Same literal aggregation, or same net effect via other members
            if (
                declared_names == existing_declared
                or leaf_closure == self.resolver.resolve(existing_declared)
            ):
                raise ConstraintViolation(
                    ViolationCode.DUPLICATE_AGGREGATION,
                    f"Custom aggregate privilege '{definition_name}' is already "
                    f"covered by '{existing.name}'",
                )
