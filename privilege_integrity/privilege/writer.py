"""
Privilege registration — derives the proposed after snapshot of a commit.

The writer never validates and never modifies its input snapshot. The
snapshot it returns is meant to be checked with ``validate_commit`` together
with the snapshot it was derived from.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from privilege_integrity.config import PrivilegeSettings, settings as default_settings
from privilege_integrity.constants import (
    JCR_PRIMARY_TYPE,
    NT_REP_PRIVILEGE,
    NT_REP_PRIVILEGES,
    REP_AGGREGATES,
    REP_BITS,
    REP_IS_ABSTRACT,
    REP_NEXT,
)
from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.privilege.definitions import read_next_bits
from privilege_integrity.privilege.provider import PrivilegeBitsProvider
from privilege_integrity.tree.snapshot import NodeState, Snapshot

logger = logging.getLogger(__name__)


def initialize_store(
    snapshot: Snapshot | None = None,
    next_bits: PrivilegeBits | None = None,
    config: PrivilegeSettings | None = None,
) -> Snapshot:
    """Return a snapshot with an empty privileges node and its counter set."""
    config = config or default_settings
    snapshot = snapshot or Snapshot()
    node = NodeState(
        properties={
            JCR_PRIMARY_TYPE: NT_REP_PRIVILEGES,
            REP_NEXT: (next_bits or PrivilegeBits(1)).to_words(),
        }
    )
    return snapshot.with_node(config.privileges_path, node)


class PrivilegeDefinitionWriter:
    """
    Registers privileges on top of a snapshot.

    Usage:
        store = initialize_store()
        after = PrivilegeDefinitionWriter(store).register("read")
        result = validate_commit(store, after)
    """

    def __init__(self, snapshot: Snapshot, config: PrivilegeSettings | None = None) -> None:
        self.snapshot = snapshot
        self.config = config or default_settings

    def register(
        self,
        name: str,
        aggregate_names: Iterable[str] = (),
        is_abstract: bool = False,
    ) -> Snapshot:
        """
        Add a privilege definition and return the resulting snapshot.

        Atomic privileges take the current ``rep:next`` bits and advance the
        counter; aggregates take the union of their declared members' bits.
        """
        privileges = self.snapshot.get_node(self.config.privileges_path)
        if not privileges.exists():
            raise ValueError(
                f"No privileges node at {self.config.privileges_path}; initialize the store first"
            )

        aggregate_names = sorted(set(aggregate_names))
        node = privileges.state
        if aggregate_names:
            bits = PrivilegeBitsProvider(privileges).get_bits(*aggregate_names)
        else:
            bits = read_next_bits(privileges)
            node = node.with_property(REP_NEXT, bits.next_bits().to_words())

        properties = {JCR_PRIMARY_TYPE: NT_REP_PRIVILEGE, REP_BITS: bits.to_words()}
        if aggregate_names:
            properties[REP_AGGREGATES] = aggregate_names
        if is_abstract:
            properties[REP_IS_ABSTRACT] = True

        node = node.with_child(name, NodeState(properties=properties))
        logger.debug("Prepared registration of %s with %r", name, bits)
        return self.snapshot.with_node(self.config.privileges_path, node)
