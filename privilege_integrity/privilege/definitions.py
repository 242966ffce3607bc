"""
Privilege definitions — reading registered privileges from a snapshot.

A definition is a child node of the privileges node whose primary type is
``rep:Privilege``. Definitions are write-once: after registration their name,
declared aggregates and bits never change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from privilege_integrity.constants import (
    NT_REP_PRIVILEGE,
    REP_AGGREGATES,
    REP_BITS,
    REP_IS_ABSTRACT,
    REP_NEXT,
)
from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.tree.snapshot import NodeState, NodeView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrivilegeDefinition:
    """A registered (or proposed) privilege."""

    name: str
    declared_aggregate_names: frozenset[str] = field(default_factory=frozenset)
    is_abstract: bool = False

    @property
    def is_aggregate(self) -> bool:
        return bool(self.declared_aggregate_names)


def is_privilege_definition(state: NodeState | None) -> bool:
    return state is not None and state.primary_type == NT_REP_PRIVILEGE


def read_definition(tree: NodeView) -> PrivilegeDefinition:
    """Build a definition from a privilege node view."""
    aggregates = tree.get_property(REP_AGGREGATES)
    is_abstract = tree.get_property(REP_IS_ABSTRACT)
    names = aggregates.value if aggregates and aggregates.value else ()
    if isinstance(names, str):
        names = (names,)
    return PrivilegeDefinition(
        name=tree.name,
        declared_aggregate_names=frozenset(names),
        is_abstract=bool(is_abstract.value) if is_abstract else False,
    )


def read_bits(tree: NodeView) -> PrivilegeBits:
    """The stored bits of a privilege node; empty if unset."""
    prop = tree.get_property(REP_BITS)
    return PrivilegeBits.from_property(prop.value if prop else None)


def read_next_bits(privileges_tree: NodeView) -> PrivilegeBits:
    """The allocation counter stored on the privileges node."""
    prop = privileges_tree.get_property(REP_NEXT)
    return PrivilegeBits.from_property(prop.value if prop else None)


class PrivilegeDefinitionReader:
    """Materializes all privilege definitions below a privileges node."""

    def __init__(self, privileges_tree: NodeView) -> None:
        self.privileges_tree = privileges_tree

    def read_definitions(self) -> dict[str, PrivilegeDefinition]:
        definitions: dict[str, PrivilegeDefinition] = {}
        if not self.privileges_tree.exists():
            return definitions
        for name, child in self.privileges_tree.state.children.items():
            if is_privilege_definition(child):
                definitions[name] = read_definition(self.privileges_tree.get_child(name))
        logger.debug("Read %d privilege definitions", len(definitions))
        return definitions

    def read_definition(self, name: str) -> PrivilegeDefinition | None:
        child = self.privileges_tree.get_child(name)
        if not is_privilege_definition(child.state):
            return None
        return read_definition(child)
