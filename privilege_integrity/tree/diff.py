"""
Structural diff of two node states, expressed as a stream of events.

Only one level is compared: the properties of the node and its direct
children. Descending into a changed child is the consumer's decision.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from privilege_integrity.tree.snapshot import NodeState, PropertyState


class DiffEventType(str, enum.Enum):
    """Kinds of change reported for a node."""

    PROPERTY_ADDED = "property_added"
    PROPERTY_CHANGED = "property_changed"
    PROPERTY_DELETED = "property_deleted"
    CHILD_NODE_ADDED = "child_node_added"
    CHILD_NODE_CHANGED = "child_node_changed"
    CHILD_NODE_DELETED = "child_node_deleted"


@dataclass(frozen=True)
class DiffEvent:
    """
    A single change. ``before``/``after`` hold a PropertyState for property
    events and a NodeState for child node events; the side that does not
    exist is None.
    """

    type: DiffEventType
    name: str
    before: Any = None
    after: Any = None

    @classmethod
    def property_added(cls, after: PropertyState) -> DiffEvent:
        return cls(DiffEventType.PROPERTY_ADDED, after.name, after=after)

    @classmethod
    def property_changed(cls, before: PropertyState, after: PropertyState) -> DiffEvent:
        return cls(DiffEventType.PROPERTY_CHANGED, before.name, before, after)

    @classmethod
    def property_deleted(cls, before: PropertyState) -> DiffEvent:
        return cls(DiffEventType.PROPERTY_DELETED, before.name, before=before)

    @classmethod
    def child_node_added(cls, name: str, after: NodeState) -> DiffEvent:
        return cls(DiffEventType.CHILD_NODE_ADDED, name, after=after)

    @classmethod
    def child_node_changed(cls, name: str, before: NodeState, after: NodeState) -> DiffEvent:
        return cls(DiffEventType.CHILD_NODE_CHANGED, name, before, after)

    @classmethod
    def child_node_deleted(cls, name: str, before: NodeState) -> DiffEvent:
        return cls(DiffEventType.CHILD_NODE_DELETED, name, before=before)


def compare(before: NodeState, after: NodeState) -> Iterator[DiffEvent]:
    """Yield property events, then child node events, each sorted by name."""
    for name in sorted(before.properties.keys() | after.properties.keys()):
        if name not in before.properties:
            yield DiffEvent.property_added(PropertyState(name, after.properties[name]))
        elif name not in after.properties:
            yield DiffEvent.property_deleted(PropertyState(name, before.properties[name]))
        elif before.properties[name] != after.properties[name]:
            yield DiffEvent.property_changed(
                PropertyState(name, before.properties[name]),
                PropertyState(name, after.properties[name]),
            )

    for name in sorted(before.children.keys() | after.children.keys()):
        child_before = before.children.get(name)
        child_after = after.children.get(name)
        if child_before is None:
            yield DiffEvent.child_node_added(name, child_after)
        elif child_after is None:
            yield DiffEvent.child_node_deleted(name, child_before)
        elif child_before != child_after:
            yield DiffEvent.child_node_changed(name, child_before, child_after)
