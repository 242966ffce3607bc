"""
Snapshot model — immutable views of the versioned tree.

A commit is represented as a pair of snapshots (before, after). Snapshots are
never mutated; helpers such as ``NodeState.with_child`` return modified copies
so that a proposed "after" state can be derived from a "before" state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from privilege_integrity.constants import JCR_PRIMARY_TYPE


@dataclass(frozen=True)
class PropertyState:
    """A single named property value."""

    name: str
    value: Any


class NodeState(BaseModel):
    """A node: its properties and its named child nodes."""

    model_config = ConfigDict(frozen=True)

    properties: dict[str, Any] = Field(default_factory=dict)
    children: dict[str, NodeState] = Field(default_factory=dict)

    @property
    def primary_type(self) -> str | None:
        return self.properties.get(JCR_PRIMARY_TYPE)

    def get_property(self, name: str) -> PropertyState | None:
        if name not in self.properties:
            return None
        return PropertyState(name, self.properties[name])

    def get_child(self, name: str) -> NodeState | None:
        return self.children.get(name)

    def with_property(self, name: str, value: Any) -> NodeState:
        return self.model_copy(update={"properties": {**self.properties, name: value}})

    def without_property(self, name: str) -> NodeState:
        properties = {k: v for k, v in self.properties.items() if k != name}
        return self.model_copy(update={"properties": properties})

    def with_child(self, name: str, child: NodeState) -> NodeState:
        return self.model_copy(update={"children": {**self.children, name: child}})

    def without_child(self, name: str) -> NodeState:
        children = {k: v for k, v in self.children.items() if k != name}
        return self.model_copy(update={"children": children})


def split_path(path: str) -> list[str]:
    """Split an absolute path into its element names."""
    return [element for element in path.split("/") if element]


def join_path(parent: str, name: str) -> str:
    return f"{parent.rstrip('/')}/{name}"


@dataclass(frozen=True)
class NodeView:
    """
    Read-only view of a node at a path.

    Views are returned for absent nodes too; ``exists()`` tells them apart.
    """

    path: str
    state: NodeState | None

    @property
    def name(self) -> str:
        elements = split_path(self.path)
        return elements[-1] if elements else ""

    def exists(self) -> bool:
        return self.state is not None

    def get_property(self, name: str) -> PropertyState | None:
        if self.state is None:
            return None
        return self.state.get_property(name)

    def get_child(self, name: str) -> NodeView:
        child = self.state.get_child(name) if self.state is not None else None
        return NodeView(join_path(self.path, name), child)


def read_only_tree(parent: NodeView, name: str, state: NodeState) -> NodeView:
    """Materialize a view of a newly added child node below its parent."""
    return NodeView(join_path(parent.path, name), state)


class Snapshot(BaseModel):
    """An immutable snapshot of the whole tree."""

    model_config = ConfigDict(frozen=True)

    root: NodeState = Field(default_factory=NodeState)

    def get_node(self, path: str) -> NodeView:
        state: NodeState | None = self.root
        for element in split_path(path):
            if state is None:
                break
            state = state.get_child(element)
        return NodeView(path, state)

    def with_node(self, path: str, node: NodeState) -> Snapshot:
        """Return a copy of this snapshot with the node at ``path`` replaced."""
        elements = split_path(path)
        if not elements:
            return self.model_copy(update={"root": node})

        # Walk down, remembering ancestors; missing ancestors are created empty.
        ancestors = [self.root]
        for element in elements[:-1]:
            ancestors.append(ancestors[-1].get_child(element) or NodeState())

        replaced = node
        for ancestor, element in zip(reversed(ancestors), reversed(elements)):
            replaced = ancestor.with_child(element, replaced)
        return self.model_copy(update={"root": replaced})

    @classmethod
    def from_json(cls, text: str) -> Snapshot:
        return cls(root=NodeState.model_validate(json.loads(text)))

    @classmethod
    def from_file(cls, path: str | Path) -> Snapshot:
        return cls.from_json(Path(path).read_text(encoding="utf-8"))
