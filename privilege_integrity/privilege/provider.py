"""Mapping between privilege names and privilege bits for one snapshot."""

from __future__ import annotations

from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.privilege.definitions import is_privilege_definition, read_bits
from privilege_integrity.tree.snapshot import NodeView


class PrivilegeBitsProvider:
    """
    Resolves names to bits and bits back to names.

    The name → bits table is read once from the privileges node the provider
    was created for; the snapshot behind it is immutable.
    """

    def __init__(self, privileges_tree: NodeView) -> None:
        self.privileges_tree = privileges_tree
        self._bits: dict[str, PrivilegeBits] | None = None

    def _bits_by_name(self) -> dict[str, PrivilegeBits]:
        if self._bits is None:
            self._bits = {}
            if self.privileges_tree.exists():
                for name, child in self.privileges_tree.state.children.items():
                    if is_privilege_definition(child):
                        self._bits[name] = read_bits(self.privileges_tree.get_child(name))
        return self._bits

    def get_bits(self, *names: str) -> PrivilegeBits:
        """Union of the bits of the given names; unknown names contribute nothing."""
        table = self._bits_by_name()
        return PrivilegeBits.empty().union(
            *(table[name] for name in names if name in table)
        )

    def get_privilege_names(self, bits: PrivilegeBits) -> set[str]:
        """Names whose stored bits are exactly ``bits``."""
        if bits.is_empty():
            return set()
        return {name for name, stored in self._bits_by_name().items() if stored == bits}
