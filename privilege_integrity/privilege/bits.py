"""
Privilege bits — the identifier allocated to every registered privilege.

Bits are an arbitrary-width set stored in the tree as a list of unsigned
64-bit words, least significant word first. Atomic privileges own exactly
one bit; aggregates own the union of their declared members' bits.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

WORD_SIZE = 64
WORD_MASK = (1 << WORD_SIZE) - 1


class PrivilegeBits:
    """Immutable bit set with union, equality and a successor function."""

    __slots__ = ("_value",)

    def __init__(self, value: int = 0) -> None:
        if value < 0:
            raise ValueError(f"Privilege bits must be non-negative: {value}")
        self._value = value

    # ── Construction ───────────────────────────────────────────

    @classmethod
    def empty(cls) -> PrivilegeBits:
        return cls(0)

    @classmethod
    def from_words(cls, words: Iterable[int]) -> PrivilegeBits:
        value = 0
        for index, word in enumerate(words):
            if word < 0 or word > WORD_MASK:
                raise ValueError(f"Invalid privilege bits word: {word}")
            value |= word << (WORD_SIZE * index)
        return cls(value)

    @classmethod
    def from_property(cls, value: Any) -> PrivilegeBits:
        """
        Read bits from a stored property value.

        Accepts the word-list encoding, a single int, or None (missing
        property), which yields empty bits.
        """
        if value is None:
            return cls.empty()
        if isinstance(value, PrivilegeBits):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid privilege bits value: {value!r}")
        if isinstance(value, int):
            return cls.from_words([value])
        return cls.from_words(int(word) for word in value)

    # ── Encoding ───────────────────────────────────────────────

    def to_words(self) -> list[int]:
        if self._value == 0:
            return [0]
        words = []
        value = self._value
        while value:
            words.append(value & WORD_MASK)
            value >>= WORD_SIZE
        return words

    # ── Operations ─────────────────────────────────────────────

    @property
    def value(self) -> int:
        return self._value

    def is_empty(self) -> bool:
        return self._value == 0

    def next_bits(self) -> PrivilegeBits:
        """The bit directly above the highest set bit; ``1`` for empty bits."""
        return PrivilegeBits(1 << self._value.bit_length())

    def union(self, *others: PrivilegeBits) -> PrivilegeBits:
        value = self._value
        for other in others:
            value |= other._value
        return PrivilegeBits(value)

    def __or__(self, other: PrivilegeBits) -> PrivilegeBits:
        if not isinstance(other, PrivilegeBits):
            return NotImplemented
        return self.union(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PrivilegeBits):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __repr__(self) -> str:
        return f"PrivilegeBits({self._value:#x})"
