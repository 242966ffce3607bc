"""
Constraint violations — the single rejection signal of the validator.

Every rule enforced over the privileges subtree has a stable numeric code.
A violation aborts the whole commit; it is never retried and never
accumulated with other violations.
"""

from __future__ import annotations

import enum

CONSTRAINT = "Constraint"


class ViolationCode(enum.IntEnum):
    """Stable numeric codes, one per rule."""

    RESERVED_NAMESPACE = 1
    DEFINITION_MODIFIED = 41
    DEFINITION_DELETED = 42
    NEXT_BITS_NOT_UPDATED = 43
    STORE_NOT_INITIALIZED = 44
    PROPERTY_MODIFIED = 45
    PROPERTY_DELETED = 46
    UNKNOWN_DECLARED_AGGREGATE = 47
    BITS_MISSING = 48
    BITS_IN_USE = 49
    SINGULAR_AGGREGATION = 50
    UNREGISTERED_AGGREGATE = 51
    CIRCULAR_AGGREGATION = 52
    DUPLICATE_AGGREGATION = 53
    INVALID_AGGREGATE_BITS = 54


class ConstraintViolation(Exception):
    """Raised when a proposed commit breaks a privilege integrity rule."""

    def __init__(
        self,
        code: ViolationCode,
        message: str,
        category: str = CONSTRAINT,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.category = category

    @property
    def reference(self) -> str:
        """Category and zero-padded code, e.g. ``Constraint0049``."""
        return f"{self.category}{int(self.code):04d}"

    def __str__(self) -> str:
        return f"{self.reference}: {self.message}"
