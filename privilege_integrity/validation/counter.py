"""Allocation counter (``rep:next``) check."""

from __future__ import annotations

import logging

from privilege_integrity.privilege.bits import PrivilegeBits
from privilege_integrity.privilege.definitions import read_next_bits
from privilege_integrity.tree.snapshot import NodeView
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode

logger = logging.getLogger(__name__)


def check_next_bits(bits: PrivilegeBits, privileges_after: NodeView) -> None:
    """
    The counter in the after snapshot must be the successor of ``bits``.

    Raises:
        ConstraintViolation: code 43 if the counter was not advanced.
    """
    expected = bits.next_bits()
    actual = read_next_bits(privileges_after)
    if actual != expected:
        logger.info("Next bits not updated: expected %r, found %r", expected, actual)
        raise ConstraintViolation(ViolationCode.NEXT_BITS_NOT_UPDATED, "Next bits not updated")
