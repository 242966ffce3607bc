"""
Privilege Validator — routes diff events on the privileges node to the rules.

The validator sees one event per changed property or child node of the
privileges node, in whatever order the diff produces them, and raises
``ConstraintViolation`` on the first rule broken. ``validate_event`` and
``validate_commit`` wrap it as pure functions of a (before, after) snapshot
pair that return a ``ValidationResult`` instead of raising.

Not checked here:
    - permission to register privileges
    - name syntax and name collisions
    - namespace registration
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from privilege_integrity.config import PrivilegeSettings, settings as default_settings
from privilege_integrity.constants import REP_NEXT
from privilege_integrity.namespaces import is_reserved
from privilege_integrity.privilege.definitions import (
    PrivilegeDefinitionReader,
    is_privilege_definition,
    read_bits,
    read_definition,
    read_next_bits,
)
from privilege_integrity.privilege.provider import PrivilegeBitsProvider
from privilege_integrity.tree.diff import DiffEvent, DiffEventType, compare
from privilege_integrity.tree.snapshot import (
    NodeState,
    NodeView,
    PropertyState,
    Snapshot,
    read_only_tree,
)
from privilege_integrity.validation.aggregation import AggregationValidator
from privilege_integrity.validation.counter import check_next_bits
from privilege_integrity.validation.errors import ConstraintViolation, ViolationCode

logger = logging.getLogger(__name__)


class ValidationDecision(str, enum.Enum):
    """Outcome of validating a commit or a single event."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class ValidationResult:
    """Result of validating a commit against the privilege rules."""

    decision: ValidationDecision
    violation: ConstraintViolation | None = None
    events_checked: int = 0

    @property
    def is_accepted(self) -> bool:
        return self.decision == ValidationDecision.ACCEPTED

    @property
    def code(self) -> ViolationCode | None:
        return self.violation.code if self.violation else None


class PrivilegeValidator:
    """
    Validates changes made to the privileges node of one commit.

    Definitions are read lazily from the before snapshot and shared by every
    event of the commit.
    """

    def __init__(
        self,
        before: Snapshot,
        after: Snapshot,
        config: PrivilegeSettings | None = None,
    ) -> None:
        self.before = before
        self.after = after
        self.config = config or default_settings
        self._aggregation_validator: AggregationValidator | None = None

    # ── Events ─────────────────────────────────────────────────

    def property_added(self, after: PropertyState) -> None:
        pass

    def property_changed(self, before: PropertyState, after: PropertyState) -> None:
        if before.name != REP_NEXT:
            raise ConstraintViolation(
                ViolationCode.PROPERTY_MODIFIED,
                "Attempt to modify existing privilege definition.",
            )
        # Expected value derives from the stored counter, not from any one registration
        next_before = read_next_bits(self._privileges_tree(self.before))
        check_next_bits(next_before, self._privileges_tree(self.after))

    def property_deleted(self, before: PropertyState) -> None:
        raise ConstraintViolation(
            ViolationCode.PROPERTY_DELETED,
            "Attempt to modify existing privilege definition.",
        )

    def child_node_added(self, name: str, after: NodeState) -> None:
        if not is_privilege_definition(after):
            return

        if is_reserved(name, self.config.reserved_prefixes):
            logger.warning("Rejected privilege %s: reserved namespace", name)
            raise ConstraintViolation(
                ViolationCode.RESERVED_NAMESPACE,
                "Failed to register custom privilege: Definition uses reserved "
                f"namespace: {name}",
            )

        # The store must exist before privileges can be registered
        parent = self._privileges_tree(self.before)
        tree = read_only_tree(parent, name, after)
        self._get_aggregation_validator().validate(read_definition(tree), read_bits(tree))
        logger.info("Privilege %s passed validation", name)

    def child_node_changed(self, name: str, before: NodeState, after: NodeState) -> None:
        if is_privilege_definition(before) and before != after:
            raise ConstraintViolation(
                ViolationCode.DEFINITION_MODIFIED,
                f"Attempt to modify existing privilege definition {name}",
            )

    def child_node_deleted(self, name: str, before: NodeState) -> None:
        if is_privilege_definition(before):
            raise ConstraintViolation(
                ViolationCode.DEFINITION_DELETED,
                f"Attempt to un-register privilege {name}",
            )

    def dispatch(self, event: DiffEvent) -> None:
        """Route a diff event to its handler."""
        if event.type == DiffEventType.PROPERTY_ADDED:
            self.property_added(event.after)
        elif event.type == DiffEventType.PROPERTY_CHANGED:
            self.property_changed(event.before, event.after)
        elif event.type == DiffEventType.PROPERTY_DELETED:
            self.property_deleted(event.before)
        elif event.type == DiffEventType.CHILD_NODE_ADDED:
            self.child_node_added(event.name, event.after)
        elif event.type == DiffEventType.CHILD_NODE_CHANGED:
            self.child_node_changed(event.name, event.before, event.after)
        elif event.type == DiffEventType.CHILD_NODE_DELETED:
            self.child_node_deleted(event.name, event.before)
        else:
            raise ValueError(f"Unknown diff event type: {event.type}")

    # ── Helpers ────────────────────────────────────────────────

    def _privileges_tree(self, snapshot: Snapshot) -> NodeView:
        tree = snapshot.get_node(self.config.privileges_path)
        if not tree.exists():
            raise ConstraintViolation(
                ViolationCode.STORE_NOT_INITIALIZED, "Privilege store not initialized."
            )
        return tree

    def _get_aggregation_validator(self) -> AggregationValidator:
        if self._aggregation_validator is None:
            privileges_before = self._privileges_tree(self.before)
            self._aggregation_validator = AggregationValidator(
                definitions=PrivilegeDefinitionReader(privileges_before).read_definitions(),
                bits_provider=PrivilegeBitsProvider(privileges_before),
                privileges_after=self._privileges_tree(self.after),
            )
        return self._aggregation_validator


def validate_event(
    before: Snapshot,
    after: Snapshot,
    event: DiffEvent,
    config: PrivilegeSettings | None = None,
) -> ValidationResult:
    """Validate a single diff event of the privileges node."""
    validator = PrivilegeValidator(before, after, config)
    try:
        validator.dispatch(event)
    except ConstraintViolation as e:
        return ValidationResult(ValidationDecision.REJECTED, violation=e, events_checked=1)
    return ValidationResult(ValidationDecision.ACCEPTED, events_checked=1)


def validate_commit(
    before: Snapshot,
    after: Snapshot,
    config: PrivilegeSettings | None = None,
) -> ValidationResult:
    """
    Validate every change a commit makes to the privileges node.

    Stops at the first violation; a commit is accepted or rejected as a whole.

    Args:
        before: Snapshot before the commit.
        after: Proposed snapshot after the commit.
        config: Settings override, defaults to the module settings.

    Returns:
        ValidationResult with the decision and, if rejected, the violation.
    """
    config = config or default_settings
    node_before = before.get_node(config.privileges_path).state
    node_after = after.get_node(config.privileges_path).state

    if node_before is None and node_after is None:
        return ValidationResult(ValidationDecision.ACCEPTED)
    if node_before == node_after:
        return ValidationResult(ValidationDecision.ACCEPTED)

    validator = PrivilegeValidator(before, after, config)
    checked = 0
    try:
        for event in compare(node_before or NodeState(), node_after or NodeState()):
            checked += 1
            validator.dispatch(event)
    except ConstraintViolation as e:
        logger.warning("Commit rejected after %d event(s): %s", checked, e)
        return ValidationResult(ValidationDecision.REJECTED, violation=e, events_checked=checked)

    logger.debug("Commit accepted after %d event(s)", checked)
    return ValidationResult(ValidationDecision.ACCEPTED, events_checked=checked)
