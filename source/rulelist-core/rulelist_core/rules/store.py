"""Ordered rule storage.

This module provides the in-memory owner of the rule list:
- initialize_rules: Applies the FINAL-sentinel invariant to a raw list
- RuleStore: CRUD and reorder primitives that keep the invariant intact
"""

import logging
from typing import Any, Iterable, Iterator

from rulelist_core.rules import reorder
from rulelist_core.rules.errors import InvalidIndex, ProtectedRule
from rulelist_core.rules.models import (
    DEFAULT_FINAL_DESCRIPTION,
    InsertionPolicy,
    Rule,
)


logger = logging.getLogger(__name__)


def initialize_rules(
    rules: Iterable[Rule],
    has_final_rule: bool = True,
    final_description: str = DEFAULT_FINAL_DESCRIPTION,
) -> list[Rule]:
    """Apply the FINAL-sentinel invariant.

    When ``has_final_rule`` is set, a missing FINAL rule is synthesized and
    a misplaced one is moved to the end. Calling this again on its own
    output returns an equal list.

    Args:
        rules: Rules in their current order.
        has_final_rule: Whether the list must end with a FINAL sentinel.
        final_description: Description of a synthesized sentinel.

    Returns:
        A new list of copies; the input is not modified.
    """
    result = [rule.copy() for rule in rules]
    if not has_final_rule:
        return result

    finals = [i for i, rule in enumerate(result) if rule.is_final]
    if not finals:
        logger.info("No FINAL rule found, adding default fallback rule")
        result.append(Rule.final(description=final_description))
        return result

    if len(finals) > 1:
        logger.warning(f"Found {len(finals)} FINAL rules, keeping the first one")
    sentinel = result[finals[0]]
    result = [rule for rule in result if not rule.is_final]
    result.append(sentinel)
    return result


class RuleStore:
    """Owner of the ordered rule list.

    Every read hands out copies so callers can never alias stored rules.
    Index errors raise ``InvalidIndex``; operations on the sentinel raise
    ``ProtectedRule`` except moves, which are silent no-ops.

    Attributes:
        has_final_rule: Whether the FINAL-sentinel invariant is enforced.
        insertion_policy: Default placement for ``insert``.
        final_description: Description used when synthesizing a sentinel.
    """

    def __init__(
        self,
        rules: Iterable[Rule] = (),
        *,
        has_final_rule: bool = True,
        insertion_policy: InsertionPolicy = InsertionPolicy.BEFORE_FINAL,
        final_description: str = DEFAULT_FINAL_DESCRIPTION,
    ) -> None:
        self.has_final_rule = has_final_rule
        self.insertion_policy = insertion_policy
        self.final_description = final_description
        self._rules: list[Rule] = []
        self.initialize(rules)

    def initialize(self, rules: Iterable[Rule]) -> list[Rule]:
        """Replace the list contents, applying the sentinel invariant."""
        self._rules = initialize_rules(rules, self.has_final_rule, self.final_description)
        logger.debug(f"Initialized rule list with {len(self._rules)} rules")
        return self.snapshot()

    @property
    def rules(self) -> list[Rule]:
        return self.snapshot()

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.snapshot())

    def get(self, index: int) -> Rule:
        """Get a copy of the rule at ``index``."""
        self._check_index(index)
        return self._rules[index].copy()

    def is_final(self, index: int) -> bool:
        return 0 <= index < len(self._rules) and self._rules[index].is_final

    def snapshot(self) -> list[Rule]:
        return [rule.copy() for rule in self._rules]

    def restore(self, rules: Iterable[Rule]) -> None:
        """Reset the list to a previous snapshot without re-validating it."""
        self._rules = [rule.copy() for rule in rules]

    def insert(self, rule: Rule, policy: InsertionPolicy | None = None) -> int:
        """Insert a new normal rule.

        Args:
            rule: The rule to add. Must not be a FINAL rule.
            policy: Placement override; defaults to ``insertion_policy``.

        Returns:
            The index the rule was inserted at.

        Raises:
            ProtectedRule: If ``rule`` is a FINAL rule.
        """
        if rule.is_final:
            raise ProtectedRule(-1, "insert")
        policy = policy or self.insertion_policy
        if policy is InsertionPolicy.AT_HEAD:
            index = 0
        elif self.has_final_rule and reorder.has_trailing_final(self._rules):
            index = len(self._rules) - 1
        else:
            index = len(self._rules)
        self._rules.insert(index, rule.copy())
        logger.debug(f"Inserted rule at index {index} ({policy.value})")
        return index

    def insert_at(self, index: int, rule: Rule) -> None:
        """Put a previously removed normal rule back at ``index``."""
        if rule.is_final:
            raise ProtectedRule(index, "insert")
        if not 0 <= index <= len(self._rules):
            raise InvalidIndex(index)
        self._rules.insert(index, rule.copy())

    def replace(self, index: int, rule: Rule) -> Rule:
        """Overwrite the rule at ``index`` in place.

        Returns:
            The rule previously stored at ``index``.

        Raises:
            InvalidIndex: If ``index`` is out of range or the kinds differ.
        """
        self._check_index(index)
        previous = self._rules[index]
        if previous.kind is not rule.kind:
            raise InvalidIndex(
                index, f"cannot replace a {previous.kind.value} rule with a {rule.kind.value} rule"
            )
        self._rules[index] = rule.copy()
        return previous

    def delete(self, index: int) -> Rule:
        """Remove the rule at ``index``; later rules shift down by one.

        Raises:
            InvalidIndex: If ``index`` is out of range.
            ProtectedRule: If the rule is the FINAL sentinel.
        """
        self._check_index(index)
        if self._rules[index].is_final:
            raise ProtectedRule(index, "delete")
        return self._rules.pop(index)

    def move_up(self, index: int) -> bool:
        """Swap the rule with its predecessor. Returns False on a no-op."""
        if not reorder.can_move_up(self._rules, index):
            return False
        self._rules = reorder.swap_up(self._rules, index)
        return True

    def move_down(self, index: int) -> bool:
        """Swap the rule with its successor. Returns False on a no-op."""
        if not reorder.can_move_down(self._rules, index):
            return False
        self._rules = reorder.swap_down(self._rules, index)
        return True

    def relocate(self, source_index: int, target_index: int, drop_after: bool) -> int | None:
        """Apply a drag relocation.

        Returns:
            The index the rule landed at, or None when the drop was rejected.
        """
        new_order = reorder.relocate(self._rules, source_index, target_index, drop_after)
        if all(a is b for a, b in zip(new_order, self._rules)):
            return None
        moved = self._rules[source_index]
        self._rules = new_order
        return next(i for i, rule in enumerate(new_order) if rule is moved)

    def toggle_enabled(self, index: int, value: bool) -> bool:
        """Set the enabled flag of a normal rule.

        Returns:
            The previous value of the flag.

        Raises:
            InvalidIndex: If ``index`` is out of range.
            ProtectedRule: If the rule is the FINAL sentinel.
        """
        self._check_index(index)
        rule = self._rules[index]
        if rule.is_final:
            raise ProtectedRule(index, "toggle")
        previous = rule.enabled
        rule.enabled = value
        return previous

    def serialize(self, rule_key: str = "rules") -> dict[str, Any]:
        """Serialize the list as ``{rule_key: [rule, ...]}``."""
        return {rule_key: [rule.to_dict() for rule in self._rules]}

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._rules):
            raise InvalidIndex(index)
