"""Reordering for rule lists.

This module computes new list orders for both interaction styles:
- swap_up / swap_down: Explicit up/down buttons
- relocate: Pointer-drag relocation with a before/after drop bias
- DragState: Tracks one pointer-drag gesture from start to drop

All functions are pure: they return a new list and never mutate their input.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from rulelist_core.rules.models import Rule


logger = logging.getLogger(__name__)


def _in_range(rules: Sequence[Rule], index: int) -> bool:
    return 0 <= index < len(rules)


def has_trailing_final(rules: Sequence[Rule]) -> bool:
    """Check whether the last slot is occupied by the FINAL sentinel."""
    return bool(rules) and rules[-1].is_final


def can_move_up(rules: Sequence[Rule], index: int) -> bool:
    return _in_range(rules, index) and index > 0 and not rules[index].is_final


def can_move_down(rules: Sequence[Rule], index: int) -> bool:
    if not _in_range(rules, index) or rules[index].is_final:
        return False
    # The last slot is reserved for the sentinel when it is present.
    last_movable = len(rules) - 2 if has_trailing_final(rules) else len(rules) - 1
    return index < last_movable


def swap_up(rules: Sequence[Rule], index: int) -> list[Rule]:
    """Swap the rule at ``index`` with its predecessor.

    Returns an unchanged copy when the move is not allowed.
    """
    result = list(rules)
    if can_move_up(rules, index):
        result[index - 1], result[index] = result[index], result[index - 1]
    return result


def swap_down(rules: Sequence[Rule], index: int) -> list[Rule]:
    """Swap the rule at ``index`` with its successor.

    Returns an unchanged copy when the move is not allowed.
    """
    result = list(rules)
    if can_move_down(rules, index):
        result[index], result[index + 1] = result[index + 1], result[index]
    return result


def relocate(
    rules: Sequence[Rule],
    source_index: int,
    target_index: int,
    drop_after: bool,
) -> list[Rule]:
    """Move the rule at ``source_index`` next to the rule at ``target_index``.

    Args:
        rules: Current rule order. Never mutated.
        source_index: Index of the dragged rule.
        target_index: Index of the rule it was dropped on.
        drop_after: True when dropped on the lower half of the target.

    Returns:
        The new order, or an unchanged copy when the drop is rejected
        (same index, FINAL source or target, index out of range).
    """
    result = list(rules)
    if source_index == target_index:
        return result
    if not _in_range(rules, source_index) or not _in_range(rules, target_index):
        logger.debug(f"Rejected drop {source_index} -> {target_index}: out of range")
        return result
    if rules[source_index].is_final or rules[target_index].is_final:
        return result

    moved = result.pop(source_index)

    # Removing the source shifts every later index down by one.
    if source_index < target_index:
        new_index = target_index if drop_after else target_index - 1
    else:
        new_index = target_index + 1 if drop_after else target_index

    max_index = len(result) - 1 if any(r.is_final for r in result) else len(result)
    new_index = max(0, min(new_index, max_index))

    result.insert(new_index, moved)
    return result


def drop_after(pointer_y: float, row_top: float, row_height: float) -> bool:
    """Derive the drop bias from pointer geometry.

    A drop below the vertical midpoint of the target row lands after it.
    """
    return pointer_y > row_top + row_height / 2


@dataclass
class DragState:
    """State of a single pointer-drag gesture.

    Attributes:
        dragging: Whether a drag is in progress
        dragged_index: Index of the dragged rule, -1 when idle
    """
    dragging: bool = False
    dragged_index: int = -1

    def start(self, rules: Sequence[Rule], index: int) -> bool:
        """Begin dragging the rule at ``index``.

        Returns:
            False when the rule cannot be dragged (FINAL or out of range).
        """
        if not _in_range(rules, index) or rules[index].is_final:
            self.reset()
            return False
        self.dragging = True
        self.dragged_index = index
        return True

    def can_drop(self, rules: Sequence[Rule], target_index: int) -> bool:
        """Whether hovering over ``target_index`` is a valid drop target."""
        if not self.dragging or not _in_range(rules, target_index):
            return False
        if target_index == self.dragged_index:
            return False
        return not rules[target_index].is_final

    def drop(self, rules: Sequence[Rule], target_index: int, after: bool) -> list[Rule]:
        """Finish the gesture and return the resulting order."""
        source_index = self.dragged_index
        self.reset()
        if source_index == -1:
            return list(rules)
        return relocate(rules, source_index, target_index, after)

    def reset(self) -> None:
        self.dragging = False
        self.dragged_index = -1
