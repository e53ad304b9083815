"""Field visibility for the rule edit dialog.

This module evaluates declarative visibility rules against a draft:
- compute_visibility: One-shot evaluation of every field
- VisibilityEvaluator: Keeps a dependency index so edits only trigger a
  recompute when a referenced field changes
"""

import logging
from typing import Any, Iterable, Mapping

from rulelist_core.rules.models import FieldSpec


logger = logging.getLogger(__name__)


def _field_visible(spec: FieldSpec, draft: Mapping[str, Any], is_final: bool) -> bool:
    if not spec.applies_to(is_final):
        return False
    for rule in spec.visibility_rules:
        # A reference to a field that is not part of this draft is ignored.
        if rule.reference_field not in draft:
            continue
        if not rule.passes(draft[rule.reference_field]):
            return False
    return True


def compute_visibility(
    field_specs: Iterable[FieldSpec],
    draft: Mapping[str, Any],
    is_final: bool = False,
) -> dict[str, bool]:
    """Decide which dialog fields are visible.

    A field is visible iff every attached visibility rule passes:
    ``show_when`` requires the referenced value to be in the set,
    ``hide_when`` requires it not to be. ``hide_for_final`` and
    ``show_only_for_final`` are applied first.

    Args:
        field_specs: Dialog fields in display order.
        draft: Current draft values keyed by field name.
        is_final: Whether the FINAL rule is being edited.

    Returns:
        Mapping of field name to visibility.
    """
    return {spec.name: _field_visible(spec, draft, is_final) for spec in field_specs}


class VisibilityEvaluator:
    """Reactive visibility evaluation for one set of field specs."""

    def __init__(self, field_specs: Iterable[FieldSpec]) -> None:
        self.field_specs = list(field_specs)
        self._dependents: dict[str, set[str]] = {}
        for spec in self.field_specs:
            for reference in spec.references:
                self._dependents.setdefault(reference, set()).add(spec.name)

    def dependents_of(self, field_name: str) -> set[str]:
        """Names of the fields whose visibility depends on ``field_name``."""
        return set(self._dependents.get(field_name, ()))

    def has_dependents(self, field_name: str) -> bool:
        return field_name in self._dependents

    def compute(self, draft: Mapping[str, Any], is_final: bool = False) -> dict[str, bool]:
        visibility = compute_visibility(self.field_specs, draft, is_final)
        logger.debug(f"Visible fields: {[name for name, shown in visibility.items() if shown]}")
        return visibility
