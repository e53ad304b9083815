"""Presentation-neutral view of a rule list.

Renderers receive the rule list and may use ``build_rows`` to learn what
each row shows and which commands it offers, without re-deriving the
FINAL-sentinel rules themselves.
"""

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from rulelist_core.rules import reorder
from rulelist_core.rules.models import Rule
from rulelist_core.rules.schema import ColumnKind, RuleSchema


HIDDEN_VALUE = "-"
EMPTY_MESSAGE = "No rules configured"


class Renderer(Protocol):
    """Draws the current rule list."""

    def render(self, rules: Sequence[Rule]) -> None:
        ...


@dataclass
class Cell:
    """One table cell.

    Attributes:
        kind: Column kind the cell belongs to
        text: Display text
        title: Full value for tooltips (empty when hidden)
        checked: Checkbox state for checkbox cells
        disabled: Whether a checkbox cell is read-only
    """
    kind: ColumnKind
    text: str = ""
    title: str = ""
    checked: bool = False
    disabled: bool = False


@dataclass
class RuleRow:
    """Everything a Renderer needs to draw one rule."""
    index: int
    is_final: bool
    cells: list[Cell] = field(default_factory=list)
    can_edit: bool = True
    can_move_up: bool = False
    can_move_down: bool = False
    can_delete: bool = False
    draggable: bool = False


def build_rows(
    rules: Sequence[Rule],
    schema: RuleSchema,
    *,
    allow_move: bool = True,
    allow_delete: bool = True,
    allow_toggle: bool = True,
) -> list[RuleRow]:
    """Build one RuleRow per rule, in list order."""
    rows = []
    for index, rule in enumerate(rules):
        final = rule.is_final
        cells = [_build_cell(column.kind, column.field, column.hide_for_final, rule, index, schema, allow_toggle)
                 for column in schema.columns]
        rows.append(RuleRow(
            index=index,
            is_final=final,
            cells=cells,
            can_move_up=allow_move and reorder.can_move_up(rules, index),
            can_move_down=allow_move and reorder.can_move_down(rules, index),
            can_delete=allow_delete and not final,
            draggable=allow_move and not final,
        ))
    return rows


def _build_cell(
    kind: ColumnKind,
    field_name: str,
    hide_for_final: bool,
    rule: Rule,
    index: int,
    schema: RuleSchema,
    allow_toggle: bool,
) -> Cell:
    if kind is ColumnKind.CHECKBOX:
        return Cell(
            kind=kind,
            checked=rule.enabled,
            disabled=rule.is_final or not allow_toggle,
        )
    if kind is ColumnKind.INDEX:
        return Cell(kind=kind, text=str(index + 1))
    if kind is ColumnKind.LABEL:
        return Cell(kind=kind, text=schema.label_for(field_name, rule.get(field_name)))
    if kind is ColumnKind.VALUE:
        if rule.is_final and hide_for_final:
            return Cell(kind=kind, text=HIDDEN_VALUE)
        value = rule.get(field_name)
        text = "" if value is None else str(value)
        return Cell(kind=kind, text=text, title=text)
    return Cell(kind=kind)
