"""Rule type schema.

A RuleSchema describes everything the editor needs to know about one kind
of rule list: which fields the edit dialog offers, the selectable rule
types and actions, which actions the FINAL rule may use, and the table
columns a Renderer shows.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from rulelist_core.rules.models import (
    FINAL_RULE_TYPE,
    FieldSpec,
    InputKind,
    Option,
    Rule,
    VisibilityRule,
)


ValidationHook = Callable[[Rule, bool], str | None]
TransformHook = Callable[[Rule, bool], Rule | None]


class ColumnKind(Enum):
    """Kinds of table columns."""
    CHECKBOX = "checkbox"
    INDEX = "index"
    LABEL = "label"
    VALUE = "value"
    ACTIONS = "actions"


@dataclass
class ColumnSpec:
    """One table column.

    Attributes:
        kind: How the cell is produced
        field: Wire name of the displayed attribute (label/value columns)
        title: Column header
        hide_for_final: Show a placeholder instead of the value on the FINAL row
    """
    kind: ColumnKind
    field: str = ""
    title: str = ""
    hide_for_final: bool = False


@dataclass
class RuleSchema:
    """Schema of one rule list.

    Attributes:
        field_specs: Dialog fields in display order
        rule_types: Options for the rule type selector
        action_types: Options for the action selector
        final_action_types: Action options offered when editing the FINAL
            rule; falls back to ``action_types`` when empty
        columns: Table columns in display order
        final_label: Display label of the FINAL rule type
    """
    field_specs: list[FieldSpec] = field(default_factory=list)
    rule_types: list[Option] = field(default_factory=list)
    action_types: list[Option] = field(default_factory=list)
    final_action_types: list[Option] = field(default_factory=list)
    columns: list[ColumnSpec] = field(default_factory=list)
    final_label: str = "FINAL"

    def field_spec(self, name: str) -> FieldSpec:
        for spec in self.field_specs:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def options_for(self, spec: FieldSpec, is_final: bool = False) -> list[Option]:
        """Resolve the options of a select field."""
        if spec.name == "action" and is_final and self.final_action_types:
            return list(self.final_action_types)
        if spec.options_key:
            return list(self._option_sets().get(spec.options_key, []))
        return list(spec.options)

    def default_value(self, spec: FieldSpec, is_final: bool = False) -> Any:
        """Initial draft value of a field for a new rule.

        A select without an explicit default starts on its first option.
        """
        if spec.input_kind is InputKind.CHECKBOX:
            return bool(spec.default)
        if spec.default is not None:
            return spec.default
        if spec.input_kind is InputKind.SELECT:
            options = self.options_for(spec, is_final)
            return options[0].value if options else ""
        return ""

    def rule_type_label(self, rule_type: str) -> str:
        for option in self.rule_types:
            if option.value == rule_type:
                return option.display
        if rule_type == FINAL_RULE_TYPE:
            return self.final_label
        return rule_type

    def action_label(self, action: str) -> str:
        for option in [*self.action_types, *self.final_action_types]:
            if option.value == action:
                return option.display
        return action

    def label_for(self, field_name: str, value: Any) -> str:
        if field_name == "type":
            return self.rule_type_label(str(value))
        if field_name == "action":
            return self.action_label(str(value))
        return "" if value is None else str(value)

    def _option_sets(self) -> dict[str, list[Option]]:
        return {
            "ruleTypes": self.rule_types,
            "actionTypes": self.action_types,
            "finalActionTypes": self.final_action_types,
        }


# Actions that write a replacement value and therefore need one.
REWRITING_ACTIONS = ("REPLACE", "REPLACE-PART")


def default_validator(rule: Rule, is_final: bool) -> str | None:
    """Validation used by the default rewrite-rule schema."""
    if not is_final and not rule.match_value:
        return "Match value is required"
    if rule.action in REWRITING_ACTIONS and not rule.rewrite_value:
        return "Rewrite value is required for this action"
    return None


def default_transformer(rule: Rule, is_final: bool) -> Rule:
    """Strip surrounding whitespace from text attributes."""
    rule.match_value = rule.match_value.strip()
    rule.rewrite_value = rule.rewrite_value.strip()
    rule.description = rule.description.strip()
    return rule


def default_schema() -> RuleSchema:
    """Schema for header rewrite rules with a FINAL fallback."""
    rewriting = VisibilityRule(reference_field="action", show_when=REWRITING_ACTIONS)
    header_action = VisibilityRule(reference_field="action", hide_when=("DIRECT", "DROP"))
    return RuleSchema(
        field_specs=[
            FieldSpec(
                name="type",
                input_kind=InputKind.SELECT,
                label="Rule Type",
                options_key="ruleTypes",
                hide_for_final=True,
            ),
            FieldSpec(
                name="match_value",
                input_kind=InputKind.TEXT,
                label="Match Value",
                placeholder="e.g. User-Agent keyword",
                hide_for_final=True,
            ),
            FieldSpec(
                name="action",
                input_kind=InputKind.SELECT,
                label="Action",
                options_key="actionTypes",
            ),
            FieldSpec(
                name="rewrite_header",
                input_kind=InputKind.TEXT,
                label="Rewrite Header",
                default="User-Agent",
                visibility_rules=[header_action],
            ),
            FieldSpec(
                name="rewrite_value",
                input_kind=InputKind.TEXT,
                label="Rewrite Value",
                visibility_rules=[rewriting],
            ),
            FieldSpec(
                name="description",
                input_kind=InputKind.TEXT,
                label="Description",
                optional=True,
            ),
        ],
        rule_types=[
            Option("HEADER-KEYWORD", "Header Keyword"),
            Option("HEADER-REGEX", "Header Regex"),
            Option("IP-CIDR", "IP CIDR"),
            Option("SRC-IP", "Source IP"),
            Option("DEST-PORT", "Destination Port"),
        ],
        action_types=[
            Option("REPLACE", "Replace"),
            Option("REPLACE-PART", "Replace Part"),
            Option("DELETE", "Delete Header"),
            Option("DIRECT", "Direct"),
            Option("DROP", "Drop"),
        ],
        final_action_types=[
            Option("DIRECT", "Direct"),
            Option("REPLACE", "Replace"),
        ],
        columns=[
            ColumnSpec(ColumnKind.CHECKBOX, field="enabled", title="Enabled"),
            ColumnSpec(ColumnKind.INDEX, title="#"),
            ColumnSpec(ColumnKind.LABEL, field="type", title="Type"),
            ColumnSpec(ColumnKind.VALUE, field="match_value", title="Match", hide_for_final=True),
            ColumnSpec(ColumnKind.LABEL, field="action", title="Action"),
            ColumnSpec(ColumnKind.VALUE, field="rewrite_value", title="Rewrite"),
            ColumnSpec(ColumnKind.VALUE, field="description", title="Description"),
            ColumnSpec(ColumnKind.ACTIONS, title="Actions"),
        ],
    )
