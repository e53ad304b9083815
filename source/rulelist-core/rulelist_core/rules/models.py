"""Data models for the rule list editor.

This module defines the core data structures of an ordered rule list:
- RuleKind: Enum separating normal rules from the FINAL sentinel
- Rule: A single rewrite rule as stored in the list
- InputKind: Enum for dialog input kinds (select, text, checkbox)
- Option: A selectable value with its display label
- VisibilityRule: Declarative show/hide condition on a sibling field
- FieldSpec: Declarative descriptor of one editable rule attribute
- InsertionPolicy: Where newly added rules land in the list
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


FINAL_RULE_TYPE = "FINAL"
DEFAULT_FINAL_ACTION = "DIRECT"
DEFAULT_FINAL_DESCRIPTION = "Default fallback rule"

# Wire names of the fixed rule attributes, in serialization order.
RULE_FIELDS = ("type", "match_value", "action", "rewrite_value", "description", "enabled")

_TRUE_VALUES = ("true", "1", "yes", "on")


def parse_bool(value: Any) -> bool:
    """Interpret a flag from JSON or the environment; strings like "false" are False."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return bool(value)


class RuleKind(Enum):
    """Tag separating ordinary rules from the terminal sentinel.

    - NORMAL: A matching rule that exposes every field
    - FINAL: The fallback rule that always sits at the end of the list
    """
    NORMAL = "NORMAL"
    FINAL = "FINAL"


class InputKind(Enum):
    """Input kinds a dialog field can be edited with."""
    SELECT = "select"
    TEXT = "text"
    CHECKBOX = "checkbox"


class InsertionPolicy(Enum):
    """Where newly added rules are inserted.

    - BEFORE_FINAL: Immediately before the FINAL sentinel (append when absent)
    - AT_HEAD: At the top of the list
    """
    BEFORE_FINAL = "beforeFinal"
    AT_HEAD = "atHead"


@dataclass
class Rule:
    """A single rewrite rule.

    Rules are serialized with snake_case wire names. The ``type`` key
    carries the matching type of a normal rule (``HEADER-KEYWORD``,
    ``IP-CIDR`` ...) or ``FINAL`` for the sentinel.

    Attributes:
        kind: Whether this is a normal rule or the FINAL sentinel
        rule_type: Matching type of a normal rule (``FINAL`` for the sentinel)
        match_value: Value the rule matches against
        action: Action name drawn from the configured action set
        rewrite_value: Replacement value used by rewriting actions
        description: Free-form description
        enabled: Whether the rule is active (always True for FINAL)
        extra: Schema-specific additional fields, preserved verbatim
    """
    kind: RuleKind = RuleKind.NORMAL
    rule_type: str = ""
    match_value: str = ""
    action: str = ""
    rewrite_value: str = ""
    description: str = ""
    enabled: bool = True
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind is RuleKind.FINAL:
            self.rule_type = FINAL_RULE_TYPE
            self.enabled = True
        elif self.rule_type == FINAL_RULE_TYPE:
            raise ValueError("Normal rules cannot use the FINAL rule type")

    @property
    def is_final(self) -> bool:
        return self.kind is RuleKind.FINAL

    @classmethod
    def final(
        cls,
        description: str = DEFAULT_FINAL_DESCRIPTION,
        action: str = DEFAULT_FINAL_ACTION,
    ) -> "Rule":
        """Create a default FINAL sentinel rule."""
        return cls(kind=RuleKind.FINAL, action=action, description=description)

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a field by its wire name."""
        if name == "type":
            return self.rule_type
        if name in RULE_FIELDS:
            return getattr(self, name)
        return self.extra.get(name, default)

    def copy(self) -> "Rule":
        """Return an independent copy that shares no mutable state."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize rule to dictionary.

        Returns:
            Dictionary representation using the wire field names.
        """
        data: dict[str, Any] = {
            "type": self.rule_type,
            "match_value": self.match_value,
            "action": self.action,
            "rewrite_value": self.rewrite_value,
            "description": self.description,
            "enabled": self.enabled,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Deserialize rule from dictionary.

        Args:
            data: Dictionary using the wire field names. Unknown keys are
                kept in ``extra``.

        Returns:
            Rule instance reconstructed from the dictionary.
        """
        rule_type = str(data.get("type") or "")
        kind = RuleKind.FINAL if rule_type == FINAL_RULE_TYPE else RuleKind.NORMAL
        return cls(
            kind=kind,
            rule_type=rule_type,
            match_value=str(data.get("match_value") or ""),
            action=str(data.get("action") or ""),
            rewrite_value=str(data.get("rewrite_value") or ""),
            description=str(data.get("description") or ""),
            enabled=parse_bool(data.get("enabled", True)),
            extra={k: v for k, v in data.items() if k not in RULE_FIELDS},
        )


@dataclass(frozen=True)
class Option:
    """A selectable value with its display label."""
    value: str
    label: str = ""

    @property
    def display(self) -> str:
        return self.label or self.value


@dataclass(frozen=True)
class VisibilityRule:
    """Show/hide condition evaluated against a sibling field.

    Attributes:
        reference_field: Name of the field whose draft value is inspected
        show_when: The rule passes only if the value is one of these
        hide_when: The rule passes only if the value is none of these
    """
    reference_field: str
    show_when: tuple[Any, ...] | None = None
    hide_when: tuple[Any, ...] | None = None

    def passes(self, value: Any) -> bool:
        if self.show_when is not None and value not in self.show_when:
            return False
        if self.hide_when is not None and value in self.hide_when:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VisibilityRule":
        show_when = data.get("showWhen", data.get("show_when"))
        hide_when = data.get("hideWhen", data.get("hide_when"))
        return cls(
            reference_field=data.get("field") or data["reference_field"],
            show_when=tuple(show_when) if show_when is not None else None,
            hide_when=tuple(hide_when) if hide_when is not None else None,
        )


@dataclass
class FieldSpec:
    """Declarative descriptor of one editable rule attribute.

    Attributes:
        name: Wire name of the attribute the field edits
        input_kind: How the value is entered
        label: Display label
        default: Default value for new rules
        options: Static options for select fields
        options_key: Name of a schema option set used instead of ``options``
        visibility_rules: All must pass for the field to be visible
        hide_for_final: Never shown when editing the FINAL rule
        show_only_for_final: Only shown when editing the FINAL rule
        optional: Whether the field may be left empty
        placeholder: Hint text for text fields
    """
    name: str
    input_kind: InputKind = InputKind.TEXT
    label: str = ""
    default: Any = None
    options: list[Option] = field(default_factory=list)
    options_key: str | None = None
    visibility_rules: list[VisibilityRule] = field(default_factory=list)
    hide_for_final: bool = False
    show_only_for_final: bool = False
    optional: bool = False
    placeholder: str = ""

    @property
    def references(self) -> set[str]:
        """Names of the fields this field's visibility depends on."""
        return {rule.reference_field for rule in self.visibility_rules}

    def applies_to(self, is_final: bool) -> bool:
        """Whether the field is part of the dialog at all for this rule kind."""
        if self.hide_for_final and is_final:
            return False
        if self.show_only_for_final and not is_final:
            return False
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldSpec":
        """Create from a dialog field configuration dictionary.

        Accepts both camelCase keys (``hideForFinal``, ``visibilityRules``)
        and snake_case keys.
        """
        options = [
            Option(value=o["value"], label=o.get("label", "")) if isinstance(o, dict) else Option(value=str(o))
            for o in data.get("options", [])
        ]
        rules = data.get("visibilityRules", data.get("visibility_rules", []))
        return cls(
            name=data.get("field") or data["name"],
            input_kind=InputKind(data.get("type", data.get("input_kind", "text"))),
            label=data.get("label", ""),
            default=data.get("defaultValue", data.get("default")),
            options=options,
            options_key=data.get("optionsKey", data.get("options_key")),
            visibility_rules=[VisibilityRule.from_dict(r) for r in rules],
            hide_for_final=parse_bool(data.get("hideForFinal", data.get("hide_for_final", False))),
            show_only_for_final=parse_bool(data.get("showOnlyForFinal", data.get("show_only_for_final", False))),
            optional=parse_bool(data.get("optional", False)),
            placeholder=data.get("placeholder", ""),
        )
