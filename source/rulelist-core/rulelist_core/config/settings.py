"""Configuration and settings for rulelist Core."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import dotenv

from rulelist_core.rules.models import DEFAULT_FINAL_DESCRIPTION, InsertionPolicy, parse_bool

dotenv.load_dotenv()


# camelCase configuration keys and the settings attribute they map to.
_KEY_ALIASES = {
    "hasFinalRule": "has_final_rule",
    "allowMove": "allow_move",
    "allowDelete": "allow_delete",
    "allowToggle": "allow_toggle",
    "insertionPolicy": "insertion_policy",
    "ruleKey": "rule_key",
    "saveUrl": "save_url",
    "loadUrl": "load_url",
    "finalDescription": "final_description",
}


@dataclass
class EditorSettings:
    """Settings of one rule list editor.

    Attributes:
        has_final_rule: Enforce the FINAL-sentinel invariant.
        allow_move: Enable up/down and drag reordering.
        allow_delete: Enable deleting rules.
        allow_toggle: Enable toggling rules on and off from the list.
        insertion_policy: Where newly added rules land.
        rule_key: Key under which the list is persisted.
        save_url: Save endpoint for the HTTP persister.
        load_url: Endpoint the HTTP persister loads from (defaults to save_url).
        final_description: Description of a synthesized FINAL rule.
        debug: Raise on invalid indexes instead of ignoring them.
    """

    has_final_rule: bool = True
    allow_move: bool = True
    allow_delete: bool = True
    allow_toggle: bool = True
    insertion_policy: InsertionPolicy = InsertionPolicy.BEFORE_FINAL
    rule_key: str = "rules"
    save_url: str | None = None
    load_url: str | None = None
    final_description: str = DEFAULT_FINAL_DESCRIPTION
    debug: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EditorSettings":
        """Create settings from a configuration dictionary.

        Accepts camelCase keys (``hasFinalRule``) and snake_case keys.
        Unknown keys are ignored.
        """
        settings = cls()
        for key, value in data.items():
            name = _KEY_ALIASES.get(key, key)
            if name == "insertion_policy":
                settings.insertion_policy = InsertionPolicy(value)
            elif name in ("has_final_rule", "allow_move", "allow_delete", "allow_toggle", "debug"):
                setattr(settings, name, parse_bool(value))
            elif name in ("rule_key", "save_url", "load_url", "final_description"):
                setattr(settings, name, value)
        return settings

    @classmethod
    def from_json_file(cls, path: Path) -> "EditorSettings":
        """Load settings from a JSON file; a missing file yields defaults."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_environment(cls) -> "EditorSettings":
        """Create settings from ``RULELIST_*`` environment variables."""
        settings = cls()
        env = os.environ
        for name in ("has_final_rule", "allow_move", "allow_delete", "allow_toggle", "debug"):
            value = env.get(f"RULELIST_{name.upper()}")
            if value is not None:
                setattr(settings, name, parse_bool(value))
        if policy := env.get("RULELIST_INSERTION_POLICY"):
            settings.insertion_policy = InsertionPolicy(policy)
        if rule_key := env.get("RULELIST_RULE_KEY"):
            settings.rule_key = rule_key
        if save_url := env.get("RULELIST_SAVE_URL"):
            settings.save_url = save_url
        if load_url := env.get("RULELIST_LOAD_URL"):
            settings.load_url = load_url
        if final_description := env.get("RULELIST_FINAL_DESCRIPTION"):
            settings.final_description = final_description
        return settings

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasFinalRule": self.has_final_rule,
            "allowMove": self.allow_move,
            "allowDelete": self.allow_delete,
            "allowToggle": self.allow_toggle,
            "insertionPolicy": self.insertion_policy.value,
            "ruleKey": self.rule_key,
            "saveUrl": self.save_url,
            "loadUrl": self.load_url,
            "finalDescription": self.final_description,
            "debug": self.debug,
        }
