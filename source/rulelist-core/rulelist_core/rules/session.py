"""Edit sessions for the add/edit rule dialog.

An EditSession owns one DraftRule from the moment the dialog opens until
it is committed or cancelled:

    CLOSED -> OPEN -> COMMITTED -> CLOSED
                   -> CANCELLED -> CLOSED

The draft is a copy; the rule list is only touched on a successful commit.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from rulelist_core.rules.errors import EditSessionError, ValidationError
from rulelist_core.rules.models import FINAL_RULE_TYPE, Rule
from rulelist_core.rules.schema import RuleSchema, TransformHook, ValidationHook
from rulelist_core.rules.store import RuleStore
from rulelist_core.rules.visibility import VisibilityEvaluator


logger = logging.getLogger(__name__)


class SessionState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class DraftRule:
    """Mutable working copy of a rule.

    Attributes:
        values: Current value of every field in the dialog, keyed by name
        is_final: Whether the FINAL rule is being edited
        index: Index of the edited rule, -1 for a new rule
        original_enabled: Enabled flag carried over on commit
    """
    values: dict[str, Any] = field(default_factory=dict)
    is_final: bool = False
    index: int = -1
    original_enabled: bool = True

    @property
    def is_new(self) -> bool:
        return self.index < 0

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)


@dataclass
class CommitResult:
    """Outcome of EditSession.commit.

    Exactly one of ``rule`` and ``error`` is set.
    """
    rule: Rule | None = None
    error: ValidationError | None = None
    index: int = -1
    previous: Rule | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.rule is not None


class EditSession:
    """Draft lifecycle of the rule dialog."""

    def __init__(
        self,
        schema: RuleSchema,
        store: RuleStore,
        *,
        validator: ValidationHook | None = None,
        transformer: TransformHook | None = None,
        on_visibility_change: Callable[[dict[str, bool]], None] | None = None,
    ) -> None:
        self.schema = schema
        self.store = store
        self._validator = validator
        self._transformer = transformer
        self._on_visibility_change = on_visibility_change
        self._evaluator = VisibilityEvaluator(schema.field_specs)
        self.state = SessionState.CLOSED
        self.draft: DraftRule | None = None
        self.visibility: dict[str, bool] = {}

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def is_final_edit(self) -> bool:
        return self.draft is not None and self.draft.is_final

    def open(self, existing: Rule | None = None, index: int = -1) -> DraftRule:
        """Start editing ``existing`` at ``index``, or a new rule.

        Raises:
            EditSessionError: If the session is already open.
        """
        if self.state is SessionState.OPEN:
            raise EditSessionError("Edit session is already open")
        if existing is None:
            index = -1
        is_final = existing is not None and existing.is_final

        values: dict[str, Any] = {}
        for spec in self.schema.field_specs:
            if not spec.applies_to(is_final):
                continue
            value = existing.get(spec.name) if existing is not None else None
            if value is None or value == "":
                value = self.schema.default_value(spec, is_final)
            values[spec.name] = value

        self.draft = DraftRule(
            values=values,
            is_final=is_final,
            index=index,
            original_enabled=existing.enabled if existing is not None else True,
        )
        self.state = SessionState.OPEN
        self.visibility = self._evaluator.compute(values, is_final)
        logger.debug(f"Opened edit session (index={index}, final={is_final})")
        return self.draft

    def set_field(self, name: str, value: Any) -> dict[str, bool]:
        """Update one draft value.

        Visibility is recomputed when other fields depend on ``name``.

        Raises:
            KeyError: If ``name`` is not a field of this dialog.
        """
        draft = self._require_open()
        if name not in draft.values:
            raise KeyError(name)
        draft.values[name] = value
        if self._evaluator.has_dependents(name):
            self.visibility = self._evaluator.compute(draft.values, draft.is_final)
            if self._on_visibility_change is not None:
                self._on_visibility_change(dict(self.visibility))
        return dict(self.visibility)

    def collect(self) -> dict[str, Any]:
        """Values of the currently visible fields."""
        draft = self._require_open()
        return {
            name: value
            for name, value in draft.values.items()
            if self.visibility.get(name, False)
        }

    def build_candidate(self) -> Rule:
        draft = self._require_open()
        data = self.collect()
        if draft.is_final:
            data["type"] = FINAL_RULE_TYPE
        data["enabled"] = draft.original_enabled
        return Rule.from_dict(data)

    def commit(self) -> CommitResult:
        """Validate, transform and store the draft.

        On a validation failure the session stays open and the rule list
        is untouched.
        """
        draft = self._require_open()
        candidate = self.build_candidate()

        if self._validator is not None:
            message = self._validator(candidate, draft.is_final)
            if message:
                logger.info(f"Rule rejected by validation: {message}")
                return CommitResult(error=ValidationError(message), index=draft.index)

        if self._transformer is not None:
            candidate = self._transformer(candidate, draft.is_final) or candidate

        previous = None
        if draft.is_new:
            index = self.store.insert(candidate)
        else:
            index = draft.index
            previous = self.store.replace(index, candidate)

        self.state = SessionState.COMMITTED
        return CommitResult(rule=candidate.copy(), index=index, previous=previous)

    def cancel(self) -> None:
        self._require_open()
        self.draft = None
        self.visibility = {}
        self.state = SessionState.CANCELLED

    def close(self) -> None:
        """Return to CLOSED after a commit or cancel."""
        if self.state is SessionState.OPEN:
            raise EditSessionError("Commit or cancel the edit session before closing it")
        self.draft = None
        self.visibility = {}
        self.state = SessionState.CLOSED

    def _require_open(self) -> DraftRule:
        if self.state is not SessionState.OPEN or self.draft is None:
            raise EditSessionError(f"Edit session is not open (state: {self.state.value})")
        return self.draft
