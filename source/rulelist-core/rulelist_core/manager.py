"""Command interface of the rule list editor.

RuleManager turns every user action (add, edit, delete, move, drag,
toggle) into an explicit method call that returns a typed CommandResult.
The presentation layer decides how to surface results, confirmations and
notices; nothing here talks to a UI toolkit.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from rulelist_core.config import EditorSettings
from rulelist_core.persistence import (
    MutationOutcome,
    OutcomeStatus,
    PersistenceCoordinator,
    Persister,
    SAVE_FAILED_NOTICE,
)
from rulelist_core.rules.errors import InvalidIndex, ProtectedRule
from rulelist_core.rules.models import Rule
from rulelist_core.rules.reorder import DragState
from rulelist_core.rules.schema import RuleSchema, TransformHook, ValidationHook, default_schema
from rulelist_core.rules.session import EditSession
from rulelist_core.rules.store import RuleStore
from rulelist_core.rules.view import Renderer, RuleRow, build_rows


logger = logging.getLogger(__name__)


class CommandStatus(Enum):
    """Outcome kinds of a user command.

    - OK: Applied and saved
    - NOOP: Nothing to do (boundary move, cancelled confirmation)
    - REJECTED: Refused (FINAL rule, feature disabled)
    - INVALID: Rejected by validation; the dialog stays open
    - ROLLED_BACK: Applied, but the save failed and it was undone
    """
    OK = "ok"
    NOOP = "noop"
    REJECTED = "rejected"
    INVALID = "invalid"
    ROLLED_BACK = "rolled_back"


@dataclass
class CommandResult:
    """Typed result of a RuleManager command."""
    status: CommandStatus
    message: str = ""
    rule: Rule | None = None
    index: int = -1

    @property
    def ok(self) -> bool:
        return self.status is CommandStatus.OK


class RuleManager:
    """Rule list editor.

    Owns the RuleStore, the drag state and the active edit session, and
    routes every mutation through one PersistenceCoordinator.

    Args:
        persister: Backend that saves the list after every mutation.
        renderer: Optional renderer, drawn on creation and after every
            save or rollback.
        settings: Editor configuration.
        schema: Rule schema; defaults to the header rewrite schema.
        initial_rules: Rules to start with.
        validator: Validation hook run on dialog commit.
        transformer: Transform hook run after validation.
        on_after_save: Called with the result of every persist attempt.
        on_notice: Called with user-facing failure notices.
    """

    def __init__(
        self,
        persister: Persister,
        renderer: Renderer | None = None,
        *,
        settings: EditorSettings | None = None,
        schema: RuleSchema | None = None,
        initial_rules: list[Rule] | None = None,
        validator: ValidationHook | None = None,
        transformer: TransformHook | None = None,
        on_after_save: Callable[[bool], None] | None = None,
        on_notice: Callable[[str], None] | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.schema = schema or default_schema()
        self.renderer = renderer
        self.store = RuleStore(
            initial_rules or [],
            has_final_rule=self.settings.has_final_rule,
            insertion_policy=self.settings.insertion_policy,
            final_description=self.settings.final_description,
        )
        self.coordinator = PersistenceCoordinator(
            self.store,
            persister,
            renderer,
            rule_key=self.settings.rule_key,
            on_after_save=on_after_save,
            on_notice=on_notice,
        )
        self.drag = DragState()
        self._validator = validator
        self._transformer = transformer
        self._session: EditSession | None = None
        self.render()

    @classmethod
    async def from_persister(
        cls,
        persister: Persister,
        renderer: Renderer | None = None,
        **kwargs: Any,
    ) -> "RuleManager":
        """Create a manager whose initial rules are loaded from ``persister``."""
        settings = kwargs.get("settings") or EditorSettings()
        payload = await persister.load()
        rules = [Rule.from_dict(item) for item in (payload or {}).get(settings.rule_key, [])]
        logger.info(f"Loaded {len(rules)} rules")
        return cls(persister, renderer, initial_rules=rules, **kwargs)

    @property
    def rules(self) -> list[Rule]:
        return self.store.rules

    def rows(self) -> list[RuleRow]:
        return build_rows(
            self.store.rules,
            self.schema,
            allow_move=self.settings.allow_move,
            allow_delete=self.settings.allow_delete,
            allow_toggle=self.settings.allow_toggle,
        )

    def attach_renderer(self, renderer: Renderer | None) -> None:
        """Replace the renderer used after saves and rollbacks."""
        self.renderer = renderer
        self.coordinator.renderer = renderer

    def render(self) -> None:
        if self.renderer is not None:
            self.renderer.render(self.store.rules)

    # Dialog

    def open_add_dialog(self) -> EditSession:
        return self._open_session(None, -1)

    def edit_rule(self, index: int) -> EditSession:
        """Open the dialog on a copy of the rule at ``index``.

        Raises:
            InvalidIndex: If ``index`` is out of range.
        """
        return self._open_session(self.store.get(index), index)

    def close_dialog(self) -> None:
        if self._session is not None and self._session.is_open:
            self._session.cancel()
            self._session.close()
        self._session = None

    async def save_from_dialog(self, session: EditSession | None = None) -> CommandResult:
        """Commit the dialog draft and persist the list.

        On a validation failure the dialog stays open and the result
        carries the validation message.
        """
        session = session or self._session
        if session is None or not session.is_open:
            return CommandResult(CommandStatus.NOOP, "No open dialog")

        commit = None

        def mutate():
            nonlocal commit
            commit = session.commit()
            if not commit.ok:
                return None
            index = commit.index
            if commit.previous is None:
                return lambda: self.store.delete(index)
            previous = commit.previous
            return lambda: self.store.replace(index, previous)

        try:
            outcome = await self.coordinator.commit_mutation(mutate)
        except InvalidIndex as e:
            return self._invalid_index(e)
        except ProtectedRule as e:
            return CommandResult(CommandStatus.REJECTED, str(e), index=e.index)

        if commit is not None and commit.error is not None:
            return CommandResult(CommandStatus.INVALID, commit.error.message, index=commit.index)

        session.close()
        if session is self._session:
            self._session = None
        return self._result(outcome, rule=commit.rule, index=commit.index)

    async def add_rule(self, values: dict[str, Any]) -> CommandResult:
        """Add a rule from field values in one step."""
        session = self.open_add_dialog()
        return await self._fill_and_save(session, values)

    async def update_rule(self, index: int, values: dict[str, Any]) -> CommandResult:
        """Edit the rule at ``index`` with field values in one step."""
        try:
            session = self.edit_rule(index)
        except InvalidIndex as e:
            return self._invalid_index(e)
        return await self._fill_and_save(session, values)

    # List commands

    async def delete_rule(
        self,
        index: int,
        confirm: Callable[[], bool] | None = None,
    ) -> CommandResult:
        """Delete the rule at ``index`` after an optional confirmation."""
        if not self.settings.allow_delete:
            return CommandResult(CommandStatus.REJECTED, "Deleting rules is disabled", index=index)
        if self.store.is_final(index):
            return CommandResult(CommandStatus.REJECTED, "FINAL rule cannot be deleted", index=index)
        if not 0 <= index < len(self.store):
            return self._invalid_index(InvalidIndex(index))
        if confirm is not None and not confirm():
            return CommandResult(CommandStatus.NOOP, "Deletion cancelled", index=index)

        def mutate():
            removed = self.store.delete(index)
            return lambda: self.store.insert_at(index, removed)

        outcome = await self.coordinator.commit_mutation(mutate)
        return self._result(outcome, index=index)

    async def move_rule_up(self, index: int) -> CommandResult:
        if not self.settings.allow_move:
            return CommandResult(CommandStatus.REJECTED, "Moving rules is disabled", index=index)

        def mutate():
            if not self.store.move_up(index):
                return None
            return lambda: self.store.move_down(index - 1)

        outcome = await self.coordinator.commit_mutation(mutate)
        return self._result(outcome, index=index - 1 if outcome.status is OutcomeStatus.SAVED else index)

    async def move_rule_down(self, index: int) -> CommandResult:
        if not self.settings.allow_move:
            return CommandResult(CommandStatus.REJECTED, "Moving rules is disabled", index=index)

        def mutate():
            if not self.store.move_down(index):
                return None
            return lambda: self.store.move_up(index + 1)

        outcome = await self.coordinator.commit_mutation(mutate)
        return self._result(outcome, index=index + 1 if outcome.status is OutcomeStatus.SAVED else index)

    def start_drag(self, index: int) -> bool:
        if not self.settings.allow_move:
            return False
        return self.drag.start(self.store.rules, index)

    def drag_over(self, index: int) -> bool:
        """Whether the row at ``index`` accepts the dragged rule."""
        return self.drag.can_drop(self.store.rules, index)

    def end_drag(self) -> None:
        self.drag.reset()

    async def drop_rule(self, target_index: int, drop_after: bool) -> CommandResult:
        """Finish a drag gesture on the row at ``target_index``."""
        source_index = self.drag.dragged_index
        self.drag.reset()
        if source_index == -1:
            return CommandResult(CommandStatus.NOOP, "No drag in progress")
        return await self.relocate_rule(source_index, target_index, drop_after)

    async def relocate_rule(
        self,
        source_index: int,
        target_index: int,
        drop_after: bool,
    ) -> CommandResult:
        if not self.settings.allow_move:
            return CommandResult(CommandStatus.REJECTED, "Moving rules is disabled", index=source_index)

        landed = None

        def mutate():
            nonlocal landed
            landed = self.store.relocate(source_index, target_index, drop_after)
            if landed is None:
                return None
            new_index = landed
            return lambda: self.store.insert_at(source_index, self.store.delete(new_index))

        outcome = await self.coordinator.commit_mutation(mutate)
        if outcome.status is OutcomeStatus.SAVED:
            return self._result(outcome, index=landed)
        return self._result(outcome, index=source_index)

    async def toggle_rule_enabled(self, index: int, enabled: bool) -> CommandResult:
        if not self.settings.allow_toggle:
            return CommandResult(CommandStatus.REJECTED, "Toggling rules is disabled", index=index)
        try:
            outcome = await self.coordinator.toggle(index, enabled)
        except ProtectedRule:
            return CommandResult(CommandStatus.REJECTED, "FINAL rule is always enabled", index=index)
        except InvalidIndex as e:
            return self._invalid_index(e)
        return self._result(outcome, index=index)

    # Helpers

    def _open_session(self, existing: Rule | None, index: int) -> EditSession:
        self.close_dialog()
        session = EditSession(
            self.schema,
            self.store,
            validator=self._validator,
            transformer=self._transformer,
        )
        session.open(existing, index)
        self._session = session
        return session

    async def _fill_and_save(self, session: EditSession, values: dict[str, Any]) -> CommandResult:
        try:
            for name, value in values.items():
                session.set_field(name, value)
        except KeyError as e:
            self.close_dialog()
            return CommandResult(CommandStatus.INVALID, f"Unknown field: {e.args[0]}")
        result = await self.save_from_dialog(session)
        if session.is_open:
            self.close_dialog()
        return result

    def _invalid_index(self, error: InvalidIndex) -> CommandResult:
        if self.settings.debug:
            raise error
        logger.debug(f"Ignored command: {error}")
        return CommandResult(CommandStatus.NOOP, str(error), index=error.index)

    def _result(
        self,
        outcome: MutationOutcome,
        rule: Rule | None = None,
        index: int = -1,
    ) -> CommandResult:
        if outcome.status is OutcomeStatus.SAVED:
            return CommandResult(CommandStatus.OK, rule=rule, index=index)
        if outcome.status is OutcomeStatus.ROLLED_BACK:
            return CommandResult(CommandStatus.ROLLED_BACK, SAVE_FAILED_NOTICE, rule=rule, index=index)
        return CommandResult(CommandStatus.NOOP, index=index)
