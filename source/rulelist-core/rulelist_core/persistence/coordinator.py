"""Optimistic persistence for rule list mutations.

Every mutation of the rule list goes through PersistenceCoordinator:

1. The mutation is applied to the RuleStore immediately.
2. The full list is serialized and handed to the Persister.
3. On success the Renderer draws the new list.
4. On failure the mutation is inverted, the Renderer re-draws, and a
   notice is reported.

Persists are not queued. A second mutation may be applied while an
earlier persist is still in flight.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from rulelist_core.persistence.persister import Persister
from rulelist_core.rules.errors import PersistFailure
from rulelist_core.rules.store import RuleStore
from rulelist_core.rules.view import Renderer


logger = logging.getLogger(__name__)

SAVE_FAILED_NOTICE = "Failed to save rules"

Inverse = Callable[[], None]
# Applies a mutation and returns how to undo it, None for a no-op, or True
# when the pre-mutation snapshot should be restored on failure.
Mutation = Callable[[], Inverse | bool | None]


class OutcomeStatus(Enum):
    SAVED = "saved"
    ROLLED_BACK = "rolled_back"
    NOOP = "noop"


@dataclass
class MutationOutcome:
    """Result of PersistenceCoordinator.commit_mutation."""
    status: OutcomeStatus
    error: PersistFailure | None = None

    @property
    def saved(self) -> bool:
        return self.status is OutcomeStatus.SAVED


class PersistenceCoordinator:
    """Applies mutations optimistically and rolls them back on failure.

    Args:
        store: The rule store being mutated.
        persister: Backend that durably saves the list.
        renderer: Optional renderer redrawn after save and after rollback.
        rule_key: Key under which the list is serialized.
        on_after_save: Called with True/False after every persist attempt.
        on_notice: Called with a user-facing message when a save fails.
    """

    def __init__(
        self,
        store: RuleStore,
        persister: Persister,
        renderer: Renderer | None = None,
        *,
        rule_key: str = "rules",
        on_after_save: Callable[[bool], None] | None = None,
        on_notice: Callable[[str], None] | None = None,
    ) -> None:
        self.store = store
        self.persister = persister
        self.renderer = renderer
        self.rule_key = rule_key
        self._on_after_save = on_after_save
        self._on_notice = on_notice
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of persists currently awaiting the Persister."""
        return self._in_flight

    async def commit_mutation(self, mutate: Mutation) -> MutationOutcome:
        """Apply ``mutate`` optimistically and persist the result.

        Args:
            mutate: Applies the change to the store and returns its inverse.
                Returning None means nothing changed; nothing is persisted.

        Returns:
            The outcome of the persist.
        """
        before = self.store.snapshot()
        inverse = mutate()
        if inverse is None or inverse is False:
            return MutationOutcome(OutcomeStatus.NOOP)

        payload = self.store.serialize(self.rule_key)
        self._in_flight += 1
        try:
            success = await self._save(payload)
        finally:
            self._in_flight -= 1

        if self._on_after_save is not None:
            self._on_after_save(success)

        if success:
            logger.info(f"Saved {len(self.store)} rules")
            self._render()
            return MutationOutcome(OutcomeStatus.SAVED)

        if callable(inverse):
            inverse()
        else:
            self.store.restore(before)
        logger.warning("Rule list save failed, mutation rolled back")
        self._render()
        if self._on_notice is not None:
            self._on_notice(SAVE_FAILED_NOTICE)
        return MutationOutcome(OutcomeStatus.ROLLED_BACK, error=PersistFailure(SAVE_FAILED_NOTICE))

    async def toggle(self, index: int, enabled: bool) -> MutationOutcome:
        """Set the enabled flag of a rule, flipping it back if the save fails."""

        def mutate() -> Inverse:
            previous = self.store.toggle_enabled(index, enabled)
            return lambda: self.store.toggle_enabled(index, previous)

        return await self.commit_mutation(mutate)

    async def _save(self, payload: dict) -> bool:
        try:
            return await self.persister.save(payload)
        except Exception as e:
            logger.warning(f"Persister failed: {type(e).__name__}: {e}")
            return False

    def _render(self) -> None:
        if self.renderer is not None:
            self.renderer.render(self.store.rules)
