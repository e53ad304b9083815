"""Abstract persister interface for rule lists."""

import copy
from abc import ABC, abstractmethod
from typing import Any


class Persister(ABC):
    """Abstract base class for rule list persistence.

    Implementations can provide different storage backends:
    - MemoryPersister: In-memory storage (for development/testing)
    - JsonFilePersister: A JSON document on disk
    - SQLitePersister: A row in a SQLite database
    - HttpPersister: A remote save endpoint
    """

    @abstractmethod
    async def save(self, payload: dict[str, Any]) -> bool:
        """Durably save a serialized rule list.

        Args:
            payload: The full list as ``{rule_key: [rule, ...]}``.

        Returns:
            True if the list was saved, False otherwise.
        """
        ...

    async def load(self) -> dict[str, Any] | None:
        """Load the last saved payload.

        Returns:
            The payload, or None when nothing was saved or the backend
            is write-only.
        """
        return None

    async def close(self) -> None:
        """Release backend resources."""


class MemoryPersister(Persister):
    """In-memory persister for testing.

    Keeps every saved payload. Set ``fail`` to make saves report failure.
    """

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[dict[str, Any]] = []
        self.attempts = 0

    async def save(self, payload: dict[str, Any]) -> bool:
        self.attempts += 1
        if self.fail:
            return False
        self.saved.append(copy.deepcopy(payload))
        return True

    async def load(self) -> dict[str, Any] | None:
        if not self.saved:
            return None
        return copy.deepcopy(self.saved[-1])

    def clear(self) -> None:
        self.saved.clear()
        self.attempts = 0
