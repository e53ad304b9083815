"""Persistence for rule lists.

Provides the Persister interface, its storage backends, and the
coordinator that applies mutations optimistically and rolls them back
when a save fails.
"""

from rulelist_core.persistence.persister import Persister, MemoryPersister
from rulelist_core.persistence.file import JsonFilePersister
from rulelist_core.persistence.sqlite import SQLitePersister
from rulelist_core.persistence.http import HttpPersister
from rulelist_core.persistence.coordinator import (
    PersistenceCoordinator,
    MutationOutcome,
    OutcomeStatus,
    SAVE_FAILED_NOTICE,
)

__all__ = [
    "Persister",
    "MemoryPersister",
    "JsonFilePersister",
    "SQLitePersister",
    "HttpPersister",
    "PersistenceCoordinator",
    "MutationOutcome",
    "OutcomeStatus",
    "SAVE_FAILED_NOTICE",
]
