"""rulelist Core - ordered rewrite rule list editor."""

from rulelist_core.config import EditorSettings
from rulelist_core.rules import (
    Rule,
    RuleKind,
    InsertionPolicy,
    FieldSpec,
    VisibilityRule,
    RuleStore,
    RuleSchema,
    EditSession,
    Renderer,
    default_schema,
    RuleListError,
    InvalidIndex,
    ProtectedRule,
    ValidationError,
    PersistFailure,
)
from rulelist_core.persistence import (
    Persister,
    MemoryPersister,
    JsonFilePersister,
    SQLitePersister,
    HttpPersister,
    PersistenceCoordinator,
)
from rulelist_core.manager import RuleManager, CommandResult, CommandStatus

__all__ = [
    # Config
    "EditorSettings",
    # Rules
    "Rule",
    "RuleKind",
    "InsertionPolicy",
    "FieldSpec",
    "VisibilityRule",
    "RuleStore",
    "RuleSchema",
    "EditSession",
    "Renderer",
    "default_schema",
    # Errors
    "RuleListError",
    "InvalidIndex",
    "ProtectedRule",
    "ValidationError",
    "PersistFailure",
    # Persistence
    "Persister",
    "MemoryPersister",
    "JsonFilePersister",
    "SQLitePersister",
    "HttpPersister",
    "PersistenceCoordinator",
    # Manager
    "RuleManager",
    "CommandResult",
    "CommandStatus",
]
