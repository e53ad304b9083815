"""Rule list module for rulelist Core.

This module provides the ordered rule list with its FINAL sentinel,
reordering for button and drag interaction, schema-driven field
visibility, and the add/edit dialog session.
"""

from rulelist_core.rules.errors import (
    RuleListError,
    InvalidIndex,
    ProtectedRule,
    ValidationError,
    PersistFailure,
    EditSessionError,
)
from rulelist_core.rules.models import (
    Rule,
    RuleKind,
    InputKind,
    InsertionPolicy,
    Option,
    VisibilityRule,
    FieldSpec,
)
from rulelist_core.rules.store import RuleStore, initialize_rules
from rulelist_core.rules.reorder import DragState, relocate, swap_up, swap_down, drop_after
from rulelist_core.rules.visibility import VisibilityEvaluator, compute_visibility
from rulelist_core.rules.schema import (
    RuleSchema,
    ColumnSpec,
    ColumnKind,
    default_schema,
    default_validator,
    default_transformer,
)
from rulelist_core.rules.session import EditSession, DraftRule, CommitResult, SessionState
from rulelist_core.rules.view import Renderer, RuleRow, Cell, build_rows

__all__ = [
    # Errors
    "RuleListError",
    "InvalidIndex",
    "ProtectedRule",
    "ValidationError",
    "PersistFailure",
    "EditSessionError",
    # Models
    "Rule",
    "RuleKind",
    "InputKind",
    "InsertionPolicy",
    "Option",
    "VisibilityRule",
    "FieldSpec",
    # Store
    "RuleStore",
    "initialize_rules",
    # Reorder
    "DragState",
    "relocate",
    "swap_up",
    "swap_down",
    "drop_after",
    # Visibility
    "VisibilityEvaluator",
    "compute_visibility",
    # Schema
    "RuleSchema",
    "ColumnSpec",
    "ColumnKind",
    "default_schema",
    "default_validator",
    "default_transformer",
    # Session
    "EditSession",
    "DraftRule",
    "CommitResult",
    "SessionState",
    # View
    "Renderer",
    "RuleRow",
    "Cell",
    "build_rows",
]
