"""Error types for the rule list editor."""


class RuleListError(Exception):
    """Base class for all rule list errors."""


class InvalidIndex(RuleListError, IndexError):
    """An index-based operation targeted a missing slot or the wrong rule kind.

    This is a programmer error: the presentation layer should never offer
    the operation in the first place.
    """

    def __init__(self, index: int, reason: str = "index out of range") -> None:
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid rule index {index}: {reason}")


class ProtectedRule(RuleListError):
    """Attempted to delete, move, toggle or duplicate the FINAL sentinel."""

    def __init__(self, index: int, operation: str) -> None:
        self.index = index
        self.operation = operation
        super().__init__(f"FINAL rule cannot be subject to '{operation}' (index {index})")


class ValidationError(RuleListError):
    """User supplied rule data was rejected by the validation hook."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PersistFailure(RuleListError):
    """The Persister could not durably save the rule list."""


class EditSessionError(RuleListError):
    """An edit session operation was called in the wrong state."""
