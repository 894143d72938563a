"""
Error taxonomy for the progression engine.

InvalidOperation is raised synchronously, before anything is mutated.
PersistenceWarning is non-fatal: in-memory state stays authoritative.
"""


class EngineError(Exception):
    """Base class for engine errors."""
    pass


class InvalidOperation(EngineError):
    """Operation not allowed in the current engine state."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Cannot {operation}: {reason}")


class PersistenceWarning(EngineError):
    """A blob could not be written to or removed from the key-value store."""

    def __init__(self, key: str, error: Exception):
        self.key = key
        self.error = error
        super().__init__(f"Failed to persist '{key}': {error}")
