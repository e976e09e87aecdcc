"""Error taxonomy for todolist.

- TodoError: base class for every error the core reports
- ValidationError: rejected input (malformed due date, unknown filter)
- FormatError: an import payload that is not a JSON array of task objects
- PersistenceReadError: saved state that could not be read; logged, never raised
"""


class TodoError(Exception):
    """Base class for todolist errors."""


class ValidationError(TodoError):
    """Raised when caller input fails validation. No state is changed."""


class FormatError(TodoError):
    """Raised when an import payload cannot be merged. No state is changed."""


class PersistenceReadError(TodoError):
    """Saved tasks could not be read back from storage."""
