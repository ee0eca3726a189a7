from __future__ import annotations


class CommanderError(Exception):
    """Base error for the commander core."""

    code = "Error"
    transient = False


class NotFoundError(CommanderError):
    """Raised when a path or item does not exist."""

    code = "NotFound"


class PermissionDeniedError(CommanderError):
    """Raised when the backend refuses access to a path or item."""

    code = "PermissionDenied"


class BackendUnavailableError(CommanderError):
    """Raised on connectivity failures and expired deadlines. Safe to retry."""

    code = "BackendUnavailable"
    transient = True


class UnreadableError(CommanderError):
    """Raised when an item cannot be read (e.g. a container)."""

    code = "Unreadable"


class ReadOnlyError(CommanderError):
    """Raised when a backend, profile or item does not support mutation."""

    code = "ReadOnly"


class ConflictError(CommanderError):
    """Raised on concurrent modification or when the engine is busy."""

    code = "Conflict"


class ValidationError(CommanderError):
    """Raised when user input is invalid."""

    code = "Validation"
