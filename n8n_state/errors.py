"""
Error taxonomy for n8n-state.

Every failure surfaced to the user is a StateError subclass. Components raise,
only the CLI catches, prints a one-line diagnostic and exits with exit_code.
"""

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .profiles.models import Violation


class StateError(Exception):
    """Base class for all n8n-state errors."""

    exit_code = 1

    def __init__(self, message: str, subject: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.subject = subject  # path, snapshot id or profile name

    def __str__(self) -> str:
        if self.subject:
            return f"{self.subject}: {self.message}"
        return self.message


class NotFoundError(StateError):
    """A snapshot, profile or file does not exist."""
    pass


class SnapshotNotFoundError(NotFoundError):
    pass


class NoCurrentSnapshotError(NotFoundError):
    """Restore was called without an id and no snapshot was ever saved."""
    pass


class ProfileNotFoundError(NotFoundError):
    pass


class AlreadyExistsError(StateError):
    """Name collision on create."""
    pass


class DuplicateIdError(AlreadyExistsError):
    """Two saves landed in the same second."""
    pass


class NoActiveServiceError(StateError):
    """The managed service is not running."""
    pass


class ServiceRunningError(StateError):
    """The managed service is running and the caller did not confirm."""
    pass


class ConfirmationDeclined(StateError):
    """The user answered no at an interactive prompt."""
    pass


class LockHeldError(StateError):
    """Another invocation holds the data directory lock."""
    pass


class StorageError(StateError):
    """Underlying filesystem failure (permissions, disk space, ...)."""

    def __init__(self, message: str, subject: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, subject)
        self.cause = cause


class ValidationError(StateError):
    """Profile failed schema validation.

    Validation itself returns violations; this is raised only where a caller
    asks for strict behaviour (e.g. switch-profile --strict).
    """

    def __init__(self, message: str, subject: Optional[str] = None,
                 violations: Optional[List["Violation"]] = None):
        super().__init__(message, subject)
        self.violations = violations or []
