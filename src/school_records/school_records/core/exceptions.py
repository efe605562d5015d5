from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a session lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class AlreadyMarkedError(DomainError):
    """Raised when attendance already exists for a student on a day."""


class OutOfWindowError(DomainError):
    """Raised when amend/retract targets a record that is not today's."""


class ConsistencyFailure(DomainError):
    """A cascade step failed partway.

    The store is left with an orphan entity, never with dangling references.
    """

    def __init__(
        self,
        message: str,
        *,
        step: str,
        classes_updated: int = 0,
        subjects_removed: int = 0,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.step = step
        self.classes_updated = classes_updated
        self.subjects_removed = subjects_removed
        self.cause = cause


class AuditWriteFailure(DomainError):
    """Appending an audit record failed. Logged, never raised past the primary operation."""
