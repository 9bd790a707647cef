"""Custom exception classes for the School Scheduler.

This module defines application-specific exceptions following Google Python
Style Guide. Engines raise these; the HTTP layer maps them to responses.
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base exception for all School Scheduler errors."""

    pass


class ValidationError(SchedulingError):
    """Raised when input is malformed, before any store call is made."""

    pass


class PermissionDeniedError(SchedulingError):
    """Raised when the actor's profile or ownership forbids the operation."""

    pass


class NotFoundError(SchedulingError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        """Initialize the exception.

        Args:
            entity: Human readable entity kind, e.g. "Appointment slot".
            entity_id: The ID that could not be found.
        """
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class InvalidStateError(SchedulingError):
    """Raised when an entity's current state forbids the operation."""

    pass


class ConflictError(SchedulingError):
    """Raised when a conditional update lost a race to another operation."""

    def __init__(self, message: str, current: Optional[Any] = None):
        """Initialize the exception.

        Args:
            message: Description of the conflict.
            current: Freshly fetched view of the contested entity, if any.
        """
        self.current = current
        super().__init__(message)


class DuplicateCodeError(SchedulingError):
    """Raised when an access code already exists."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Access code '{code}' already exists")


class StoreUnavailableError(SchedulingError):
    """Raised when the entity store cannot be reached."""

    pass
