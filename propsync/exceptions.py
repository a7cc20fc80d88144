"""
Exception types shared by the reconciliation services and entry points.
"""

from typing import Any


class PropSyncError(Exception):
    """Base exception for all propsync errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(PropSyncError):
    """Raised when a referenced user, organization, property, space or invoice is absent."""

    def __init__(self, resource_type: str, identifier: Any, details: dict[str, Any] | None = None):
        message = f"{resource_type} with identifier '{identifier}' not found"
        super().__init__(message, details)
        self.resource_type = resource_type
        self.identifier = identifier


class ValidationError(PropSyncError):
    """Raised when input is malformed or out of range. Nothing has been written."""

    def __init__(self, message: str, field: str | None = None, value: Any = None,
                 details: dict[str, Any] | None = None):
        if field:
            full_message = f"Validation error for field '{field}': {message}"
        else:
            full_message = message
        super().__init__(full_message, details)
        self.field = field
        self.value = value


class DuplicateSpaceIdError(ValidationError):
    """Raised when a space id occurs more than once inside one property."""

    def __init__(self, property_id: str | None, space_id: str, occurrences: int):
        super().__init__(
            f"space id '{space_id}' occurs {occurrences} times in property '{property_id}'",
            field='spaceId',
            value=space_id,
        )
        self.property_id = property_id
        self.space_id = space_id
        self.occurrences = occurrences


class PermissionDeniedError(PropSyncError):
    """Raised when the caller lacks the scope for a mutation."""

    def __init__(self, operation: str, record_id: str | None = None):
        message = f"Permission denied for {operation}"
        if record_id:
            message = f"{message} on '{record_id}'"
        super().__init__(message)
        self.operation = operation
        self.record_id = record_id


class StoreError(PropSyncError):
    """Wraps a failure reported by Firestore, with the operation and record it concerned."""

    def __init__(self, operation: str, record_id: str | None = None, cause: Exception | None = None):
        message = f"Store error during {operation}"
        if record_id:
            message = f"{message} for '{record_id}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.record_id = record_id
        self.cause = cause
