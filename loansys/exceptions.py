"""
Domain exceptions raised by loansys services and repositories.
"""

from typing import Any, Optional


class LoanSysError(Exception):
    """Base class for all loansys errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LoanSysError):
    """Raised when input data fails validation."""

    def __init__(self, message: str, field: str = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidTransitionError(LoanSysError):
    """Raised when a lifecycle action is not allowed from the current status."""

    def __init__(self, action: str, status: str, reason: Optional[str] = None):
        message = f"Cannot {action} a loan in status '{status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.action = action
        self.status = status
        self.reason = reason


class NotFoundError(LoanSysError):
    """Raised when a loan or user does not exist."""

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(LoanSysError):
    """Raised when a user acts on a loan outside their role scope."""


class StorageError(LoanSysError):
    """Raised when a storage backend cannot load or save a collection."""

    def __init__(self, message: str, collection: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
