"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries. Each one carries the HTTP status
the API layer answers with.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    status_code = 409


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors caught before any write."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.field = field
        super().__init__(message, details)


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConflictException(ApplicationException):
    """Exception when a write collides with an existing unique value."""

    status_code = 409


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class InvalidStateTransitionException(DomainException):
    """Raised when a lifecycle operation is not allowed from the current state."""

    def __init__(
        self,
        resource_type: str,
        current_state: str,
        action: str,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} {resource_type.lower()} in state {current_state}",
            details or {"state": current_state, "action": action}
        )
