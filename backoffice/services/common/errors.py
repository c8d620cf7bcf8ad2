"""
Service-layer exceptions.

These exceptions are raised inside service helpers and converted into
ServiceResult failures by BaseService._handle_exception.
"""
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID


class DomainError(Exception):
    """Base exception for all service-layer errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist."""

    def __init__(
        self,
        resource_type: str,
        identifier: UUID | str | int | None = None,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        super().__init__(message or f"{resource_type} not found", details)
        self.resource_type = resource_type
        self.identifier = identifier


class AlreadyExistsError(DomainError):
    """Raised when attempting to create a resource that already exists."""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: Any,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or f"{resource_type} with this {field} already exists", details)
        self.resource_type = resource_type
        self.field = field
        self.value = value


class ValidationError(DomainError):
    """Raised when business logic validation fails."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field


class AuthenticationError(DomainError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Not authorized to access this route") -> None:
        super().__init__(message)


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        required_permission: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.required_permission = required_permission


class ConflictError(DomainError):
    """Raised when an operation conflicts with current state."""

    def __init__(
        self,
        message: str,
        conflicting_field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.conflicting_field = conflicting_field


class BusinessRuleViolation(DomainError):
    """Raised when a business rule is violated."""

    def __init__(
        self,
        rule_name: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.rule_name = rule_name


class InvalidTransitionError(BusinessRuleViolation):
    """Raised when a status change is not allowed from the current status."""

    def __init__(self, entity: str, current: str, target: str) -> None:
        super().__init__(
            "status_transition",
            f"Cannot change {entity} status from {current} to {target}",
            details={"from": current, "to": target},
        )


class CounterUnavailableError(DomainError):
    """Raised when an identifier sequence cannot be advanced."""

    def __init__(self, sequence: str, reason: Optional[str] = None) -> None:
        super().__init__(
            "Identifier sequence unavailable",
            details={"sequence": sequence, "reason": reason},
        )
        self.sequence = sequence
