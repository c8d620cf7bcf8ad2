from .errors import (
    AlreadyExistsError,
    AuthenticationError,
    AuthorizationError,
    BusinessRuleViolation,
    ConflictError,
    CounterUnavailableError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from .permissions import PermissionDenied, Principal, authorize, is_allowed, require_role

__all__ = [
    "AlreadyExistsError",
    "AuthenticationError",
    "AuthorizationError",
    "BusinessRuleViolation",
    "ConflictError",
    "CounterUnavailableError",
    "DomainError",
    "InvalidTransitionError",
    "NotFoundError",
    "ValidationError",
    "PermissionDenied",
    "Principal",
    "authorize",
    "is_allowed",
    "require_role",
]
