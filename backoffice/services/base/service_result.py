"""
Outcome objects returned by every service call.

Services never raise into the API layer. They return a ServiceResult
that either carries the entity, page or report that was produced, or a
ServiceError whose code decides the HTTP status of the response.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar


class ErrorCode(str, Enum):
    """Failure categories understood by the HTTP error handlers."""

    # Lookups and input
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Duplicates and clashing writes (phone taken, attendance already marked)
    ALREADY_EXISTS = "ALREADY_EXISTS"
    CONFLICT = "CONFLICT"

    # Lifecycle rules (batch full, refund of a pending payment)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"

    # Access
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Identifier counters could not be advanced
    SEQUENCE_UNAVAILABLE = "SEQUENCE_UNAVAILABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorSeverity(str, Enum):
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """
    A failed operation.

    Attributes:
        code: Category used to pick the HTTP status
        message: Client-facing text, e.g. "Selected batch is full"
        severity: WARNING for rejected requests, CRITICAL for faults
        details: Structured context (resource, field values)
        field: Input field a validation error refers to
    """

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None

    @property
    def is_client_error(self) -> bool:
        return self.code not in (ErrorCode.INTERNAL_ERROR, ErrorCode.SEQUENCE_UNAVAILABLE)


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Success or failure of a service operation.

    `message` is the confirmation shown to the user on success
    ("Student created successfully") and the error text on failure.
    `metadata` holds extras such as list summaries.
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(is_success=True, data=data, message=message, metadata=metadata or {})

    @classmethod
    def failure(cls, error: ServiceError) -> "ServiceResult[TData]":
        return cls(is_success=False, error=error, message=error.message)

    @classmethod
    def validation_failure(cls, message: str, field: Optional[str] = None) -> "ServiceResult[TData]":
        """Reject a request whose input breaks a rule, e.g. deleting your own account."""
        return cls.failure(
            ServiceError(
                code=ErrorCode.VALIDATION_ERROR,
                message=message,
                field=field,
                severity=ErrorSeverity.WARNING,
            )
        )

    @classmethod
    def not_found(cls, resource_type: str, resource_id: Optional[Any] = None) -> "ServiceResult[TData]":
        return cls.failure(
            ServiceError(
                code=ErrorCode.NOT_FOUND,
                message=f"{resource_type} not found",
                details={"resource": resource_type, "id": str(resource_id) if resource_id else None},
                severity=ErrorSeverity.WARNING,
            )
        )

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        status = "Success" if self.is_success else f"Failure[{self.error.code.value}]"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
