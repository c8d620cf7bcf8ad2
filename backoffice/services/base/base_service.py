"""
Base service class providing common functionality for all services.
"""

from typing import TypeVar, Generic, Optional, Dict, Any
from abc import ABC
from contextlib import contextmanager
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backoffice.core.logging import get_audit_logger, get_logger
from backoffice.repositories.base.base_repository import BaseRepository
from backoffice.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)
from backoffice.services.common.errors import (
    AlreadyExistsError,
    AuthenticationError,
    AuthorizationError,
    BusinessRuleViolation,
    ConflictError,
    CounterUnavailableError,
    DomainError,
    NotFoundError,
    ValidationError,
)


TModel = TypeVar("TModel")
TRepo = TypeVar("TRepo", bound=BaseRepository)

# Ordered: subclasses before their bases
EXCEPTION_ERROR_CODES = (
    (NotFoundError, ErrorCode.NOT_FOUND),
    (AlreadyExistsError, ErrorCode.ALREADY_EXISTS),
    (ConflictError, ErrorCode.CONFLICT),
    (ValidationError, ErrorCode.VALIDATION_ERROR),
    (BusinessRuleViolation, ErrorCode.BUSINESS_RULE_VIOLATION),
    (AuthenticationError, ErrorCode.AUTHENTICATION_FAILED),
    (AuthorizationError, ErrorCode.INSUFFICIENT_PERMISSIONS),
    (CounterUnavailableError, ErrorCode.SEQUENCE_UNAVAILABLE),
    (IntegrityError, ErrorCode.CONFLICT),
    (SQLAlchemyError, ErrorCode.INTERNAL_ERROR),
)

EXPECTED_ERROR_CODES = frozenset({
    ErrorCode.NOT_FOUND,
    ErrorCode.ALREADY_EXISTS,
    ErrorCode.CONFLICT,
    ErrorCode.VALIDATION_ERROR,
    ErrorCode.BUSINESS_RULE_VIOLATION,
    ErrorCode.AUTHENTICATION_FAILED,
    ErrorCode.INSUFFICIENT_PERMISSIONS,
})


class BaseService(ABC, Generic[TModel, TRepo]):
    """
    Base service with common behaviors:
    - Shared logger and db session
    - Consistent error handling via ServiceResult
    - Transaction management utilities
    - Standardized get/delete operations
    """

    resource_name: str = "Resource"

    def __init__(self, repository: TRepo, db_session: Session):
        """
        Initialize base service.

        Args:
            repository: Repository instance for data access
            db_session: SQLAlchemy database session
        """
        self.repository: TRepo = repository
        self.db: Session = db_session
        self._logger = get_logger(self.__class__.__name__)
        self._audit = get_audit_logger(service=self.__class__.__name__)

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.CRITICAL,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Domain errors keep their own message; anything unexpected is
        reported as a generic server error.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the entity involved (ID, name, etc.)
            severity: Error severity level
            additional_context: Extra context for logging/debugging

        Returns:
            ServiceResult with failure status and error details
        """
        error_code = self._map_exception_to_error_code(exception)
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }
        if additional_context:
            context.update(additional_context)

        if error_code in EXPECTED_ERROR_CODES:
            self._logger.warning(f"{operation} rejected: {exception}", extra=context)
            severity = ErrorSeverity.WARNING
        else:
            self._logger.error(
                f"Error during {operation}: {exception}",
                exc_info=True,
                extra=context,
            )

        if isinstance(exception, DomainError):
            message = exception.message
            details = exception.details or None
        elif isinstance(exception, IntegrityError):
            message = f"{self.resource_name} conflicts with an existing record"
            details = None
        else:
            message = "Server error"
            details = None

        return ServiceResult.failure(
            ServiceError(
                code=error_code,
                message=message,
                details=details,
                field=getattr(exception, "field", None) if isinstance(exception, ValidationError) else None,
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """
        Map exception types to appropriate error codes.

        Args:
            exception: The exception to map

        Returns:
            Appropriate ErrorCode for the exception
        """
        for exc_type, error_code in EXCEPTION_ERROR_CODES:
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    # -------------------------------------------------------------------------
    # Transaction Management
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self, auto_commit: bool = True):
        """
        Context manager for database transactions with automatic rollback.

        Args:
            auto_commit: Whether to commit automatically on success

        Yields:
            The database session

        Example:
            with self.transaction():
                self.repository.create(data)
                # automatic commit on success, rollback on exception
        """
        try:
            yield self.db
            if auto_commit:
                self._commit()
        except Exception as e:
            self._rollback()
            self._logger.debug(f"Transaction aborted: {e}")
            raise

    def _commit(self) -> None:
        """Commit the current transaction with error handling."""
        try:
            self.db.commit()
            self._logger.debug("Transaction committed successfully")
        except Exception as e:
            self._logger.error(f"Commit failed: {e}", exc_info=True)
            self._rollback()
            raise

    def _rollback(self) -> None:
        """Rollback the current transaction, suppressing rollback errors."""
        try:
            self.db.rollback()
            self._logger.debug("Transaction rolled back")
        except Exception as e:
            # Rollback errors must not mask the original error
            self._logger.warning(f"Rollback failed: {e}")

    # -------------------------------------------------------------------------
    # Common Operations
    # -------------------------------------------------------------------------

    def _get_or_raise(self, entity_id: UUID, repository: Optional[BaseRepository] = None, name: Optional[str] = None):
        repo = repository or self.repository
        entity = repo.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(name or self.resource_name, entity_id)
        return entity

    def get_by_id(self, entity_id: UUID) -> ServiceResult[TModel]:
        """
        Retrieve entity by ID.

        Args:
            entity_id: UUID of the entity

        Returns:
            ServiceResult containing the entity or error
        """
        try:
            entity = self.repository.get_by_id(entity_id)
            if not entity:
                return ServiceResult.not_found(self.resource_name, entity_id)
            return ServiceResult.success(entity)
        except Exception as e:
            return self._handle_exception(e, f"get {self.resource_name.lower()}", entity_id)

    def delete(self, entity_id: UUID) -> ServiceResult[bool]:
        """
        Delete an entity after the pre-delete hook approves it.

        Args:
            entity_id: UUID of the entity to delete

        Returns:
            ServiceResult indicating success or error
        """
        try:
            with self.transaction():
                entity = self._get_or_raise(entity_id)
                self._validate_delete(entity)
                self.repository.delete(entity)
                self._after_delete(entity_id)

            self._log_operation(f"delete {self.resource_name.lower()}", entity_id)
            return ServiceResult.success(True, message=f"{self.resource_name} deleted successfully")
        except Exception as e:
            return self._handle_exception(e, f"delete {self.resource_name.lower()}", entity_id)

    # -------------------------------------------------------------------------
    # Hooks (Override in subclasses)
    # -------------------------------------------------------------------------

    def _validate_delete(self, entity: TModel) -> None:
        """
        Hook for validating before delete operation.

        Raise a DomainError to block the delete.
        """
        return None

    def _after_delete(self, entity_id: UUID) -> None:
        """Hook called after successful entity deletion."""
        pass

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def _log_operation(
        self,
        operation: str,
        entity_ref: Optional[Any] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record a completed mutation in the audit trail.

        Args:
            operation: What was done, e.g. "refund payment"
            entity_ref: Id or code of the entity involved
            extra: Additional fields (amounts, generated codes)
        """
        self._audit.info(
            operation,
            entity_ref=str(entity_ref) if entity_ref is not None else None,
            **(extra or {}),
        )
