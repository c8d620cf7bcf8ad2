"""
HTTP-level exceptions and handlers for the institute back-office.

Services report failures as ServiceResult objects; the API layer turns
a failed result into an `APIException` carrying the HTTP status for its
ErrorCode. The handlers registered here render every failure with the
same body:

    {"success": false, "message": ..., "errors": [...], "errorCode": ...}
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice.core.logging import get_logger
from backoffice.schemas.common.response import ErrorDetail, ErrorResponse
from backoffice.services.base.service_result import ErrorCode, ServiceError

logger = get_logger(__name__)

SERVER_ERROR_MESSAGE = "Server error"

ERROR_STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BUSINESS_RULE_VIOLATION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.INSUFFICIENT_PERMISSIONS: status.HTTP_403_FORBIDDEN,
    ErrorCode.AUTHENTICATION_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.SEQUENCE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class APIException(Exception):
    """
    Base exception for failures returned to API clients.

    Attributes:
        message: Client-facing message
        status_code: HTTP status
        error_code: Application error code
        errors: Field-level errors
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        error_code: Optional[ErrorCode] = None,
        errors: Optional[List[ErrorDetail]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return ErrorResponse.create(
            self.message,
            errors=self.errors,
            error_code=self.error_code.value if self.error_code else None,
        ).to_body()

    def __str__(self) -> str:
        return f"{self.status_code}: {self.message}"


class ServiceFailure(APIException):
    """A failed ServiceResult surfaced over HTTP."""

    def __init__(self, error: ServiceError):
        status_code = ERROR_STATUS_CODES.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        message = error.message
        if not error.is_client_error or status_code >= 500:
            message = SERVER_ERROR_MESSAGE
        errors = None
        if error.field and status_code == status.HTTP_400_BAD_REQUEST:
            errors = [ErrorDetail(field=error.field, message=error.message)]
        super().__init__(message, status_code, error.code, errors)


class AuthenticationFailed(APIException):
    """Missing, invalid or expired bearer token."""

    def __init__(self, message: str = "Not authorized to access this route"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, ErrorCode.AUTHENTICATION_FAILED)


class Forbidden(APIException):
    """The principal lacks the role or permission for a route."""

    def __init__(self, message: str = "Not authorized to perform this action"):
        super().__init__(message, status.HTTP_403_FORBIDDEN, ErrorCode.INSUFFICIENT_PERMISSIONS)


def _field_name(location: Any) -> Optional[str]:
    parts = [str(part) for part in location or () if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or None


def validation_errors(exc: RequestValidationError) -> List[ErrorDetail]:
    return [
        ErrorDetail(field=_field_name(error.get("loc")), message=error.get("msg", "Invalid value"))
        for error in exc.errors()
    ]


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = validation_errors(exc)
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "fields": [error.field for error in errors]},
    )
    body = ErrorResponse.create(
        "Validation failed",
        errors=errors,
        error_code=ErrorCode.VALIDATION_ERROR.value,
    ).to_body()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(message).to_body(),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {exc}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse.create(SERVER_ERROR_MESSAGE).to_body(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
