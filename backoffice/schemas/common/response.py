"""
Error body schema shared by the exception handlers.
"""

from typing import List, Union

from pydantic import Field

from backoffice.schemas.common.base import BaseSchema

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
]


class ErrorDetail(BaseSchema):
    """Field-level error information."""

    field: Union[str, None] = Field(default=None, description="Field name causing error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseSchema):
    """Standard error response."""

    success: bool = Field(default=False, description="Success flag")
    message: str = Field(..., description="Error message")
    errors: Union[List[ErrorDetail], None] = Field(default=None, description="Detailed errors")
    error_code: Union[str, None] = Field(default=None, description="Application error code")

    @classmethod
    def create(
        cls,
        message: str,
        errors: Union[List[ErrorDetail], None] = None,
        error_code: Union[str, None] = None,
    ) -> "ErrorResponse":
        return cls(success=False, message=message, errors=errors, error_code=error_code)

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
