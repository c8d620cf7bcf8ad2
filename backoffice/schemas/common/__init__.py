from .base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)
from .pagination import ListParams, PaginatedResponse
from .response import ErrorDetail, ErrorResponse

__all__ = [
    "BaseCreateSchema",
    "BaseResponseSchema",
    "BaseSchema",
    "BaseUpdateSchema",
    "Money",
    "ListParams",
    "PaginatedResponse",
    "ErrorDetail",
    "ErrorResponse",
]
