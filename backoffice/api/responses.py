"""
Response envelopes for the HTTP API.

Services hand back ORM entities, pages and plain dicts; `serialize` walks
them and renders every entity through its response schema so the wire
format is camelCase JSON throughout.
"""

from typing import Any, Dict, Optional, Type

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from backoffice.core.exceptions import ServiceFailure
from backoffice.models import (
    Attendance,
    Batch,
    BatchSession,
    BatchStudent,
    Content,
    Course,
    Enrollment,
    Lead,
    Payment,
    Student,
    User,
)
from backoffice.repositories.base.base_repository import Page
from backoffice.schemas.attendance import AttendanceResponse
from backoffice.schemas.batch import BatchResponse, RosterEntryResponse, SessionResponse
from backoffice.schemas.common.pagination import PaginatedResponse
from backoffice.schemas.content import ContentResponse
from backoffice.schemas.course import CourseResponse
from backoffice.schemas.enrollment import EnrollmentResponse
from backoffice.schemas.lead import LeadResponse
from backoffice.schemas.payment import PaymentResponse
from backoffice.schemas.student import StudentResponse
from backoffice.schemas.user import UserResponse
from backoffice.services.base import ServiceResult

RESPONSE_SCHEMAS: Dict[type, Type[BaseModel]] = {
    Attendance: AttendanceResponse,
    Batch: BatchResponse,
    BatchSession: SessionResponse,
    BatchStudent: RosterEntryResponse,
    Content: ContentResponse,
    Course: CourseResponse,
    Enrollment: EnrollmentResponse,
    Lead: LeadResponse,
    Payment: PaymentResponse,
    Student: StudentResponse,
    User: UserResponse,
}


def serialize(value: Any) -> Any:
    """Render entities, schemas and containers as JSON-ready data."""
    schema = RESPONSE_SCHEMAS.get(type(value))
    if schema is not None:
        return schema.model_validate(value).model_dump(by_alias=True, mode="json")
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, Page):
        return [serialize(item) for item in value.items]
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(item) for item in value]
    return jsonable_encoder(value)


def unwrap(result: ServiceResult) -> Any:
    """
    Return the data of a successful result.

    Raises:
        ServiceFailure: the result failed; the handler renders it
    """
    if not result.is_success:
        raise ServiceFailure(result.error)
    return result.data


def success(result: ServiceResult, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """`{success, message?, data}` body for a single result."""
    data = unwrap(result)
    body: Dict[str, Any] = {"success": True}
    text = message or result.message
    if text:
        body["message"] = text
    body["data"] = serialize(data)
    body.update({key: serialize(value) for key, value in extra.items()})
    return body


def message_only(result: ServiceResult) -> Dict[str, Any]:
    """`{success, message}` body for deletes and other acknowledgements."""
    unwrap(result)
    return {"success": True, "message": result.message}


def paginated(result: ServiceResult, summary: Any = None) -> Dict[str, Any]:
    """List envelope: count, total, totalPages, currentPage, data."""
    page: Page = unwrap(result)
    envelope = PaginatedResponse[Any](
        count=len(page.items),
        total=page.total,
        total_pages=page.total_pages,
        current_page=page.page,
        data=serialize(page),
        summary=serialize(summary) if summary is not None else None,
    )
    return envelope.model_dump(by_alias=True, mode="json", exclude_none=True)
