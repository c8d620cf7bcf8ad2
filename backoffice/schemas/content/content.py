"""
Content schemas: course material, access lists and assignment submissions.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from backoffice.models.base.enums import AccessType, ContentStatus, ContentType
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)

__all__ = [
    "ContentModule",
    "AssignmentDetails",
    "ContentCreate",
    "ContentUpdate",
    "ContentResponse",
    "ContentShare",
    "AssignmentSubmission",
    "SubmissionGrade",
]

ACCESS_LISTS = ("allowed_users", "allowed_students", "allowed_batches")


def _stringify_access(values: Dict[str, Any]) -> Dict[str, Any]:
    for name in ACCESS_LISTS:
        if values.get(name) is not None:
            values[name] = [str(item) for item in values[name]]
    return values


class ContentModule(BaseSchema):
    module_id: Optional[str] = None
    title: Optional[str] = None
    module_number: Optional[int] = Field(default=None, ge=1)


class AssignmentDetails(BaseSchema):
    due_date: Optional[datetime] = None
    max_marks: Optional[float] = Field(default=None, ge=0)
    instructions: Optional[str] = None
    submission_type: Optional[str] = None


class ContentCreate(BaseCreateSchema):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    type: ContentType
    course_id: UUID
    batch_id: Optional[UUID] = None
    module: ContentModule = Field(default_factory=ContentModule)
    file: Dict[str, Any] = Field(default_factory=dict)
    url: Optional[str] = Field(default=None, max_length=1000)
    body: Optional[str] = None
    assignment_details: AssignmentDetails = Field(default_factory=AssignmentDetails)
    quiz_details: Dict[str, Any] = Field(default_factory=dict)
    access_type: AccessType = AccessType.PUBLIC
    allowed_users: List[UUID] = Field(default_factory=list)
    allowed_students: List[UUID] = Field(default_factory=list)
    allowed_batches: List[UUID] = Field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    tags: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_link(self) -> "ContentCreate":
        if self.type == ContentType.LINK and not self.url:
            raise ValueError("URL is required for link content")
        return self

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        return _stringify_access(super().column_values(exclude_unset))


class ContentUpdate(BaseUpdateSchema):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    type: Optional[ContentType] = None
    batch_id: Optional[UUID] = None
    module: Optional[ContentModule] = None
    file: Optional[Dict[str, Any]] = None
    url: Optional[str] = Field(default=None, max_length=1000)
    body: Optional[str] = None
    assignment_details: Optional[AssignmentDetails] = None
    quiz_details: Optional[Dict[str, Any]] = None
    access_type: Optional[AccessType] = None
    allowed_users: Optional[List[UUID]] = None
    allowed_students: Optional[List[UUID]] = None
    allowed_batches: Optional[List[UUID]] = None
    status: Optional[ContentStatus] = None
    tags: Optional[List[str]] = None

    def changes(self) -> dict:
        return _stringify_access(super().changes())


class ContentResponse(BaseResponseSchema):
    title: str
    description: Optional[str] = None
    type: ContentType
    course_id: UUID
    batch_id: Optional[UUID] = None
    module: Dict[str, Any] = Field(default_factory=dict)
    file: Dict[str, Any] = Field(default_factory=dict)
    url: Optional[str] = None
    body: Optional[str] = None
    assignment_details: Dict[str, Any] = Field(default_factory=dict)
    quiz_details: Dict[str, Any] = Field(default_factory=dict)
    access_type: AccessType
    allowed_users: List[str] = Field(default_factory=list)
    allowed_students: List[str] = Field(default_factory=list)
    allowed_batches: List[str] = Field(default_factory=list)
    status: ContentStatus
    tags: List[str] = Field(default_factory=list)
    stats: Dict[str, Any] = Field(default_factory=dict)
    avg_score: Money = Decimal("0")
    submissions: List[Dict[str, Any]] = Field(default_factory=list)


class ContentShare(BaseSchema):
    """Students and batches to add to a content item's access lists."""

    allowed_students: List[UUID] = Field(default_factory=list)
    allowed_batches: List[UUID] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_targets(self) -> "ContentShare":
        if not self.allowed_students and not self.allowed_batches:
            raise ValueError("Provide allowedStudents or allowedBatches")
        return self


class AssignmentSubmission(BaseSchema):
    file: Optional[Dict[str, Any]] = None
    text_submission: Optional[str] = None

    @model_validator(mode="after")
    def validate_payload(self) -> "AssignmentSubmission":
        if not self.file and not self.text_submission:
            raise ValueError("Submission requires a file or textSubmission")
        return self


class SubmissionGrade(BaseSchema):
    marks: float = Field(..., ge=0)
    feedback: Optional[str] = None
