"""
Batch schemas: scheduling, roster and sessions.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from backoffice.models.base.enums import (
    AttendanceStatus,
    BatchStatus,
    RosterStatus,
    SessionStatus,
)
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseDBSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "BatchSchedule",
    "BatchCreate",
    "CourseBatchCreate",
    "BatchUpdate",
    "BatchResponse",
    "RosterAdd",
    "RosterEntryResponse",
    "SessionCreate",
    "SessionResponse",
    "SessionAttendanceMark",
    "SessionAttendance",
]

TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


class BatchSchedule(BaseSchema):
    days: List[str] = Field(default_factory=list)
    time: Optional[str] = None
    duration: Optional[str] = None
    classroom: Optional[str] = None


class CourseBatchCreate(BaseCreateSchema):
    """Batch fields when the course comes from the path."""

    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    start_date: Date
    end_date: Date
    schedule: BatchSchedule = Field(default_factory=BatchSchedule)
    max_students: int = Field(default=30, ge=1)
    instructor_id: Optional[UUID] = None
    assistant_instructors: List[UUID] = Field(default_factory=list)
    status: BatchStatus = BatchStatus.UPCOMING

    @model_validator(mode="after")
    def validate_dates(self) -> "CourseBatchCreate":
        if self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        values = super().column_values(exclude_unset)
        if "assistant_instructors" in values:
            values["assistant_instructors"] = [str(item) for item in values["assistant_instructors"]]
        return values


class BatchCreate(CourseBatchCreate):
    course_id: UUID


class BatchUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    description: Optional[str] = None
    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    schedule: Optional[BatchSchedule] = None
    max_students: Optional[int] = Field(default=None, ge=1)
    instructor_id: Optional[UUID] = None
    assistant_instructors: Optional[List[UUID]] = None
    status: Optional[BatchStatus] = None

    def changes(self) -> dict:
        values = super().changes()
        if "assistant_instructors" in values:
            values["assistant_instructors"] = [str(item) for item in values["assistant_instructors"]]
        return values


class BatchResponse(BaseResponseSchema):
    batch_id: str
    course_id: UUID
    name: str
    description: Optional[str] = None
    start_date: Date
    end_date: Date
    schedule: Dict[str, Any] = Field(default_factory=dict)
    max_students: int
    current_students: int
    available_seats: int
    progress_percentage: int
    instructor_id: Optional[UUID] = None
    assistant_instructors: List[str] = Field(default_factory=list)
    status: BatchStatus


class RosterAdd(BaseSchema):
    student_id: UUID


class RosterEntryResponse(BaseDBSchema):
    batch_id: UUID
    student_id: UUID
    enrollment_date: datetime
    status: RosterStatus
    attendance_percentage: int = 0
    performance: Dict[str, Any] = Field(default_factory=dict)


class SessionCreate(BaseCreateSchema):
    date: Date
    topic: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    instructor_id: Optional[UUID] = None
    start_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    resources: List[Dict[str, Any]] = Field(default_factory=list)


class SessionResponse(BaseDBSchema):
    session_id: str
    batch_id: UUID
    date: Date
    topic: str
    description: Optional[str] = None
    instructor_id: Optional[UUID] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    status: SessionStatus
    attendance_taken: bool = False
    attendance_summary: Dict[str, Any] = Field(default_factory=dict)
    resources: List[Dict[str, Any]] = Field(default_factory=list)


class SessionAttendanceMark(BaseSchema):
    student_id: UUID
    status: AttendanceStatus
    remarks: Optional[str] = None


class SessionAttendance(BaseSchema):
    """Bulk attendance for one batch session."""

    attendance: List[SessionAttendanceMark] = Field(..., min_length=1)
