"""
Attendance schemas.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, model_validator

from backoffice.models.base.enums import AttendanceStatus
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseDBSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "AttendanceCreate",
    "StudentAttendanceMark",
    "AttendanceUpdate",
    "AttendanceResponse",
    "AttendanceReportRequest",
]


def _check_times(check_in: Optional[datetime], check_out: Optional[datetime]) -> None:
    if check_in and check_out and check_out < check_in:
        raise ValueError("Check-out time must be after check-in time")


class AttendanceCreate(BaseCreateSchema):
    student_id: UUID
    batch_id: UUID
    session_id: Optional[UUID] = None
    date: Date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    remarks: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_times(self) -> "AttendanceCreate":
        _check_times(self.check_in_time, self.check_out_time)
        return self


class StudentAttendanceMark(BaseCreateSchema):
    """Attendance fields when the student comes from the path; date defaults to today."""

    batch_id: UUID
    session_id: Optional[UUID] = None
    date: Optional[Date] = None
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    remarks: Optional[str] = Field(default=None, max_length=500)

    def for_student(self, student_id: UUID) -> AttendanceCreate:
        values = self.model_dump()
        values["date"] = self.date or Date.today()
        return AttendanceCreate(student_id=student_id, **values)


class AttendanceUpdate(BaseUpdateSchema):
    status: Optional[AttendanceStatus] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    remarks: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def validate_times(self) -> "AttendanceUpdate":
        _check_times(self.check_in_time, self.check_out_time)
        return self


class AttendanceResponse(BaseDBSchema):
    student_id: UUID
    batch_id: UUID
    session_id: Optional[UUID] = None
    date: Date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    duration: Optional[int] = None
    remarks: Optional[str] = None
    is_approved: bool = False
    approved_by_id: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    marked_by_id: Optional[UUID] = None


class AttendanceReportRequest(BaseSchema):
    """Report scope; batch alone gives a per-student batch report."""

    start_date: Optional[Date] = None
    end_date: Optional[Date] = None
    batch_id: Optional[UUID] = None
    student_id: Optional[UUID] = None
