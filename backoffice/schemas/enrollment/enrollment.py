"""
Enrollment schemas: course registration, fee ledger, progress and grades.
"""

from __future__ import annotations

from datetime import date as Date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from backoffice.models.base.enums import AttendanceStatus, EnrollmentStatus, EnrollmentType
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)
from backoffice.schemas.student.student import Installment

__all__ = [
    "Grades",
    "StudentEnrollmentCreate",
    "EnrollmentCreate",
    "EnrollmentUpdate",
    "EnrollmentResponse",
    "ProgressUpdate",
    "EnrollmentAttendanceMark",
]

INITIAL_STATUSES = (EnrollmentStatus.PENDING, EnrollmentStatus.ACTIVE)


class Grades(BaseSchema):
    assignments: Optional[float] = Field(default=None, ge=0)
    assessments: Optional[float] = Field(default=None, ge=0)
    attendance: Optional[float] = Field(default=None, ge=0)
    final_exam: Optional[float] = Field(default=None, ge=0)
    total: Optional[float] = Field(default=None, ge=0)
    grade: Optional[str] = Field(default=None, max_length=5)
    remarks: Optional[str] = None


class StudentEnrollmentCreate(BaseCreateSchema):
    """Enrollment fields when the student comes from the path."""

    course_id: UUID
    batch_id: Optional[UUID] = None
    enrollment_type: EnrollmentType = EnrollmentType.REGULAR
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE
    start_date: Optional[datetime] = None
    expected_completion: Optional[datetime] = None
    total_fees: Money = Field(default=Decimal("0"), ge=0)
    fee_discount: Money = Field(default=Decimal("0"), ge=0)
    fee_scholarship: Money = Field(default=Decimal("0"), ge=0)
    payment_plan: List[Installment] = Field(default_factory=list)
    remarks: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v: EnrollmentStatus) -> EnrollmentStatus:
        if v not in INITIAL_STATUSES:
            raise ValueError("New enrollments must be pending or active")
        return v

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        values = super().column_values(exclude_unset)
        values["fee_total"] = values.pop("total_fees")
        return values


class EnrollmentCreate(StudentEnrollmentCreate):
    student_id: UUID


class EnrollmentUpdate(BaseUpdateSchema):
    status: Optional[EnrollmentStatus] = None
    batch_id: Optional[UUID] = None
    enrollment_type: Optional[EnrollmentType] = None
    start_date: Optional[datetime] = None
    expected_completion: Optional[datetime] = None
    actual_completion: Optional[datetime] = None
    total_fees: Optional[Money] = Field(default=None, ge=0)
    fee_discount: Optional[Money] = Field(default=None, ge=0)
    fee_scholarship: Optional[Money] = Field(default=None, ge=0)
    payment_plan: Optional[List[Installment]] = None
    grades: Optional[Grades] = None
    remarks: Optional[str] = None

    def changes(self) -> dict:
        values = super().changes()
        if "total_fees" in values:
            values["fee_total"] = values.pop("total_fees")
        return values


class EnrollmentResponse(BaseResponseSchema):
    enrollment_id: str
    student_id: UUID
    course_id: UUID
    batch_id: Optional[UUID] = None
    enrollment_date: datetime
    enrollment_type: EnrollmentType
    status: EnrollmentStatus
    start_date: Optional[datetime] = None
    expected_completion: Optional[datetime] = None
    actual_completion: Optional[datetime] = None
    fees: Dict[str, float] = Field(default_factory=dict)
    payment_plan: List[Dict[str, Any]] = Field(default_factory=list)
    progress: Dict[str, Any] = Field(default_factory=dict)
    attendance: List[Dict[str, Any]] = Field(default_factory=list)
    attendance_percentage: int = 0
    grades: Dict[str, Any] = Field(default_factory=dict)
    certificate: Dict[str, Any] = Field(default_factory=dict)
    remarks: Optional[str] = None


class ProgressUpdate(BaseSchema):
    module_id: str = Field(..., min_length=1)
    score: Optional[float] = Field(default=None, ge=0)


class EnrollmentAttendanceMark(BaseSchema):
    date: Date
    session: Optional[str] = None
    status: AttendanceStatus
    remarks: Optional[str] = None
