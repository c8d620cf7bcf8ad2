"""
Course schemas: catalogue entries, curriculum and reviews.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import Field, model_validator

from backoffice.models.base.enums import CourseStatus, DurationUnit
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)

__all__ = [
    "CurriculumModule",
    "CourseCreate",
    "CourseUpdate",
    "CourseResponse",
    "ReviewCreate",
]


class CurriculumModule(BaseSchema):
    """
    One curriculum module.

    moduleId is assigned on first save and never changes, so completed
    module records survive reordering.
    """

    module_id: str = Field(default_factory=lambda: uuid4().hex)
    module_number: Optional[int] = Field(default=None, ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    duration: Optional[str] = None


def _number_modules(modules: List[CurriculumModule]) -> List[CurriculumModule]:
    for position, module in enumerate(modules, start=1):
        if module.module_number is None:
            module.module_number = position
    return modules


class CourseCreate(BaseCreateSchema):
    name: str = Field(..., min_length=2, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)

    duration_value: int = Field(default=1, ge=1)
    duration_unit: DurationUnit = DurationUnit.MONTHS

    regular_fee: Money = Field(default=Decimal("0"), ge=0)
    installment_fee: Optional[Money] = Field(default=None, ge=0)
    fee_discount: Dict[str, Any] = Field(default_factory=dict)
    scholarship_available: bool = False

    curriculum: List[CurriculumModule] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    learning_outcomes: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    instructors: List[UUID] = Field(default_factory=list)

    status: CourseStatus = CourseStatus.ACTIVE

    @model_validator(mode="after")
    def number_curriculum(self) -> "CourseCreate":
        _number_modules(self.curriculum)
        return self

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        values = super().column_values(exclude_unset)
        if "instructors" in values:
            values["instructors"] = [str(item) for item in values["instructors"]]
        return values


class CourseUpdate(BaseUpdateSchema):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    duration_value: Optional[int] = Field(default=None, ge=1)
    duration_unit: Optional[DurationUnit] = None
    regular_fee: Optional[Money] = Field(default=None, ge=0)
    installment_fee: Optional[Money] = Field(default=None, ge=0)
    fee_discount: Optional[Dict[str, Any]] = None
    scholarship_available: Optional[bool] = None
    curriculum: Optional[List[CurriculumModule]] = None
    prerequisites: Optional[List[str]] = None
    learning_outcomes: Optional[List[str]] = None
    target_audience: Optional[List[str]] = None
    instructors: Optional[List[UUID]] = None
    status: Optional[CourseStatus] = None

    @model_validator(mode="after")
    def number_curriculum(self) -> "CourseUpdate":
        if self.curriculum:
            _number_modules(self.curriculum)
        return self

    def changes(self) -> dict:
        values = super().changes()
        if "instructors" in values:
            values["instructors"] = [str(item) for item in values["instructors"]]
        return values


class ReviewCreate(BaseSchema):
    """Course review; studentId defaults to the caller's student record."""

    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(default=None, max_length=2000)
    student_id: Optional[UUID] = None


class CourseResponse(BaseResponseSchema):
    course_code: str
    name: str
    category: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    duration_value: int
    duration_unit: DurationUnit
    regular_fee: Money
    installment_fee: Optional[Money] = None
    fee_discount: Dict[str, Any] = Field(default_factory=dict)
    scholarship_available: bool = False
    curriculum: List[Dict[str, Any]] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    learning_outcomes: List[str] = Field(default_factory=list)
    target_audience: List[str] = Field(default_factory=list)
    instructors: List[str] = Field(default_factory=list)
    status: CourseStatus
    enrollment_stats: Dict[str, int] = Field(default_factory=dict)
    rating_average: Money = Decimal("0")
    rating_count: int = 0
    reviews: List[Dict[str, Any]] = Field(default_factory=list)

    available_seats: Optional[int] = None
    next_batch_start_date: Optional[date] = None
