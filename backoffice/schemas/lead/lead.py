"""
Lead schemas: enquiries, follow-up communications and conversion.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import EmailStr, Field

from backoffice.models.base.enums import CommunicationType, Gender, LeadSource, LeadStatus
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)
from backoffice.schemas.student.student import PHONE_PATTERN

__all__ = [
    "LeadEducation",
    "LeadCreate",
    "LeadUpdate",
    "LeadResponse",
    "CommunicationCreate",
    "LeadConversion",
]


def _stringify_courses(values: Dict[str, Any]) -> Dict[str, Any]:
    if values.get("interested_courses") is not None:
        values["interested_courses"] = [str(course) for course in values["interested_courses"]]
    return values


class LeadEducation(BaseSchema):
    qualification: Optional[str] = None
    institution: Optional[str] = None
    year_of_passing: Optional[int] = Field(default=None, ge=1950, le=2100)
    percentage: Optional[float] = Field(default=None, ge=0, le=100)


class LeadCreate(BaseCreateSchema):
    full_name: str = Field(..., min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    phone: str = Field(..., pattern=PHONE_PATTERN)
    alternate_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    source: LeadSource = LeadSource.WEBSITE
    status: LeadStatus = LeadStatus.NEW
    assigned_to_id: Optional[UUID] = None
    interested_courses: List[UUID] = Field(default_factory=list)
    primary_course_id: Optional[UUID] = None
    budget: Optional[Money] = Field(default=None, ge=0)
    expected_joining: Optional[date] = None
    education: LeadEducation = Field(default_factory=LeadEducation)
    experience: Dict[str, Any] = Field(default_factory=dict)
    notes: Optional[str] = None

    def column_values(self, exclude_unset: bool = False) -> Dict[str, Any]:
        return _stringify_courses(super().column_values(exclude_unset))


class LeadUpdate(BaseUpdateSchema):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    alternate_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    source: Optional[LeadSource] = None
    status: Optional[LeadStatus] = None
    assigned_to_id: Optional[UUID] = None
    interested_courses: Optional[List[UUID]] = None
    primary_course_id: Optional[UUID] = None
    budget: Optional[Money] = Field(default=None, ge=0)
    expected_joining: Optional[date] = None
    education: Optional[LeadEducation] = None
    experience: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None

    def changes(self) -> dict:
        return _stringify_courses(super().changes())


class LeadResponse(BaseResponseSchema):
    lead_id: str
    full_name: str
    email: Optional[str] = None
    phone: str
    alternate_phone: Optional[str] = None
    source: LeadSource
    status: LeadStatus
    assigned_to_id: Optional[UUID] = None
    interested_courses: List[str] = Field(default_factory=list)
    primary_course_id: Optional[UUID] = None
    budget: Optional[Money] = None
    expected_joining: Optional[date] = None
    education: Dict[str, Any] = Field(default_factory=dict)
    experience: Dict[str, Any] = Field(default_factory=dict)
    communications: List[Dict[str, Any]] = Field(default_factory=list)
    notes: Optional[str] = None
    converted_to_student: bool = False
    converted_date: Optional[datetime] = None
    converted_student_id: Optional[UUID] = None
    days_since_created: Optional[int] = None


class CommunicationCreate(BaseSchema):
    type: CommunicationType
    subject: Optional[str] = Field(default=None, max_length=255)
    message: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: Optional[str] = Field(default=None, max_length=50)
    outcome: Optional[str] = None
    notes: Optional[str] = None


class LeadConversion(BaseSchema):
    """Admission details not captured on the lead."""

    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    branch: Optional[str] = Field(default=None, max_length=100)
    total_fees: Money = Field(default=Decimal("0"), ge=0)
    remarks: Optional[str] = None
