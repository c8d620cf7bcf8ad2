"""
Student schemas: admission, personal details and fee ledger.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from backoffice.models.base.enums import (
    AdmissionType,
    Gender,
    InstallmentStatus,
    StudentStatus,
)
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)

__all__ = [
    "Address",
    "GuardianDetails",
    "EmergencyContact",
    "AcademicRecord",
    "Installment",
    "StudentCreate",
    "StudentUpdate",
    "StudentResponse",
    "DocumentCreate",
]

PHONE_PATTERN = r"^\+?[0-9][0-9 -]{6,18}$"


class Address(BaseSchema):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = "India"


class GuardianDetails(BaseSchema):
    name: Optional[str] = None
    relation: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    occupation: Optional[str] = None


class EmergencyContact(BaseSchema):
    name: Optional[str] = None
    relation: Optional[str] = None
    phone: Optional[str] = None


class AcademicRecord(BaseSchema):
    qualification: str
    institution: Optional[str] = None
    board: Optional[str] = None
    year_of_passing: Optional[int] = Field(default=None, ge=1950, le=2100)
    percentage: Optional[float] = Field(default=None, ge=0, le=100)


class Installment(BaseSchema):
    """One entry of a fee installment schedule."""

    installment_number: int = Field(..., ge=1)
    due_date: date
    amount: Money = Field(..., gt=0)
    status: InstallmentStatus = InstallmentStatus.PENDING
    paid_amount: Money = Decimal("0")
    paid_date: Optional[datetime] = None
    receipt: Optional[str] = None


class StudentCreate(BaseCreateSchema):
    full_name: str = Field(..., min_length=2, max_length=200)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    phone: str = Field(..., pattern=PHONE_PATTERN)
    alternate_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Address = Field(default_factory=Address)
    guardian_details: GuardianDetails = Field(default_factory=GuardianDetails)
    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    identification: Dict[str, Any] = Field(default_factory=dict)

    admission_date: Optional[datetime] = None
    admission_type: AdmissionType = AdmissionType.DIRECT
    admission_counselor_id: Optional[UUID] = None
    referral_student_id: Optional[UUID] = None
    branch: Optional[str] = Field(default=None, max_length=100)
    remarks: Optional[str] = None

    academic_background: List[AcademicRecord] = Field(default_factory=list)

    total_fees: Money = Field(default=Decimal("0"), ge=0)
    payment_schedule: List[Installment] = Field(default_factory=list)
    discount: Dict[str, Any] = Field(default_factory=dict)
    scholarship: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("date_of_birth")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and v >= date.today():
            raise ValueError("Date of birth must be in the past")
        return v


class StudentUpdate(BaseUpdateSchema):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    alternate_phone: Optional[str] = Field(default=None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    address: Optional[Address] = None
    guardian_details: Optional[GuardianDetails] = None
    emergency_contact: Optional[EmergencyContact] = None
    identification: Optional[Dict[str, Any]] = None

    admission_type: Optional[AdmissionType] = None
    admission_counselor_id: Optional[UUID] = None
    branch: Optional[str] = Field(default=None, max_length=100)
    remarks: Optional[str] = None
    academic_background: Optional[List[AcademicRecord]] = None

    total_fees: Optional[Money] = Field(default=None, ge=0)
    payment_schedule: Optional[List[Installment]] = None
    discount: Optional[Dict[str, Any]] = None
    scholarship: Optional[Dict[str, Any]] = None

    status: Optional[StudentStatus] = None


class DocumentCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=200)
    type: str = Field(..., min_length=1, max_length=50)
    url: str = Field(..., min_length=1)
    verified: bool = False


class StudentResponse(BaseResponseSchema):
    student_id: str
    full_name: str
    date_of_birth: Optional[date] = None
    age: Optional[int] = None
    gender: Optional[Gender] = None
    phone: str
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    address: Dict[str, Any] = Field(default_factory=dict)
    guardian_details: Dict[str, Any] = Field(default_factory=dict)
    emergency_contact: Dict[str, Any] = Field(default_factory=dict)
    identification: Dict[str, Any] = Field(default_factory=dict)

    admission_date: Optional[datetime] = None
    admission_type: AdmissionType
    admission_counselor_id: Optional[UUID] = None
    lead_source_id: Optional[UUID] = None
    referral_student_id: Optional[UUID] = None
    branch: Optional[str] = None
    remarks: Optional[str] = None
    academic_background: List[Dict[str, Any]] = Field(default_factory=list)

    total_fees: Money
    paid_amount: Money
    pending_amount: Money
    payment_schedule: List[Dict[str, Any]] = Field(default_factory=list)
    discount: Dict[str, Any] = Field(default_factory=dict)
    scholarship: Dict[str, Any] = Field(default_factory=dict)
    fee_summary: Dict[str, Any] = Field(default_factory=dict)
    documents: List[Dict[str, Any]] = Field(default_factory=list)

    status: StudentStatus
