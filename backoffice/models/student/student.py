"""
Student core model.

Represents an admitted student with personal, admission, academic and
fee ledger information. Enrollments are held in their own table and
exposed here only through read queries.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import AdmissionType, Gender, StudentStatus, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin
from backoffice.utils.datetime_utils import AgeCalculator, utcnow


class Student(BaseModel, TimestampMixin, AuditMixin):
    """
    Core student model.

    Fee ledger:
        total_fees, paid_amount and pending_amount are kept consistent by
        the payment service; pending_amount is always total minus paid.
    """

    __tablename__ = "students"
    __table_args__ = (
        CheckConstraint("total_fees >= 0", name="ck_students_total_fees_non_negative"),
    )

    student_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Human-readable identifier (STU + 6 digits)",
    )

    # Personal details
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[Optional[Gender]] = mapped_column(enum_type(Gender), nullable=True)
    phone: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Primary phone number",
    )
    alternate_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        index=True,
    )
    address: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    guardian_details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    emergency_contact: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    identification: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Admission details
    admission_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    admission_type: Mapped[AdmissionType] = mapped_column(
        enum_type(AdmissionType),
        nullable=False,
        default=AdmissionType.DIRECT,
        index=True,
    )
    admission_counselor_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    lead_source_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        comment="Lead this student was converted from",
    )
    referral_student_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
    )
    branch: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    academic_background: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )

    # Fee ledger
    total_fees: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    pending_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    payment_schedule: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered installment schedule",
    )
    discount: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    scholarship: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    documents: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[StudentStatus] = mapped_column(
        enum_type(StudentStatus),
        nullable=False,
        default=StudentStatus.ACTIVE,
        index=True,
    )

    @validates("email")
    def validate_email(self, key: str, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else None

    @validates("phone")
    def validate_phone(self, key: str, value: str) -> str:
        return value.strip() if value else value

    def recompute_pending(self) -> None:
        """Keep pending equal to total minus paid."""
        self.pending_amount = Decimal(self.total_fees or 0) - Decimal(self.paid_amount or 0)

    @property
    def age(self) -> Optional[int]:
        if not self.date_of_birth:
            return None
        return AgeCalculator.calculate_age(self.date_of_birth)

    @property
    def fee_summary(self) -> Dict[str, Any]:
        total = Decimal(self.total_fees or 0)
        paid = Decimal(self.paid_amount or 0)
        paid_percentage = round(float(paid / total * 100), 2) if total > 0 else 0
        return {
            "totalFees": float(total),
            "paidAmount": float(paid),
            "pendingAmount": float(total - paid),
            "paidPercentage": paid_percentage,
        }

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, student_id={self.student_id})>"
