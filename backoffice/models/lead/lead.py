"""
Lead model.

Prospective student contact, convertible once into a Student.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    Boolean,
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
from backoffice.models.base.enums import LeadSource, LeadStatus, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin
from backoffice.utils.datetime_utils import DateTimeHelper, utcnow


class Lead(BaseModel, TimestampMixin, AuditMixin):
    """Prospective student in the admissions pipeline."""

    __tablename__ = "leads"

    lead_id: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True, comment="LEAD + 6 digits"
    )
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    phone: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    alternate_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    source: Mapped[LeadSource] = mapped_column(
        enum_type(LeadSource), nullable=False, default=LeadSource.WEBSITE, index=True
    )
    status: Mapped[LeadStatus] = mapped_column(
        enum_type(LeadStatus), nullable=False, default=LeadStatus.NEW, index=True
    )
    assigned_to_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    interested_courses: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="Course ids"
    )
    primary_course_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="SET NULL"),
        nullable=True,
    )
    budget: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    expected_joining: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    education: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    experience: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    communications: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    converted_to_student: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    converted_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    converted_student_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
    )

    @validates("email")
    def validate_email(self, key: str, value: Optional[str]) -> Optional[str]:
        return value.strip().lower() if value else None

    @property
    def days_since_created(self) -> Optional[int]:
        if self.created_at is None:
            return None
        return (utcnow() - DateTimeHelper.ensure_aware(self.created_at)).days

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, lead_id={self.lead_id}, status={self.status})>"
