"""
Enrollment model.

The authoritative student-course relationship carrying its own fee
ledger, learning progress, attendance mirror, grades and certificate.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import EnrollmentStatus, EnrollmentType, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin
from backoffice.utils.datetime_utils import utcnow

if TYPE_CHECKING:
    from backoffice.models.batch.batch import Batch
    from backoffice.models.course.course import Course
    from backoffice.models.student.student import Student


class Enrollment(BaseModel, TimestampMixin, AuditMixin):
    """
    Student enrollment in a course, optionally placed in a batch.

    Invariants:
        fee_pending == fee_total - fee_paid
        progress_percentage == round(len(completed_modules) / curriculum length * 100)
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    )

    enrollment_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="ENR + 8 digits",
    )
    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    enrollment_type: Mapped[EnrollmentType] = mapped_column(
        enum_type(EnrollmentType), nullable=False, default=EnrollmentType.REGULAR
    )
    status: Mapped[EnrollmentStatus] = mapped_column(
        enum_type(EnrollmentStatus),
        nullable=False,
        default=EnrollmentStatus.ACTIVE,
        index=True,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expected_completion: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    actual_completion: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Fee ledger
    fee_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    fee_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    fee_pending: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    fee_discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    fee_scholarship: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    payment_plan: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Progress
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_modules: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list, comment="moduleId, completedAt, score"
    )
    assignments: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    assessments: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    last_accessed: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Attendance mirror
    attendance: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list, comment="date, session, status, remarks"
    )
    attendance_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    grades: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    certificate: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    student: Mapped["Student"] = relationship("Student")
    course: Mapped["Course"] = relationship("Course")
    batch: Mapped[Optional["Batch"]] = relationship("Batch")

    def recompute_pending(self) -> None:
        """Keep pending equal to total minus paid."""
        self.fee_pending = Decimal(self.fee_total or 0) - Decimal(self.fee_paid or 0)

    @property
    def fees(self) -> Dict[str, float]:
        return {
            "total": float(self.fee_total or 0),
            "paid": float(self.fee_paid or 0),
            "pending": float(self.fee_pending or 0),
            "discount": float(self.fee_discount or 0),
            "scholarship": float(self.fee_scholarship or 0),
        }

    @property
    def progress(self) -> Dict[str, Any]:
        return {
            "percentage": self.progress_percentage or 0,
            "completedModules": list(self.completed_modules or []),
            "assignments": list(self.assignments or []),
            "assessments": list(self.assessments or []),
            "lastAccessed": self.last_accessed.isoformat() if self.last_accessed else None,
        }

    def __repr__(self) -> str:
        return f"<Enrollment(id={self.id}, enrollment_id={self.enrollment_id})>"
