"""
Course catalogue model.

Holds curriculum, fee structure, aggregate enrollment statistics and
reviews. Batches of a course live in the batches table.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import BatchStatus, CourseStatus, DurationUnit, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin

if TYPE_CHECKING:
    from backoffice.models.batch.batch import Batch

OPEN_BATCH_STATUSES = (BatchStatus.UPCOMING, BatchStatus.ONGOING)


class Course(BaseModel, TimestampMixin, AuditMixin):
    """
    Course offered by the institute.

    Enrollment statistics are recomputed from the enrollments table
    whenever an enrollment of this course changes.
    """

    __tablename__ = "courses"

    course_code: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Name prefix + 4-digit sequence",
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    duration_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    duration_unit: Mapped[DurationUnit] = mapped_column(
        enum_type(DurationUnit), nullable=False, default=DurationUnit.MONTHS
    )

    # Fees
    regular_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"), index=True
    )
    installment_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    fee_discount: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    scholarship_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    curriculum: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered modules, each with a stable moduleId",
    )
    prerequisites: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    learning_outcomes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    target_audience: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    instructors: Mapped[List[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="Instructor user ids"
    )

    status: Mapped[CourseStatus] = mapped_column(
        enum_type(CourseStatus), nullable=False, default=CourseStatus.ACTIVE, index=True
    )

    # Aggregate enrollment statistics
    total_enrolled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dropout_enrollments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Rating
    rating_average: Mapped[Decimal] = mapped_column(Numeric(3, 1), nullable=False, default=Decimal("0"))
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reviews: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    batches: Mapped[List["Batch"]] = relationship(
        "Batch",
        viewonly=True,
        order_by="Batch.start_date",
    )

    @property
    def enrollment_stats(self) -> Dict[str, int]:
        return {
            "totalEnrolled": self.total_enrolled or 0,
            "active": self.active_enrollments or 0,
            "completed": self.completed_enrollments or 0,
            "dropout": self.dropout_enrollments or 0,
        }

    @property
    def curriculum_length(self) -> int:
        return len(self.curriculum or [])

    @property
    def open_batches(self) -> List["Batch"]:
        return [batch for batch in self.batches if batch.status in OPEN_BATCH_STATUSES]

    @property
    def available_seats(self) -> int:
        return sum(batch.available_seats for batch in self.open_batches)

    @property
    def next_batch_start_date(self) -> Optional[date]:
        starts = [
            batch.start_date
            for batch in self.batches
            if batch.status == BatchStatus.UPCOMING and batch.start_date
        ]
        return min(starts) if starts else None

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, course_code={self.course_code})>"
