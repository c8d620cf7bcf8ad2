"""
Batch model.

A capacity-bounded scheduled running of a course. Occupancy is the
number of active roster rows in batch_students.
"""

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, Date, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import BatchStatus, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin

if TYPE_CHECKING:
    from backoffice.models.course.course import Course


class Batch(BaseModel, TimestampMixin, AuditMixin):
    """
    Batch of a course.

    Constraints:
        0 <= current_students <= max_students
    """

    __tablename__ = "batches"
    __table_args__ = (
        CheckConstraint("max_students >= 1", name="ck_batches_max_students_positive"),
        CheckConstraint("current_students >= 0", name="ck_batches_current_non_negative"),
        CheckConstraint(
            "current_students <= max_students", name="ck_batches_current_within_capacity"
        ),
    )

    batch_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        nullable=False,
        index=True,
        comment="Course prefix + B + 3-digit sequence",
    )
    course_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    schedule: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="days, time, duration, classroom",
    )
    max_students: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    current_students: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    instructor_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    assistant_instructors: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[BatchStatus] = mapped_column(
        enum_type(BatchStatus), nullable=False, default=BatchStatus.UPCOMING, index=True
    )

    course: Mapped["Course"] = relationship("Course")

    @property
    def available_seats(self) -> int:
        return max(0, (self.max_students or 0) - (self.current_students or 0))

    @property
    def progress_percentage(self) -> int:
        if not self.start_date or not self.end_date:
            return 0
        today = date.today()
        total = (self.end_date - self.start_date).days
        if total <= 0:
            return 100 if today >= self.end_date else 0
        elapsed = (today - self.start_date).days
        return max(0, min(100, round(elapsed / total * 100)))

    def __repr__(self) -> str:
        return f"<Batch(id={self.id}, batch_id={self.batch_id})>"
