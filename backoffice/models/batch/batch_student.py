"""
Batch roster entry.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import RosterStatus, enum_type
from backoffice.models.base.mixins import TimestampMixin
from backoffice.utils.datetime_utils import utcnow

if TYPE_CHECKING:
    from backoffice.models.batch.batch import Batch
    from backoffice.models.student.student import Student


class BatchStudent(BaseModel, TimestampMixin):
    """One student on one batch roster."""

    __tablename__ = "batch_students"
    __table_args__ = (
        UniqueConstraint("batch_id", "student_id", name="uq_batch_students_batch_student"),
    )

    batch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrollment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    status: Mapped[RosterStatus] = mapped_column(
        enum_type(RosterStatus), nullable=False, default=RosterStatus.ACTIVE, index=True
    )
    attendance_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    performance: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    batch: Mapped["Batch"] = relationship("Batch")
    student: Mapped["Student"] = relationship("Student")
