"""
Attendance record model.

One mark per student per batch per day.
"""

from datetime import date as Date, datetime
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date as SQLDate,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import AttendanceStatus, enum_type
from backoffice.models.base.mixins import TimestampMixin

if TYPE_CHECKING:
    from backoffice.models.batch.batch import Batch
    from backoffice.models.student.student import Student


class Attendance(BaseModel, TimestampMixin):
    """
    Attendance mark.

    Approved records can only be changed by administrators.
    """

    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "student_id", "batch_id", "date", name="uq_attendance_student_batch_date"
        ),
    )

    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("batch_sessions.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    status: Mapped[AttendanceStatus] = mapped_column(
        enum_type(AttendanceStatus), nullable=False, index=True
    )
    check_in_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, comment="Minutes between check-in and check-out"
    )
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    marked_by_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    student: Mapped["Student"] = relationship("Student")
    batch: Mapped["Batch"] = relationship("Batch")

    def compute_duration(self) -> None:
        if self.check_in_time and self.check_out_time:
            delta = self.check_out_time - self.check_in_time
            self.duration = max(0, int(delta.total_seconds() // 60))

    def __repr__(self) -> str:
        return f"<Attendance(student_id={self.student_id}, date={self.date}, status={self.status})>"
