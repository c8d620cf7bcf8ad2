"""
Payment model.

Fee payments recorded against a student and optionally an enrollment.
Student and enrollment ledgers are recomputed from these rows.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import PaymentFor, PaymentMode, PaymentStatus, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin
from backoffice.utils.datetime_utils import utcnow

if TYPE_CHECKING:
    from backoffice.models.enrollment.enrollment import Enrollment
    from backoffice.models.student.student import Student


class Payment(BaseModel, TimestampMixin, AuditMixin):
    """
    Fee payment.

    Counted towards ledgers:
        completed  -> amount
        refunded   -> amount - refund amount
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    payment_id: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True, comment="PAY + 8 digits"
    )
    receipt_number: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True, comment="RCPT + YYMM + 4 digits"
    )
    student_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    enrollment_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("enrollments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(
        enum_type(PaymentMode), nullable=False, default=PaymentMode.CASH, index=True
    )
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    status: Mapped[PaymentStatus] = mapped_column(
        enum_type(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True
    )
    transaction_details: Mapped[Dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )
    installment_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    payment_for: Mapped[PaymentFor] = mapped_column(
        enum_type(PaymentFor), nullable=False, default=PaymentFor.TUITION
    )
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    received_by_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verified_by_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    verification_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refund_details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    student: Mapped["Student"] = relationship("Student")
    enrollment: Mapped[Optional["Enrollment"]] = relationship("Enrollment")

    @property
    def net_amount(self) -> Decimal:
        """Amount this payment contributes to fee ledgers."""
        if self.status == PaymentStatus.COMPLETED:
            return Decimal(self.amount)
        if self.status == PaymentStatus.REFUNDED:
            refunded = Decimal(str((self.refund_details or {}).get("amount") or 0))
            return Decimal(self.amount) - refunded
        return Decimal("0")

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, payment_id={self.payment_id}, status={self.status})>"
