"""
Payment repository.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.base.enums import PaymentStatus
from backoffice.models.payment.payment import Payment
from backoffice.models.student.student import Student
from backoffice.repositories.base.base_repository import BaseRepository, Page

LEDGER_STATUSES = (PaymentStatus.COMPLETED, PaymentStatus.REFUNDED)


class PaymentRepository(BaseRepository[Payment]):
    """Data access for payments."""

    search_columns = ("payment_id", "receipt_number")

    def __init__(self, session: Session):
        super().__init__(session, Payment)

    def find_filtered(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[Payment]:
        stmt = self._apply_filters(self._base_select(), filters)
        if start_date is not None:
            stmt = stmt.where(Payment.payment_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Payment.payment_date <= end_date)
        if search:
            pattern = f"%{search.strip()}%"
            matching_students = select(Student.id).where(
                Student.full_name.ilike(pattern) | Student.student_id.ilike(pattern)
            )
            stmt = stmt.where(
                Payment.payment_id.ilike(pattern)
                | Payment.receipt_number.ilike(pattern)
                | Payment.student_id.in_(matching_students)
            )
        return self.paginate(
            stmt, page=page, limit=limit, sort_by=sort_by or "payment_date", sort_order=sort_order
        )

    def ledger_payments(
        self,
        *,
        student_id: Optional[UUID] = None,
        enrollment_id: Optional[UUID] = None,
    ) -> List[Payment]:
        self.session.flush()
        stmt = select(Payment).where(Payment.status.in_(LEDGER_STATUSES))
        if student_id is not None:
            stmt = stmt.where(Payment.student_id == student_id)
        if enrollment_id is not None:
            stmt = stmt.where(Payment.enrollment_id == enrollment_id)
        return list(self.session.execute(stmt).scalars().all())

    def net_paid(
        self,
        *,
        student_id: Optional[UUID] = None,
        enrollment_id: Optional[UUID] = None,
    ) -> Decimal:
        """Sum of completed amounts plus refunded amounts net of refunds."""
        payments = self.ledger_payments(student_id=student_id, enrollment_id=enrollment_id)
        return sum((payment.net_amount for payment in payments), Decimal("0"))

    def for_student(self, student_id: UUID) -> List[Payment]:
        stmt = select(Payment).where(Payment.student_id == student_id).order_by(
            Payment.payment_date.desc()
        )
        return list(self.session.execute(stmt).scalars().all())

    def recent(self, limit: int = 5) -> List[Payment]:
        stmt = select(Payment).order_by(Payment.payment_date.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())
