"""
Payment service: fee collection and the ledgers it drives.

Handles:
- Payment recording with auto-completion for office staff
- Verification, refunds and status changes through the payment transition table
- Student and enrollment ledger recomputation
- Receipts (JSON and PDF) and payment statistics
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.config.settings import settings
from backoffice.models.base.enums import PaymentMode, PaymentStatus, UserRole
from backoffice.models.payment.payment import Payment
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.payment.payment_repository import PaymentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.repositories.user.user_repository import UserRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.payment import (
    PaymentCreate,
    PaymentUpdate,
    RefundRequest,
    StudentPaymentCreate,
)
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.bookkeeping import Bookkeeper
from backoffice.services.common.errors import BusinessRuleViolation, ValidationError
from backoffice.services.common.permissions import PermissionDenied, Principal
from backoffice.services.common.transitions import ensure_payment_transition
from backoffice.services.core.counter_service import CounterService
from backoffice.utils.datetime_utils import DateTimeHelper, utcnow
from backoffice.utils.email import send_email
from backoffice.utils.pdf_utils import PDFGenerator

# Payments taken by these roles are completed on entry
AUTO_COMPLETE_ROLES = (UserRole.ADMIN, UserRole.EMPLOYEE)


def _amount(value) -> float:
    return float(Decimal(value or 0))


class PaymentService(BaseService[Payment, PaymentRepository]):
    """Fee payments."""

    resource_name = "Payment"

    def __init__(self, db_session: Session):
        super().__init__(PaymentRepository(db_session), db_session)
        self.students = StudentRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.users = UserRepository(db_session)
        self.counters = CounterService(db_session)
        self.bookkeeper = Bookkeeper(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_payments(
        self,
        params: ListParams,
        status: Optional[PaymentStatus] = None,
        payment_mode: Optional[PaymentMode] = None,
        student_id: Optional[UUID] = None,
        enrollment_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Page[Payment]]:
        try:
            page = self.repository.find_filtered(
                filters={
                    "status": status,
                    "payment_mode": payment_mode,
                    "student_id": student_id,
                    "enrollment_id": enrollment_id,
                },
                start_date=start_date,
                end_date=end_date,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list payments")

    def get_payment(self, payment_id: UUID) -> ServiceResult[Payment]:
        try:
            return ServiceResult.success(self._get_or_raise(payment_id))
        except Exception as e:
            return self._handle_exception(e, "get payment", payment_id)

    def student_payments(self, student_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """All payments of a student with a ledger summary."""
        try:
            student = self._get_or_raise(student_id, self.students, "Student")
            payments = self.repository.for_student(student_id)
            return ServiceResult.success(
                {
                    "student": {
                        "id": str(student.id),
                        "studentId": student.student_id,
                        "name": student.full_name,
                        "totalFees": _amount(student.total_fees),
                        "paidAmount": _amount(student.paid_amount),
                        "pendingAmount": _amount(student.pending_amount),
                    },
                    "payments": payments,
                    "summary": {
                        "totalTransactions": len(payments),
                        "totalPaid": float(sum((p.net_amount for p in payments), Decimal("0"))),
                        "pendingPayments": sum(1 for p in payments if p.status == PaymentStatus.PENDING),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "list student payments", student_id)

    def get_stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Collection totals, today's takings, status and mode breakdowns and
        a six-month trend of completed payments.
        """
        try:
            payments = self.repository.find_filtered(
                start_date=start_date, end_date=end_date, limit=0
            ).items

            today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            since = DateTimeHelper.months_back(6)
            by_status: Dict[str, Dict[str, float]] = {}
            by_mode: Dict[str, Dict[str, float]] = {}
            monthly: Dict[str, Dict[str, float]] = {}
            total_amount = Decimal("0")
            todays_count = 0
            todays_amount = Decimal("0")

            for payment in payments:
                bucket = by_status.setdefault(payment.status.value, {"count": 0, "amount": 0.0})
                bucket["count"] += 1
                bucket["amount"] += _amount(payment.amount)

                if payment.status != PaymentStatus.COMPLETED:
                    continue

                amount = Decimal(payment.amount)
                total_amount += amount
                mode = by_mode.setdefault(payment.payment_mode.value, {"count": 0, "amount": 0.0})
                mode["count"] += 1
                mode["amount"] += float(amount)

                paid_on = DateTimeHelper.ensure_aware(payment.payment_date)
                if today <= paid_on < today + timedelta(days=1):
                    todays_count += 1
                    todays_amount += amount
                if paid_on >= since:
                    key = DateTimeHelper.month_key(paid_on)
                    month = monthly.setdefault(key, {"month": key, "count": 0, "amount": 0.0})
                    month["count"] += 1
                    month["amount"] += float(amount)

            return ServiceResult.success(
                {
                    "totalPayments": len(payments),
                    "totalAmount": float(total_amount),
                    "todaysPayments": todays_count,
                    "todaysAmount": float(todays_amount),
                    "byStatus": by_status,
                    "byMode": by_mode,
                    "monthlyTrend": [monthly[key] for key in sorted(monthly)],
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get payment stats")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_payment(
        self,
        data: PaymentCreate,
        actor: Principal,
        force_complete: bool = False,
    ) -> ServiceResult[Payment]:
        """
        Record a payment.

        Payments entered by admins and employees (or forced by the caller)
        are completed immediately and update the fee ledgers in the same
        transaction.

        Args:
            data: Payment fields
            actor: Acting principal
            force_complete: Complete regardless of the actor's role

        Returns:
            ServiceResult containing the created payment
        """
        self._logger.info(
            "Recording payment",
            extra={"student_id": str(data.student_id), "amount": str(data.amount)},
        )
        try:
            with self.transaction():
                student = self._get_or_raise(data.student_id, self.students, "Student")
                if data.enrollment_id is not None:
                    enrollment = self._get_or_raise(data.enrollment_id, self.enrollments, "Enrollment")
                    if enrollment.student_id != student.id:
                        raise ValidationError(
                            "Enrollment does not belong to this student", field="enrollmentId"
                        )

                values = data.column_values()
                if values.get("payment_date") is None:
                    values["payment_date"] = utcnow()
                payment = Payment(**values)
                payment.payment_id = self.counters.next_payment_id()
                payment.receipt_number = self.counters.next_receipt_number()
                payment.received_by_id = actor.user_id
                payment.status = PaymentStatus.PENDING

                if force_complete or actor.has_any_role(AUTO_COMPLETE_ROLES):
                    self._complete(payment, actor)

                payment.stamp(actor.user_id, created=True)
                self.repository.create(payment)
                self.bookkeeper.apply_payment(payment)

            self._log_operation(
                "create payment",
                payment.id,
                {"payment_code": payment.payment_id, "status": payment.status.value},
            )
            self._send_receipt(payment)
            return ServiceResult.success(payment, message="Payment recorded successfully")
        except Exception as e:
            return self._handle_exception(e, "create payment", data.student_id)

    def record_student_payment(
        self, student_id: UUID, data: StudentPaymentCreate, actor: Principal
    ) -> ServiceResult[Payment]:
        """Record a completed payment from the student's record."""
        payment = PaymentCreate(student_id=student_id, **data.model_dump())
        return self.create_payment(payment, actor, force_complete=True)

    def update_payment(
        self, payment_id: UUID, data: PaymentUpdate, actor: Principal
    ) -> ServiceResult[Payment]:
        """
        Update a payment.

        Completed payments are editable by admins only. Refunds go through
        refund_payment so that the refunded amount is recorded.
        """
        try:
            with self.transaction():
                payment = self._get_or_raise(payment_id)
                if payment.status == PaymentStatus.COMPLETED and not actor.is_admin:
                    raise PermissionDenied(
                        "Cannot update completed payment", user_id=actor.user_id, role=actor.role
                    )

                changes = data.changes()
                new_status = PaymentStatus(changes.pop("status", payment.status))
                status_changed = ensure_payment_transition(payment.status, new_status)
                if status_changed and new_status == PaymentStatus.REFUNDED:
                    raise ValidationError("Use the refund operation to refund a payment", field="status")

                self.repository.update(payment, changes)
                if status_changed:
                    if new_status == PaymentStatus.COMPLETED:
                        self._complete(payment, actor)
                    else:
                        payment.status = new_status
                payment.stamp(actor.user_id)
                self.bookkeeper.apply_payment(payment)

            return ServiceResult.success(payment, message="Payment updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update payment", payment_id)

    def delete_payment(self, payment_id: UUID) -> ServiceResult[bool]:
        try:
            with self.transaction():
                payment = self._get_or_raise(payment_id)
                if payment.status == PaymentStatus.COMPLETED:
                    raise BusinessRuleViolation(
                        "completed_payment", "Cannot delete completed payment. Use refund instead"
                    )
                student_id, enrollment_id = payment.student_id, payment.enrollment_id
                self.repository.delete(payment)
                self.bookkeeper.recompute_ledgers(student_id, enrollment_id)

            self._log_operation("delete payment", payment_id)
            return ServiceResult.success(True, message="Payment deleted successfully")
        except Exception as e:
            return self._handle_exception(e, "delete payment", payment_id)

    def verify_payment(self, payment_id: UUID, actor: Principal) -> ServiceResult[Payment]:
        try:
            with self.transaction():
                payment = self._get_or_raise(payment_id)
                if payment.status == PaymentStatus.COMPLETED:
                    raise ValidationError("Payment already verified", field="status")
                ensure_payment_transition(payment.status, PaymentStatus.COMPLETED)

                self._complete(payment, actor)
                payment.stamp(actor.user_id)
                self.bookkeeper.apply_payment(payment)

            self._log_operation("verify payment", payment_id)
            self._send_receipt(payment)
            return ServiceResult.success(payment, message="Payment verified successfully")
        except Exception as e:
            return self._handle_exception(e, "verify payment", payment_id)

    def refund_payment(
        self, payment_id: UUID, data: RefundRequest, actor: Principal
    ) -> ServiceResult[Payment]:
        """
        Refund all or part of a completed payment.

        The original verification fields are kept; the ledgers then count
        only the amount that was not refunded.
        """
        try:
            with self.transaction():
                payment = self._get_or_raise(payment_id)
                if payment.status != PaymentStatus.COMPLETED:
                    raise BusinessRuleViolation(
                        "refund_state", "Only completed payments can be refunded"
                    )

                amount = Decimal(data.amount) if data.amount is not None else Decimal(payment.amount)
                if amount > Decimal(payment.amount):
                    raise ValidationError("Refund amount cannot exceed payment amount", field="amount")

                payment.status = PaymentStatus.REFUNDED
                payment.refund_details = {
                    "amount": float(amount),
                    "reason": data.reason,
                    "approvedBy": str(actor.user_id),
                    "refundDate": utcnow().isoformat(),
                    "refundMode": data.refund_mode.value if data.refund_mode else None,
                    "transactionId": data.transaction_id,
                }
                payment.stamp(actor.user_id)
                self.bookkeeper.recompute_ledgers(payment.student_id, payment.enrollment_id)

            self._log_operation("refund payment", payment_id, {"amount": str(amount)})
            return ServiceResult.success(payment, message="Payment refunded successfully")
        except Exception as e:
            return self._handle_exception(e, "refund payment", payment_id)

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def receipt(self, payment_id: UUID) -> ServiceResult[Dict[str, Any]]:
        try:
            payment = self._get_or_raise(payment_id)
            return ServiceResult.success(
                self._receipt_data(payment), message="Receipt generated successfully"
            )
        except Exception as e:
            return self._handle_exception(e, "generate receipt", payment_id)

    def receipt_pdf(self, payment_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """Receipt rendered as PDF; data holds `filename` and `content` bytes."""
        try:
            payment = self._get_or_raise(payment_id)
            content = PDFGenerator().generate_receipt(
                self._receipt_data(payment), currency=settings.CURRENCY
            )
            return ServiceResult.success(
                {"filename": f"receipt-{payment.receipt_number}.pdf", "content": content},
                message="Receipt generated successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "generate receipt pdf", payment_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _complete(payment: Payment, actor: Principal) -> None:
        payment.status = PaymentStatus.COMPLETED
        payment.verified_by_id = actor.user_id
        payment.verification_date = utcnow()

    def _send_receipt(self, payment: Payment) -> None:
        if payment.status != PaymentStatus.COMPLETED:
            return
        student = payment.student
        send_email(
            student.email,
            "payment-receipt",
            {
                "name": student.full_name,
                "receiptNumber": payment.receipt_number,
                "amount": f"{_amount(payment.amount):.2f}",
                "paymentDate": payment.payment_date.date().isoformat(),
                "paymentMode": payment.payment_mode.value,
                "status": payment.status.value,
            },
        )

    def _user_name(self, user_id: Optional[UUID]) -> str:
        if user_id is None:
            return "N/A"
        user = self.users.get(user_id)
        return user.full_name if user is not None else "N/A"

    def _receipt_data(self, payment: Payment) -> Dict[str, Any]:
        student = payment.student
        enrollment = payment.enrollment
        return {
            "paymentId": payment.payment_id,
            "receiptNumber": payment.receipt_number,
            "paymentDate": payment.payment_date.isoformat(),
            "amount": _amount(payment.amount),
            "paymentMode": payment.payment_mode.value,
            "paymentFor": payment.payment_for.value,
            "status": payment.status.value,
            "student": {
                "id": student.student_id,
                "name": student.full_name,
                "phone": student.phone,
                "email": student.email,
            },
            "enrollment": (
                {
                    "enrollmentId": enrollment.enrollment_id,
                    "course": enrollment.course.name,
                    "courseCode": enrollment.course.course_code,
                }
                if enrollment is not None
                else None
            ),
            "receivedBy": self._user_name(payment.received_by_id),
            "verifiedBy": self._user_name(payment.verified_by_id),
            "transactionDetails": dict(payment.transaction_details or {}),
            "refundDetails": dict(payment.refund_details or {}),
            "institute": {
                "name": settings.INSTITUTE_NAME,
                "address": settings.INSTITUTE_ADDRESS,
                "phone": settings.INSTITUTE_PHONE,
                "email": settings.INSTITUTE_EMAIL,
                "website": settings.INSTITUTE_WEBSITE,
            },
            "generatedAt": utcnow().isoformat(),
        }
