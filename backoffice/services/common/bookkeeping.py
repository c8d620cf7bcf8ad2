"""
Cross-entity bookkeeping.

Keeps derived figures consistent with their source rows:
- Batch occupancy against the roster
- Course enrollment statistics against enrollments
- Student and enrollment fee ledgers against payments
- Attendance percentage caches against attendance marks

Every method runs inside the caller's transaction and never commits.
Derived counters are recomputed from source so that re-running any of
them is harmless.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.models.attendance.attendance import Attendance
from backoffice.models.base.enums import (
    EnrollmentStatus,
    InstallmentStatus,
    PaymentStatus,
    RosterStatus,
)
from backoffice.models.batch.batch import Batch
from backoffice.models.batch.batch_student import BatchStudent
from backoffice.models.enrollment.enrollment import Enrollment
from backoffice.models.payment.payment import Payment
from backoffice.repositories.attendance.attendance_repository import AttendanceRepository
from backoffice.repositories.batch.batch_repository import BatchRepository
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.payment.payment_repository import PaymentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.services.common.errors import BusinessRuleViolation, ValidationError
from backoffice.services.common.metrics import attendance_percentage, percentage
from backoffice.utils.datetime_utils import utcnow

logger = get_logger(__name__)

ROSTER_STATUS_FOR_ENROLLMENT: Dict[EnrollmentStatus, RosterStatus] = {
    EnrollmentStatus.PENDING: RosterStatus.ACTIVE,
    EnrollmentStatus.ACTIVE: RosterStatus.ACTIVE,
    EnrollmentStatus.SUSPENDED: RosterStatus.ACTIVE,
    EnrollmentStatus.COMPLETED: RosterStatus.COMPLETED,
    EnrollmentStatus.DROPPED: RosterStatus.DROPPED,
    EnrollmentStatus.TRANSFERRED: RosterStatus.TRANSFERRED,
}


def _mirror_key(entry: Dict[str, Any]) -> tuple:
    return (entry.get("session"), entry.get("date"))


class Bookkeeper:
    """Propagates counts and sums between related entities."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.batches = BatchRepository(db_session)
        self.courses = CourseRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.payments = PaymentRepository(db_session)
        self.attendance = AttendanceRepository(db_session)
        self.students = StudentRepository(db_session)

    # ------------------------------------------------------------------
    # Batch occupancy
    # ------------------------------------------------------------------

    def reserve_seat(
        self,
        batch: Batch,
        student_id: UUID,
        *,
        full_message: str = "Batch is full",
        allow_existing: bool = False,
    ) -> BatchStudent:
        """
        Take a seat for the student and make their roster entry active.

        Raises:
            ValidationError: Student already active on the roster
            BusinessRuleViolation: No seat left
        """
        entry = self.batches.get_roster_entry(batch.id, student_id)
        if entry is not None and entry.status == RosterStatus.ACTIVE:
            if allow_existing:
                return entry
            raise ValidationError("Student already enrolled in this batch", field="studentId")

        if not self.batches.try_reserve_seat(batch.id):
            raise BusinessRuleViolation("batch_capacity", full_message)

        if entry is None:
            entry = self.batches.add_roster_entry(batch.id, student_id)
        else:
            entry.status = RosterStatus.ACTIVE
            entry.enrollment_date = utcnow()
            self.db.flush()

        logger.info(
            "Seat reserved",
            extra={"batch_id": str(batch.id), "student_id": str(student_id)},
        )
        return entry

    def release_seat(
        self,
        batch_id: UUID,
        student_id: UUID,
        *,
        status: RosterStatus = RosterStatus.DROPPED,
        remove: bool = False,
    ) -> int:
        """Release a roster seat and recount occupancy. Returns the new count."""
        entry = self.batches.get_roster_entry(batch_id, student_id)
        if entry is not None:
            if remove:
                self.db.delete(entry)
            else:
                entry.status = status
        return self.batches.reconcile_occupancy(batch_id)

    def sync_roster_status(self, enrollment: Enrollment) -> None:
        """Align the batch roster entry with the enrollment status."""
        if enrollment.batch_id is None:
            return

        target = ROSTER_STATUS_FOR_ENROLLMENT[EnrollmentStatus(enrollment.status)]
        entry = self.batches.get_roster_entry(enrollment.batch_id, enrollment.student_id)

        if target == RosterStatus.ACTIVE:
            if entry is None or entry.status != RosterStatus.ACTIVE:
                batch = self.batches.get(enrollment.batch_id)
                self.reserve_seat(batch, enrollment.student_id, allow_existing=True)
            return

        if entry is not None and entry.status != target:
            entry.status = target
        self.batches.reconcile_occupancy(enrollment.batch_id)

    # ------------------------------------------------------------------
    # Course statistics
    # ------------------------------------------------------------------

    def recompute_course_stats(self, course_id: UUID) -> Dict[str, int]:
        course = self.courses.get(course_id)
        if course is None:
            return {}

        counts = self.enrollments.status_counts(course_id)
        course.total_enrolled = sum(counts.values())
        course.active_enrollments = counts.get(EnrollmentStatus.ACTIVE.value, 0)
        course.completed_enrollments = counts.get(EnrollmentStatus.COMPLETED.value, 0)
        course.dropout_enrollments = counts.get(EnrollmentStatus.DROPPED.value, 0)
        self.db.flush()
        return course.enrollment_stats

    # ------------------------------------------------------------------
    # Fee ledgers
    # ------------------------------------------------------------------

    def recompute_ledgers(self, student_id: UUID, enrollment_id: Optional[UUID] = None) -> None:
        """Recompute paid and pending figures from the payments table."""
        student = self.students.get(student_id)
        if student is not None:
            student.paid_amount = self.payments.net_paid(student_id=student_id)
            student.recompute_pending()

        if enrollment_id is not None:
            enrollment = self.enrollments.get(enrollment_id)
            if enrollment is not None:
                enrollment.fee_paid = self.payments.net_paid(enrollment_id=enrollment_id)
                enrollment.recompute_pending()

        self.db.flush()

    def apply_payment(self, payment: Payment) -> None:
        """Ledger recompute plus installment marking for one payment."""
        self.recompute_ledgers(payment.student_id, payment.enrollment_id)
        if payment.status == PaymentStatus.COMPLETED and payment.installment_number:
            self._mark_installment_paid(payment)

    def _mark_installment_paid(self, payment: Payment) -> None:
        paid_entry = {
            "status": InstallmentStatus.PAID.value,
            "paidAmount": float(Decimal(payment.amount)),
            "paidDate": utcnow().isoformat(),
            "receipt": payment.receipt_number,
        }

        student = self.students.get(payment.student_id)
        if student is not None and student.payment_schedule:
            student.payment_schedule = self._with_installment(
                student.payment_schedule, payment.installment_number, paid_entry
            )

        if payment.enrollment_id is not None:
            enrollment = self.enrollments.get(payment.enrollment_id)
            if enrollment is not None and enrollment.payment_plan:
                enrollment.payment_plan = self._with_installment(
                    enrollment.payment_plan, payment.installment_number, paid_entry
                )
        self.db.flush()

    @staticmethod
    def _with_installment(schedule: List[Dict[str, Any]], number: int, changes: Dict[str, Any]):
        return [
            {**item, **changes} if item.get("installmentNumber") == number else dict(item)
            for item in schedule
        ]

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------

    def mirror_attendance(self, record: Attendance, *, remove: bool = False) -> Optional[Enrollment]:
        """Upsert (or drop) the record in the enrollment attendance mirror."""
        enrollment = self.enrollments.in_batch(record.student_id, record.batch_id)
        if enrollment is None:
            return None

        entry = {
            "date": record.date.isoformat(),
            "session": str(record.session_id) if record.session_id else None,
            "status": getattr(record.status, "value", record.status),
            "remarks": record.remarks,
        }
        self.upsert_mirror_entry(enrollment, entry, remove=remove)
        return enrollment

    def upsert_mirror_entry(
        self, enrollment: Enrollment, entry: Dict[str, Any], *, remove: bool = False
    ) -> int:
        """Replace the entry with the same session and date; returns the new percentage."""
        key = _mirror_key(entry)
        mirror = [dict(item) for item in (enrollment.attendance or []) if _mirror_key(item) != key]
        if not remove:
            mirror.append(entry)
        mirror.sort(key=lambda item: item.get("date") or "")

        enrollment.attendance = mirror
        enrollment.attendance_percentage = attendance_percentage(
            item.get("status") for item in mirror
        )
        self.db.flush()
        return enrollment.attendance_percentage

    def refresh_roster_attendance(self, student_id: UUID, batch_id: UUID) -> int:
        percentage = attendance_percentage(self.attendance.statuses(student_id, batch_id))
        entry = self.batches.get_roster_entry(batch_id, student_id)
        if entry is not None:
            entry.attendance_percentage = percentage
            self.db.flush()
        return percentage

    def record_attendance_change(self, record: Attendance, *, removed: bool = False) -> None:
        self.mirror_attendance(record, remove=removed)
        self.refresh_roster_attendance(record.student_id, record.batch_id)

    # ------------------------------------------------------------------
    # Enrollment progress
    # ------------------------------------------------------------------

    @staticmethod
    def progress_percentage(completed_count: int, curriculum_length: int) -> int:
        """Share of completed modules; not capped when the curriculum shrinks."""
        return percentage(completed_count, curriculum_length)
