"""
Enrollment service: the student-course lifecycle.

Handles:
- Enrollment create/update/delete with seat, roster and course-stat bookkeeping
- Module progress, attendance mirror and assignment progress
- Certificates
- Enrollment queries and statistics
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.config.settings import settings
from backoffice.models.base.enums import EnrollmentStatus, EnrollmentType, RosterStatus
from backoffice.models.batch.batch import Batch
from backoffice.models.enrollment.enrollment import Enrollment
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.batch.batch_repository import BatchRepository
from backoffice.repositories.content.content_repository import ContentRepository
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.payment.payment_repository import PaymentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.content import AssignmentSubmission, SubmissionGrade
from backoffice.schemas.enrollment import (
    EnrollmentAttendanceMark,
    EnrollmentCreate,
    EnrollmentUpdate,
    ProgressUpdate,
)
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common import submissions
from backoffice.services.common.bookkeeping import ROSTER_STATUS_FOR_ENROLLMENT, Bookkeeper
from backoffice.services.common.errors import ConflictError, NotFoundError, ValidationError
from backoffice.services.common.permissions import Principal
from backoffice.services.common.transitions import ensure_enrollment_transition
from backoffice.services.core.counter_service import CounterService
from backoffice.utils.datetime_utils import DateTimeHelper, utcnow

BATCH_FULL_MESSAGE = "Selected batch is full"


def _holds_seat(status: EnrollmentStatus) -> bool:
    return ROSTER_STATUS_FOR_ENROLLMENT[EnrollmentStatus(status)] == RosterStatus.ACTIVE


def _upsert_by(items: List[Dict[str, Any]], key: str, entry: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Replace the item whose `key` matches the entry's, else append."""
    kept = [dict(item) for item in items or [] if item.get(key) != entry[key]]
    return [*kept, entry]


class EnrollmentService(BaseService[Enrollment, EnrollmentRepository]):
    """Enrollments and their sub-records."""

    resource_name = "Enrollment"

    def __init__(self, db_session: Session):
        super().__init__(EnrollmentRepository(db_session), db_session)
        self.students = StudentRepository(db_session)
        self.courses = CourseRepository(db_session)
        self.batches = BatchRepository(db_session)
        self.contents = ContentRepository(db_session)
        self.payments = PaymentRepository(db_session)
        self.counters = CounterService(db_session)
        self.bookkeeper = Bookkeeper(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_enrollments(
        self,
        params: ListParams,
        status: Optional[EnrollmentStatus] = None,
        course_id: Optional[UUID] = None,
        batch_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        enrollment_type: Optional[EnrollmentType] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Page[Enrollment]]:
        try:
            paging = params.paging()
            paging["sort_by"] = paging["sort_by"] or "enrollment_date"
            page = self.repository.find_filtered(
                filters={
                    "status": status,
                    "course_id": course_id,
                    "batch_id": batch_id,
                    "student_id": student_id,
                    "enrollment_type": enrollment_type,
                },
                start_date=start_date,
                end_date=end_date,
                search=params.search,
                **paging,
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list enrollments")

    def get_enrollment(self, enrollment_id: UUID) -> ServiceResult[Enrollment]:
        try:
            return ServiceResult.success(self._get_or_raise(enrollment_id))
        except Exception as e:
            return self._handle_exception(e, "get enrollment", enrollment_id)

    def student_enrollments(self, student_id: UUID) -> ServiceResult[Dict[str, Any]]:
        try:
            student = self._get_or_raise(student_id, self.students, "Student")
            enrollments = self.repository.for_student(student_id)
            statuses = [enrollment.status for enrollment in enrollments]
            return ServiceResult.success(
                {
                    "student": {"id": str(student.id), "studentId": student.student_id, "name": student.full_name},
                    "enrollments": enrollments,
                    "stats": {
                        "total": len(enrollments),
                        "active": statuses.count(EnrollmentStatus.ACTIVE),
                        "completed": statuses.count(EnrollmentStatus.COMPLETED),
                        "dropout": statuses.count(EnrollmentStatus.DROPPED),
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "list student enrollments", student_id)

    def course_enrollments(self, course_id: UUID) -> ServiceResult[Dict[str, Any]]:
        try:
            course = self._get_or_raise(course_id, self.courses, "Course")
            enrollments = self.repository.for_course(course_id)
            by_status: Dict[str, int] = {}
            for enrollment in enrollments:
                by_status[enrollment.status.value] = by_status.get(enrollment.status.value, 0) + 1
            return ServiceResult.success(
                {
                    "course": {
                        "id": str(course.id),
                        "courseCode": course.course_code,
                        "name": course.name,
                        "duration": {"value": course.duration_value, "unit": course.duration_unit.value},
                    },
                    "enrollments": enrollments,
                    "stats": {"total": len(enrollments), "byStatus": by_status},
                }
            )
        except Exception as e:
            return self._handle_exception(e, "list course enrollments", course_id)

    def get_stats(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Totals, counts by status and a monthly trend over the last six
        months, optionally restricted to an enrollment date range.
        """
        try:
            page = self.repository.find_filtered(start_date=start_date, end_date=end_date, limit=0)
            enrollments = page.items

            by_status: Dict[str, int] = {}
            monthly: Dict[str, int] = {}
            since = DateTimeHelper.months_back(6)
            today = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            todays = 0
            for enrollment in enrollments:
                by_status[enrollment.status.value] = by_status.get(enrollment.status.value, 0) + 1
                enrolled = DateTimeHelper.ensure_aware(enrollment.enrollment_date)
                if enrolled >= since:
                    key = DateTimeHelper.month_key(enrolled)
                    monthly[key] = monthly.get(key, 0) + 1
                if today <= enrolled < today + timedelta(days=1):
                    todays += 1

            return ServiceResult.success(
                {
                    "totalEnrollments": page.total,
                    "todaysEnrollments": todays,
                    "byStatus": by_status,
                    "monthlyTrend": [
                        {"month": month, "count": monthly[month]} for month in sorted(monthly)
                    ][:6],
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get enrollment stats")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_enrollment(
        self,
        data: EnrollmentCreate,
        actor: Principal,
        add_to_student_fees: bool = False,
    ) -> ServiceResult[Enrollment]:
        """
        Enroll a student in a course, optionally placing them in a batch.

        Seat reservation, roster entry and course statistics are written in
        the same transaction as the enrollment.

        Args:
            data: Enrollment fields
            actor: Acting principal
            add_to_student_fees: Also add the total to the student's totalFees

        Returns:
            ServiceResult containing the created enrollment
        """
        self._logger.info(
            "Creating enrollment",
            extra={"student_id": str(data.student_id), "course_id": str(data.course_id)},
        )
        try:
            with self.transaction():
                student = self._get_or_raise(data.student_id, self.students, "Student")
                course = self._get_or_raise(data.course_id, self.courses, "Course")
                batch = self._resolve_batch(data.batch_id, course.id)

                if self.repository.find_open(student.id, course.id) is not None:
                    raise ConflictError(
                        "Student is already enrolled or has a pending enrollment for this course",
                        conflicting_field="courseId",
                    )
                if self.repository.find_pair(student.id, course.id) is not None:
                    raise ConflictError(
                        "Student already has an enrollment record for this course",
                        conflicting_field="courseId",
                    )

                enrollment = Enrollment(**data.column_values())
                enrollment.enrollment_id = self.counters.next_enrollment_id()
                enrollment.enrollment_date = utcnow()
                enrollment.fee_paid = Decimal("0")
                enrollment.recompute_pending()
                enrollment.stamp(actor.user_id, created=True)
                self.repository.create(enrollment)

                if batch is not None and _holds_seat(enrollment.status):
                    self.bookkeeper.reserve_seat(
                        batch, student.id, full_message=BATCH_FULL_MESSAGE, allow_existing=True
                    )
                self.bookkeeper.recompute_course_stats(course.id)

                if add_to_student_fees:
                    student.total_fees = Decimal(student.total_fees or 0) + Decimal(enrollment.fee_total)
                    student.recompute_pending()
                    student.stamp(actor.user_id)

            self._log_operation(
                "create enrollment", enrollment.id, {"enrollment_code": enrollment.enrollment_id}
            )
            return ServiceResult.success(enrollment, message="Enrollment created successfully")
        except Exception as e:
            return self._handle_exception(e, "create enrollment", data.student_id)

    def update_enrollment(
        self, enrollment_id: UUID, data: EnrollmentUpdate, actor: Principal
    ) -> ServiceResult[Enrollment]:
        """
        Update an enrollment.

        Status changes follow the transition table and keep the roster in
        step. A batch change moves the seat from the old batch to the new
        one.
        """
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                changes = data.changes()
                new_status = changes.pop("status", enrollment.status)
                new_batch_id = changes.pop("batch_id", enrollment.batch_id)
                status_changed = ensure_enrollment_transition(enrollment.status, new_status)

                self.repository.update(enrollment, changes)
                enrollment.recompute_pending()

                if new_batch_id != enrollment.batch_id:
                    batch = self._resolve_batch(new_batch_id, enrollment.course_id)
                    if enrollment.batch_id is not None:
                        self.bookkeeper.release_seat(
                            enrollment.batch_id, enrollment.student_id, status=RosterStatus.TRANSFERRED
                        )
                    enrollment.batch_id = batch.id
                    if _holds_seat(new_status):
                        self.bookkeeper.reserve_seat(
                            batch,
                            enrollment.student_id,
                            full_message=BATCH_FULL_MESSAGE,
                            allow_existing=True,
                        )

                if status_changed:
                    enrollment.status = EnrollmentStatus(new_status)
                    if enrollment.status == EnrollmentStatus.COMPLETED and enrollment.actual_completion is None:
                        enrollment.actual_completion = utcnow()
                    self.db.flush()
                    self.bookkeeper.sync_roster_status(enrollment)
                    self.bookkeeper.recompute_course_stats(enrollment.course_id)

                enrollment.stamp(actor.user_id)

            return ServiceResult.success(enrollment, message="Enrollment updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update enrollment", enrollment_id)

    def delete_enrollment(self, enrollment_id: UUID) -> ServiceResult[bool]:
        """Delete an enrollment, releasing its seat and refreshing course stats."""
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                course_id = enrollment.course_id
                if enrollment.batch_id is not None:
                    self.bookkeeper.release_seat(enrollment.batch_id, enrollment.student_id, remove=True)
                self.payments.bulk_update({"enrollment_id": enrollment.id}, {"enrollment_id": None})
                self.repository.delete(enrollment)
                self.bookkeeper.recompute_course_stats(course_id)

            self._log_operation("delete enrollment", enrollment_id)
            return ServiceResult.success(True, message="Enrollment deleted successfully")
        except Exception as e:
            return self._handle_exception(e, "delete enrollment", enrollment_id)

    # -------------------------------------------------------------------------
    # Sub-records
    # -------------------------------------------------------------------------

    def update_progress(
        self, enrollment_id: UUID, data: ProgressUpdate, actor: Principal
    ) -> ServiceResult[Dict[str, Any]]:
        """Mark a curriculum module complete; re-marking replaces the record."""
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                completion = {
                    "moduleId": data.module_id,
                    "completedAt": utcnow().isoformat(),
                    "score": data.score,
                }
                enrollment.completed_modules = _upsert_by(
                    enrollment.completed_modules, "moduleId", completion
                )
                enrollment.progress_percentage = self.bookkeeper.progress_percentage(
                    len(enrollment.completed_modules), enrollment.course.curriculum_length
                )
                enrollment.last_accessed = utcnow()
                enrollment.stamp(actor.user_id)

            return ServiceResult.success(
                {
                    "progress": enrollment.progress_percentage,
                    "completedModules": len(enrollment.completed_modules),
                },
                message="Progress updated successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "update enrollment progress", enrollment_id)

    def mark_attendance(
        self, enrollment_id: UUID, data: EnrollmentAttendanceMark, actor: Principal
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                percentage = self.bookkeeper.upsert_mirror_entry(
                    enrollment,
                    {
                        "date": data.date.isoformat(),
                        "session": data.session,
                        "status": data.status.value,
                        "remarks": data.remarks,
                    },
                )
                enrollment.stamp(actor.user_id)

            return ServiceResult.success(
                {"attendance": list(enrollment.attendance), "attendancePercentage": percentage},
                message="Attendance marked successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "mark enrollment attendance", enrollment_id)

    def submit_assignment(
        self,
        enrollment_id: UUID,
        assignment_id: UUID,
        data: AssignmentSubmission,
        actor: Principal,
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                content = self._get_or_raise(assignment_id, self.contents, "Assignment")
                submission = submissions.submit_assignment(
                    content, enrollment.student_id, data.to_wire()
                )
                enrollment.assignments = _upsert_by(
                    enrollment.assignments,
                    "assignmentId",
                    {
                        "assignmentId": str(assignment_id),
                        "status": submission["status"],
                        "submittedAt": submission["submittedAt"],
                        "score": None,
                    },
                )
                enrollment.last_accessed = utcnow()
                enrollment.stamp(actor.user_id)

            return ServiceResult.success(
                {
                    "assignmentId": str(assignment_id),
                    "submittedAt": submission["submittedAt"],
                    "status": submission["status"],
                },
                message="Assignment submitted successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "submit assignment", enrollment_id)

    def grade_assignment(
        self,
        enrollment_id: UUID,
        assignment_id: UUID,
        data: SubmissionGrade,
        actor: Principal,
    ) -> ServiceResult[Dict[str, Any]]:
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                content = self._get_or_raise(assignment_id, self.contents, "Assignment")
                graded = submissions.grade_submission(
                    content, enrollment.student_id, data.marks, data.feedback, actor.user_id
                )
                enrollment.assignments = _upsert_by(
                    enrollment.assignments,
                    "assignmentId",
                    {
                        "assignmentId": str(assignment_id),
                        "status": graded["status"],
                        "submittedAt": graded["submittedAt"],
                        "score": data.marks,
                    },
                )
                enrollment.stamp(actor.user_id)

            return ServiceResult.success(
                {"assignmentId": str(assignment_id), "marks": data.marks, "feedback": data.feedback},
                message="Assignment graded successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "grade assignment", enrollment_id)

    def generate_certificate(self, enrollment_id: UUID, actor: Principal) -> ServiceResult[Dict[str, Any]]:
        try:
            with self.transaction():
                enrollment = self._get_or_raise(enrollment_id)
                if enrollment.status != EnrollmentStatus.COMPLETED:
                    raise ValidationError(
                        "Certificate can only be generated for completed enrollments", field="status"
                    )
                if (enrollment.certificate or {}).get("issued"):
                    raise ValidationError("Certificate already issued for this enrollment")

                issued_at = utcnow().isoformat()
                certificate = {
                    "issued": True,
                    "certificateId": self.counters.certificate_id(enrollment.enrollment_id),
                    "issuedDate": issued_at,
                    "issuedBy": str(actor.user_id),
                    "downloadUrl": f"{settings.API_V1_STR}/enrollments/{enrollment.id}",
                }
                enrollment.certificate = certificate
                enrollment.stamp(actor.user_id)

            self._log_operation(
                "generate certificate", enrollment_id, {"certificate_id": certificate["certificateId"]}
            )
            return ServiceResult.success(
                {
                    "certificateId": certificate["certificateId"],
                    "issuedDate": issued_at,
                    "student": {"name": enrollment.student.full_name, "id": enrollment.student.student_id},
                    "course": {"name": enrollment.course.name, "code": enrollment.course.course_code},
                    "downloadUrl": certificate["downloadUrl"],
                },
                message="Certificate generated successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "generate certificate", enrollment_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve_batch(self, batch_id: Optional[UUID], course_id: UUID) -> Optional[Batch]:
        if batch_id is None:
            return None
        batch = self._get_or_raise(batch_id, self.batches, "Batch")
        if batch.course_id != course_id:
            raise ValidationError("Batch does not belong to this course", field="batchId")
        return batch
