"""
Student service: admissions and student records.

Handles:
- Student CRUD with unique phone and email
- Status changes through the student transition table
- Fee summary and documents
- Student statistics
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.base.enums import AdmissionType, EnrollmentStatus, StudentStatus
from backoffice.models.student.student import Student
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.payment.payment_repository import PaymentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.student import DocumentCreate, StudentCreate, StudentUpdate
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.bookkeeping import Bookkeeper
from backoffice.services.common.errors import AlreadyExistsError, BusinessRuleViolation
from backoffice.services.common.metrics import percentage
from backoffice.services.common.permissions import Principal
from backoffice.services.common.transitions import ensure_student_transition
from backoffice.services.core.counter_service import CounterService
from backoffice.utils.datetime_utils import AgeCalculator, DateTimeHelper, utcnow
from backoffice.utils.email import send_email

AGE_BUCKETS = ("under18", "18-25", "26-35", "36+")


class StudentService(BaseService[Student, StudentRepository]):
    """Student records and admissions."""

    resource_name = "Student"

    def __init__(self, db_session: Session):
        super().__init__(StudentRepository(db_session), db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.payments = PaymentRepository(db_session)
        self.counters = CounterService(db_session)
        self.bookkeeper = Bookkeeper(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_students(
        self,
        params: ListParams,
        status: Optional[StudentStatus] = None,
        admission_type: Optional[AdmissionType] = None,
        branch: Optional[str] = None,
        batch_id: Optional[UUID] = None,
        course_id: Optional[UUID] = None,
    ) -> ServiceResult[Page[Student]]:
        try:
            page = self.repository.find_filtered(
                filters={"status": status, "admission_type": admission_type, "branch": branch},
                batch_id=batch_id,
                course_id=course_id,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list students")

    def get_student(self, student_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """
        Student with the read projection of their enrollments.

        Returns:
            ServiceResult with {"student": Student, "enrollments": [...]}
        """
        try:
            student = self._get_or_raise(student_id)
            enrollments = [
                {
                    "id": str(enrollment.id),
                    "enrollmentId": enrollment.enrollment_id,
                    "courseId": str(enrollment.course_id),
                    "courseName": enrollment.course.name if enrollment.course else None,
                    "batchId": str(enrollment.batch_id) if enrollment.batch_id else None,
                    "status": enrollment.status.value,
                    "enrollmentDate": enrollment.enrollment_date.isoformat(),
                    "fees": enrollment.fees,
                    "progress": enrollment.progress_percentage,
                }
                for enrollment in self.enrollments.for_student(student_id)
            ]
            return ServiceResult.success({"student": student, "enrollments": enrollments})
        except Exception as e:
            return self._handle_exception(e, "get student", student_id)

    def get_fee_summary(self, student_id: UUID) -> ServiceResult[Dict[str, Any]]:
        try:
            student = self._get_or_raise(student_id)
            recent = self.payments.for_student(student_id)[:10]
            return ServiceResult.success(
                {
                    "student": {
                        "id": str(student.id),
                        "studentId": student.student_id,
                        "name": student.full_name,
                    },
                    "feeSummary": student.fee_summary,
                    "recentPayments": recent,
                    "paymentSchedule": list(student.payment_schedule or []),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get fee summary", student_id)

    def get_stats(self) -> ServiceResult[Dict[str, Any]]:
        """
        Student counts by status and admission type, a six-month admission
        trend and demographic breakdowns.
        """
        try:
            by_status = self.repository.count_by("status")
            by_admission = self.repository.count_by("admission_type")
            by_gender = {
                key: count for key, count in self.repository.count_by("gender").items() if key
            }

            since = DateTimeHelper.months_back(6)
            monthly: Dict[str, int] = {}
            age_distribution = {bucket: 0 for bucket in AGE_BUCKETS}
            for student in self.repository.get_multi(limit=0):
                admitted = DateTimeHelper.ensure_aware(student.admission_date)
                if admitted and admitted >= since:
                    key = DateTimeHelper.month_key(admitted)
                    monthly[key] = monthly.get(key, 0) + 1
                if student.date_of_birth:
                    age_distribution[AgeCalculator.age_bucket(student.date_of_birth)] += 1

            total = sum(by_status.values())
            active = by_status.get(StudentStatus.ACTIVE.value, 0)
            return ServiceResult.success(
                {
                    "summary": {
                        "totalStudents": total,
                        "activeStudents": active,
                        "inactiveStudents": total - active,
                        "activePercentage": percentage(active, total),
                    },
                    "byStatus": by_status,
                    "byAdmissionType": by_admission,
                    "monthlyTrend": [
                        {"month": month, "count": monthly[month]} for month in sorted(monthly)
                    ][-6:],
                    "demographics": {
                        "genderDistribution": by_gender,
                        "ageDistribution": age_distribution,
                    },
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get student stats")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_student(self, data: StudentCreate, actor: Principal) -> ServiceResult[Student]:
        """
        Admit a new student.

        Args:
            data: Personal, admission and fee details
            actor: Acting principal

        Returns:
            ServiceResult containing the created student
        """
        self._logger.info(f"Creating student {data.full_name}")
        try:
            with self.transaction():
                self._ensure_contact_unique(data.phone, data.email)

                values = data.column_values()
                if values.get("admission_date") is None:
                    values["admission_date"] = utcnow()
                student = Student(**values)
                student.student_id = self.counters.next_student_id()
                student.paid_amount = 0
                student.recompute_pending()
                student.stamp(actor.user_id, created=True)
                self.repository.create(student)

            self._log_operation("create student", student.id, {"student_code": student.student_id})
            send_email(
                student.email,
                "student-admission",
                {
                    "name": student.full_name,
                    "studentId": student.student_id,
                    "admissionDate": student.admission_date.date().isoformat(),
                },
            )
            return ServiceResult.success(student, message="Student created successfully")
        except Exception as e:
            return self._handle_exception(e, "create student", data.phone)

    def create_from_values(self, values: Dict[str, Any], actor: Principal) -> Student:
        """
        Admit a student from prepared column values inside the caller's
        transaction (used by lead conversion).
        """
        self._ensure_contact_unique(values["phone"], values.get("email"))
        student = Student(**values)
        student.student_id = self.counters.next_student_id()
        student.paid_amount = 0
        student.recompute_pending()
        student.stamp(actor.user_id, created=True)
        return self.repository.create(student)

    def update_student(self, student_id: UUID, data: StudentUpdate, actor: Principal) -> ServiceResult[Student]:
        try:
            with self.transaction():
                student = self._get_or_raise(student_id)
                changes = data.changes()

                if "phone" in changes and self.repository.phone_taken(changes["phone"], student_id):
                    raise AlreadyExistsError(
                        "Student", "phone", changes["phone"], "Student with this phone number already exists"
                    )
                if "email" in changes and self.repository.email_taken(str(changes["email"]), student_id):
                    raise AlreadyExistsError(
                        "Student", "email", changes["email"], "Student with this email already exists"
                    )
                if "status" in changes:
                    ensure_student_transition(student.status, changes["status"])

                self.repository.update(student, changes)
                student.recompute_pending()
                student.stamp(actor.user_id)

            return ServiceResult.success(student, message="Student updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update student", student_id)

    def delete_student(self, student_id: UUID) -> ServiceResult[bool]:
        return self.delete(student_id)

    def _validate_delete(self, student: Student) -> None:
        if self.enrollments.has_active_for_student(student.id):
            raise BusinessRuleViolation(
                "active_enrollments", "Cannot delete student with active enrollments"
            )

        # Dependent rows go with the student; batch occupancy and course
        # statistics are recomputed afterwards.
        course_ids = {enrollment.course_id for enrollment in self.enrollments.for_student(student.id)}
        batch_ids = self.bookkeeper.batches.batch_ids_for_student(student.id)
        for entry in self.bookkeeper.batches.roster_entries_for_student(student.id):
            self.db.delete(entry)
        self.bookkeeper.attendance.bulk_delete({"student_id": student.id})
        self.payments.bulk_delete({"student_id": student.id})
        self.enrollments.bulk_delete({"student_id": student.id})
        for batch_id in batch_ids:
            self.bookkeeper.batches.reconcile_occupancy(batch_id)
        for course_id in course_ids:
            self.bookkeeper.recompute_course_stats(course_id)

    def add_document(self, student_id: UUID, data: DocumentCreate, actor: Principal) -> ServiceResult[Dict[str, Any]]:
        try:
            with self.transaction():
                student = self._get_or_raise(student_id)
                document = {
                    "name": data.name,
                    "type": data.type,
                    "url": data.url,
                    "verified": data.verified,
                    "uploadedAt": utcnow().isoformat(),
                    "verifiedBy": str(actor.user_id) if data.verified and actor.is_admin else None,
                }
                student.documents = [*(student.documents or []), document]
                student.stamp(actor.user_id)

            return ServiceResult.success(document, message="Document uploaded successfully")
        except Exception as e:
            return self._handle_exception(e, "add student document", student_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_contact_unique(self, phone: str, email: Optional[str]) -> None:
        if self.repository.phone_taken(phone):
            raise AlreadyExistsError(
                "Student", "phone", phone, "Student with this phone number already exists"
            )
        if email and self.repository.email_taken(str(email)):
            raise AlreadyExistsError(
                "Student", "email", email, "Student with this email already exists"
            )

