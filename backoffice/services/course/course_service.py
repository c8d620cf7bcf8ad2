"""
Course service: catalogue management and course-level reporting.

Handles:
- Course CRUD with generated course codes
- Active courses with open batches and category summary
- Course statistics and enrollment listing
- Student reviews and average rating
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.base.enums import BatchStatus, CourseStatus, EnrollmentStatus
from backoffice.models.course.course import Course
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.course import CourseCreate, CourseUpdate, ReviewCreate
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.errors import (
    BusinessRuleViolation,
    ValidationError,
)
from backoffice.services.common.metrics import mean, percentage, round_half_up
from backoffice.services.common.permissions import PermissionDenied, Principal
from backoffice.services.core.counter_service import CounterService
from backoffice.utils.datetime_utils import utcnow

REVIEWABLE_STATUSES = [EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED]


class CourseService(BaseService[Course, CourseRepository]):
    """Course catalogue."""

    resource_name = "Course"

    def __init__(self, db_session: Session):
        super().__init__(CourseRepository(db_session), db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.counters = CounterService(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_courses(
        self,
        params: ListParams,
        category: Optional[str] = None,
        status: Optional[CourseStatus] = None,
        min_fee: Optional[Decimal] = None,
        max_fee: Optional[Decimal] = None,
    ) -> ServiceResult[Page[Course]]:
        try:
            page = self.repository.find_filtered(
                filters={"category": category, "status": status},
                min_fee=min_fee,
                max_fee=max_fee,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list courses")

    def get_course(self, course_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """
        Course with batch counts and its five most recent enrollments.
        """
        try:
            course = self._get_or_raise(course_id)
            statuses = [batch.status for batch in course.batches]
            recent = self.enrollments.for_course(course_id)[:5]
            return ServiceResult.success(
                {
                    "course": course,
                    "stats": {
                        "enrolledStudents": course.active_enrollments or 0,
                        "activeBatches": statuses.count(BatchStatus.ONGOING),
                        "upcomingBatches": statuses.count(BatchStatus.UPCOMING),
                    },
                    "recentEnrollments": [
                        {
                            "id": str(enrollment.id),
                            "enrollmentId": enrollment.enrollment_id,
                            "studentId": str(enrollment.student_id),
                            "studentName": enrollment.student.full_name if enrollment.student else None,
                            "status": enrollment.status.value,
                            "enrollmentDate": enrollment.enrollment_date.isoformat(),
                        }
                        for enrollment in recent
                    ],
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get course", course_id)

    def active_courses(self) -> ServiceResult[List[Course]]:
        """Active courses, most enrolled first; open batches come with each."""
        try:
            courses = self.repository.get_multi(
                limit=0,
                filters={"status": CourseStatus.ACTIVE},
                order_by=[Course.total_enrolled.desc()],
            )
            return ServiceResult.success(list(courses))
        except Exception as e:
            return self._handle_exception(e, "list active courses")

    def categories(self) -> ServiceResult[List[Dict[str, Any]]]:
        try:
            summary = self.repository.category_summary()
            ratings: Dict[str, List[float]] = {}
            for course in self.repository.get_multi(limit=0):
                if course.rating_count:
                    ratings.setdefault(course.category, []).append(float(course.rating_average))
            for row in summary:
                row["averageRating"] = round_half_up(mean(ratings.get(row["category"], [])), 1)
            return ServiceResult.success(summary)
        except Exception as e:
            return self._handle_exception(e, "list course categories")

    def get_stats(self, course_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """
        Enrollment, payment, attendance, performance and batch figures
        for one course.
        """
        try:
            course = self._get_or_raise(course_id)
            enrollments = self.enrollments.for_course(course_id)

            total_fees = sum((Decimal(e.fee_total or 0) for e in enrollments), Decimal("0"))
            total_paid = sum((Decimal(e.fee_paid or 0) for e in enrollments), Decimal("0"))
            payments = None
            if enrollments:
                payments = {
                    "totalFees": float(total_fees),
                    "totalPaid": float(total_paid),
                    "totalPending": float(total_fees - total_paid),
                    "collectionRate": percentage(total_paid, total_fees),
                    "averageFeePerStudent": round_half_up(total_fees / len(enrollments), 2),
                }

            attendance: Dict[str, int] = {}
            for enrollment in enrollments:
                if enrollment.status != EnrollmentStatus.ACTIVE:
                    continue
                for entry in enrollment.attendance or []:
                    key = entry.get("status")
                    attendance[key] = attendance.get(key, 0) + 1

            scores = [
                float(e.grades["total"])
                for e in enrollments
                if (e.grades or {}).get("total") and float(e.grades["total"]) > 0
            ]
            performance = None
            if scores:
                performance = {
                    "averageScore": round_half_up(mean(scores), 2),
                    "maxScore": max(scores),
                    "minScore": min(scores),
                    "studentCount": len(scores),
                }

            batch_statuses = [batch.status for batch in course.batches]
            return ServiceResult.success(
                {
                    "course": {"id": str(course.id), "courseCode": course.course_code, "name": course.name},
                    "stats": {
                        "enrollments": self.enrollments.status_counts(course_id),
                        "payments": payments,
                        "attendance": attendance,
                        "performance": performance,
                        "batches": {
                            "total": len(batch_statuses),
                            **{status.value: batch_statuses.count(status) for status in BatchStatus},
                        },
                    },
                    "generatedAt": utcnow().isoformat(),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get course stats", course_id)

    def course_enrollments(
        self,
        course_id: UUID,
        status: Optional[EnrollmentStatus] = None,
        batch_id: Optional[UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ServiceResult[Dict[str, Any]]:
        """Enrollments of a course grouped by batch."""
        try:
            course = self._get_or_raise(course_id)
            page = self.enrollments.find_filtered(
                filters={"course_id": course_id, "status": status, "batch_id": batch_id},
                start_date=start_date,
                end_date=end_date,
                limit=0,
                sort_by="enrollment_date",
            )

            grouped: Dict[str, Dict[str, Any]] = {}
            by_status: Dict[str, int] = {}
            for enrollment in page.items:
                key = str(enrollment.batch_id) if enrollment.batch_id else "no_batch"
                group = grouped.setdefault(
                    key,
                    {
                        "batch": (
                            {"id": key, "batchId": enrollment.batch.batch_id, "name": enrollment.batch.name}
                            if enrollment.batch
                            else {"batchId": "No Batch", "name": "No Batch Assigned"}
                        ),
                        "enrollments": [],
                        "summary": {"total": 0, "active": 0, "completed": 0, "dropped": 0},
                    },
                )
                group["enrollments"].append(enrollment)
                group["summary"]["total"] += 1
                status_value = enrollment.status.value
                if status_value in group["summary"]:
                    group["summary"][status_value] += 1
                by_status[status_value] = by_status.get(status_value, 0) + 1

            return ServiceResult.success(
                {
                    "course": course,
                    "enrollments": page.items,
                    "enrollmentsByBatch": list(grouped.values()),
                    "summary": {"total": page.total, "byStatus": by_status},
                }
            )
        except Exception as e:
            return self._handle_exception(e, "list course enrollments", course_id)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_course(self, data: CourseCreate, actor: Principal) -> ServiceResult[Course]:
        self._logger.info(f"Creating course {data.name}")
        try:
            with self.transaction():
                course = Course(**data.column_values())
                course.course_code = self.counters.next_course_code(data.name)
                course.stamp(actor.user_id, created=True)
                self.repository.create(course)

            self._log_operation("create course", course.id, {"course_code": course.course_code})
            return ServiceResult.success(course, message="Course created successfully")
        except Exception as e:
            return self._handle_exception(e, "create course", data.name)

    def update_course(self, course_id: UUID, data: CourseUpdate, actor: Principal) -> ServiceResult[Course]:
        try:
            with self.transaction():
                course = self._get_or_raise(course_id)
                self.repository.update(course, data.changes())
                course.stamp(actor.user_id)

            return ServiceResult.success(course, message="Course updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update course", course_id)

    def delete_course(self, course_id: UUID) -> ServiceResult[bool]:
        return self.delete(course_id)

    def _validate_delete(self, course: Course) -> None:
        if self.enrollments.has_active_for_course(course.id):
            raise BusinessRuleViolation(
                "active_enrollments", "Cannot delete course with active enrollments"
            )

    def add_review(
        self, course_id: UUID, data: ReviewCreate, actor: Principal
    ) -> ServiceResult[Dict[str, Any]]:
        """
        Add a student review and recompute the average rating.

        The reviewer must hold an active or completed enrollment in the
        course and may review it only once.
        """
        try:
            with self.transaction():
                course = self._get_or_raise(course_id)
                student_id = data.student_id or actor.metadata.get("student_id")
                if student_id is None:
                    raise ValidationError("studentId is required", field="studentId")

                enrolled = self.enrollments.for_student(student_id, REVIEWABLE_STATUSES)
                if not any(enrollment.course_id == course.id for enrollment in enrolled):
                    raise PermissionDenied(
                        "You must be enrolled in this course to add a review",
                        user_id=actor.user_id,
                        role=actor.role,
                    )
                if any(review.get("student") == str(student_id) for review in course.reviews or []):
                    raise ValidationError("You have already reviewed this course", field="studentId")

                review = {
                    "student": str(student_id),
                    "rating": data.rating,
                    "comment": data.comment,
                    "date": utcnow().isoformat(),
                }
                reviews = [*(course.reviews or []), review]
                course.reviews = reviews
                course.rating_count = len(reviews)
                course.rating_average = Decimal(
                    str(round_half_up(mean(item["rating"] for item in reviews), 1))
                )
                course.stamp(actor.user_id)

            return ServiceResult.success(
                {"review": review, "newAverage": float(course.rating_average)},
                message="Review added successfully",
            )
        except Exception as e:
            return self._handle_exception(e, "add course review", course_id)

