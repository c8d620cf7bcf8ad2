"""
Batch service: scheduling, rosters and sessions.

Handles:
- Batch CRUD with generated batch ids
- Roster add/remove backed by atomic seat reservation
- Session calendar
- Occupancy statistics and upcoming batches
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.models.base.enums import BatchStatus
from backoffice.models.batch.batch import Batch
from backoffice.models.batch.batch_session import BatchSession
from backoffice.models.batch.batch_student import BatchStudent
from backoffice.repositories.attendance.attendance_repository import AttendanceRepository
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.batch.batch_repository import BatchRepository
from backoffice.repositories.course.course_repository import CourseRepository
from backoffice.repositories.enrollment.enrollment_repository import EnrollmentRepository
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.batch import BatchCreate, BatchUpdate, SessionCreate
from backoffice.schemas.common.pagination import ListParams
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.bookkeeping import Bookkeeper
from backoffice.services.common.errors import (
    BusinessRuleViolation,
    NotFoundError,
    ValidationError,
)
from backoffice.services.common.metrics import percentage
from backoffice.services.common.permissions import PermissionDenied, Principal
from backoffice.services.core.counter_service import CounterService


class BatchService(BaseService[Batch, BatchRepository]):
    """Batches of courses."""

    resource_name = "Batch"

    def __init__(self, db_session: Session):
        super().__init__(BatchRepository(db_session), db_session)
        self.courses = CourseRepository(db_session)
        self.students = StudentRepository(db_session)
        self.enrollments = EnrollmentRepository(db_session)
        self.attendance = AttendanceRepository(db_session)
        self.counters = CounterService(db_session)
        self.bookkeeper = Bookkeeper(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_batches(
        self,
        params: ListParams,
        course_id: Optional[UUID] = None,
        instructor_id: Optional[UUID] = None,
        status: Optional[BatchStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> ServiceResult[Page[Batch]]:
        try:
            page = self.repository.find_filtered(
                filters={"course_id": course_id, "instructor_id": instructor_id, "status": status},
                start_date=start_date,
                end_date=end_date,
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list batches")

    def get_batch(self, batch_id: UUID) -> ServiceResult[Dict[str, Any]]:
        """Batch with its course, roster and session calendar."""
        try:
            batch = self._get_or_raise(batch_id)
            return ServiceResult.success(
                {
                    "batch": batch,
                    "course": {
                        "id": str(batch.course_id),
                        "courseCode": batch.course.course_code,
                        "name": batch.course.name,
                    },
                    "students": self.repository.roster(batch_id),
                    "sessions": self.repository.sessions(batch_id),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get batch", batch_id)

    def list_students(self, batch_id: UUID) -> ServiceResult[Dict[str, Any]]:
        try:
            batch = self._get_or_raise(batch_id)
            return ServiceResult.success(
                {
                    "batch": {"id": str(batch.id), "batchId": batch.batch_id, "name": batch.name},
                    "students": self.repository.roster(batch_id),
                }
            )
        except Exception as e:
            return self._handle_exception(e, "list batch students", batch_id)

    def upcoming(self) -> ServiceResult[List[Batch]]:
        try:
            return ServiceResult.success(self.repository.upcoming(limit=10))
        except Exception as e:
            return self._handle_exception(e, "list upcoming batches")

    def get_stats(self) -> ServiceResult[Dict[str, Any]]:
        try:
            by_status = self.repository.stats_by_status()
            for figures in by_status.values():
                figures["utilization"] = percentage(figures["students"], figures["capacity"])

            return ServiceResult.success(
                {
                    "totalBatches": sum(item["count"] for item in by_status.values()),
                    "totalStudents": sum(item["students"] for item in by_status.values()),
                    "upcomingBatches": len(self.repository.upcoming(limit=0)),
                    "ongoingBatches": by_status.get(BatchStatus.ONGOING.value, {}).get("count", 0),
                    "byStatus": by_status,
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get batch stats")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_batch(self, data: BatchCreate, actor: Principal) -> ServiceResult[Batch]:
        """
        Schedule a batch for a course.

        Args:
            data: Batch fields including the course id
            actor: Acting principal

        Returns:
            ServiceResult containing the created batch
        """
        self._logger.info(f"Creating batch {data.name}", extra={"course_id": str(data.course_id)})
        try:
            with self.transaction():
                course = self._get_or_raise(data.course_id, self.courses, "Course")
                batch = Batch(**data.column_values())
                batch.batch_id = self.counters.next_batch_id(course.course_code)
                batch.current_students = 0
                batch.stamp(actor.user_id, created=True)
                self.repository.create(batch)

            self._log_operation("create batch", batch.id, {"batch_code": batch.batch_id})
            return ServiceResult.success(batch, message="Batch created successfully")
        except Exception as e:
            return self._handle_exception(e, "create batch", data.name)

    def update_batch(self, batch_id: UUID, data: BatchUpdate, actor: Principal) -> ServiceResult[Batch]:
        try:
            with self.transaction():
                batch = self._get_or_raise(batch_id)
                if batch.status == BatchStatus.COMPLETED and not actor.is_admin:
                    raise PermissionDenied(
                        "Cannot update completed batch", user_id=actor.user_id, role=actor.role
                    )

                changes = data.changes()
                if changes.get("max_students") is not None and changes["max_students"] < batch.current_students:
                    raise ValidationError(
                        "Max students cannot be less than current students", field="maxStudents"
                    )
                start = changes.get("start_date", batch.start_date)
                end = changes.get("end_date", batch.end_date)
                if end < start:
                    raise ValidationError("End date must be on or after start date", field="endDate")

                self.repository.update(batch, changes)
                batch.stamp(actor.user_id)

            return ServiceResult.success(batch, message="Batch updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update batch", batch_id)

    def delete_batch(self, batch_id: UUID) -> ServiceResult[bool]:
        return self.delete(batch_id)

    def _validate_delete(self, batch: Batch) -> None:
        self.repository.reconcile_occupancy(batch.id)
        if batch.current_students > 0:
            raise BusinessRuleViolation(
                "batch_has_students", "Cannot delete batch with enrolled students"
            )

        # Rows owned by the batch go with it; enrollments only lose the link.
        self.attendance.bulk_delete({"batch_id": batch.id})
        self.db.query(BatchStudent).filter(BatchStudent.batch_id == batch.id).delete()
        self.db.query(BatchSession).filter(BatchSession.batch_id == batch.id).delete()
        self.enrollments.bulk_update({"batch_id": batch.id}, {"batch_id": None})

    def add_student(self, batch_id: UUID, student_id: UUID, actor: Principal) -> ServiceResult[BatchStudent]:
        """
        Put a student on the roster.

        Raises (as failures):
            NotFound: batch or student missing
            BadRequest: batch full or student already on the roster
        """
        try:
            with self.transaction():
                batch = self._get_or_raise(batch_id)
                self._get_or_raise(student_id, self.students, "Student")
                entry = self.bookkeeper.reserve_seat(batch, student_id)
                batch.stamp(actor.user_id)

            self._log_operation("add student to batch", batch_id, {"student_id": str(student_id)})
            return ServiceResult.success(entry, message="Student added to batch successfully")
        except Exception as e:
            return self._handle_exception(e, "add student to batch", batch_id)

    def remove_student(self, batch_id: UUID, student_id: UUID, actor: Principal) -> ServiceResult[bool]:
        try:
            with self.transaction():
                batch = self._get_or_raise(batch_id)
                if self.repository.get_roster_entry(batch_id, student_id) is None:
                    raise NotFoundError("Student", student_id, message="Student not found in this batch")
                self.bookkeeper.release_seat(batch_id, student_id, remove=True)
                batch.stamp(actor.user_id)

            self._log_operation("remove student from batch", batch_id, {"student_id": str(student_id)})
            return ServiceResult.success(True, message="Student removed from batch successfully")
        except Exception as e:
            return self._handle_exception(e, "remove student from batch", batch_id)

    def add_session(self, batch_id: UUID, data: SessionCreate, actor: Principal) -> ServiceResult[BatchSession]:
        try:
            with self.transaction():
                batch = self._get_or_raise(batch_id)
                values = data.column_values()
                if values.get("instructor_id") is None:
                    values["instructor_id"] = batch.instructor_id
                session = BatchSession(batch_id=batch.id, **values)
                session.session_id = self.counters.next_session_id(data.date)
                self.repository.add_session(session)
                batch.stamp(actor.user_id)

            self._log_operation("add batch session", batch_id, {"session_code": session.session_id})
            return ServiceResult.success(session, message="Session added successfully")
        except Exception as e:
            return self._handle_exception(e, "add batch session", batch_id)

