"""
Enrollment repository.

Includes the aggregation queries used to recompute course statistics.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.base.enums import EnrollmentStatus
from backoffice.models.enrollment.enrollment import Enrollment
from backoffice.models.student.student import Student
from backoffice.repositories.base.base_repository import BaseRepository, Page

OPEN_STATUSES = (EnrollmentStatus.PENDING, EnrollmentStatus.ACTIVE)


class EnrollmentRepository(BaseRepository[Enrollment]):
    """Data access for enrollments."""

    search_columns = ("enrollment_id", "remarks")

    def __init__(self, session: Session):
        super().__init__(session, Enrollment)

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
    ) -> Page[Enrollment]:
        stmt = self._apply_filters(self._base_select(), filters)
        if start_date is not None:
            stmt = stmt.where(Enrollment.enrollment_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Enrollment.enrollment_date <= end_date)
        if search:
            pattern = f"%{search.strip()}%"
            matching_students = select(Student.id).where(
                Student.full_name.ilike(pattern) | Student.student_id.ilike(pattern)
            )
            stmt = stmt.where(
                Enrollment.enrollment_id.ilike(pattern)
                | Enrollment.student_id.in_(matching_students)
            )
        return self.paginate(stmt, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def find_open(self, student_id: UUID, course_id: UUID) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
            Enrollment.status.in_(OPEN_STATUSES),
        )
        return self.session.execute(stmt).scalars().first()

    def find_pair(self, student_id: UUID, course_id: UUID) -> Optional[Enrollment]:
        return self.get_by(student_id=student_id, course_id=course_id)

    def active_in_batch(self, student_id: UUID, batch_id: UUID) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.batch_id == batch_id,
            Enrollment.status == EnrollmentStatus.ACTIVE,
        )
        return self.session.execute(stmt).scalars().first()

    def in_batch(self, student_id: UUID, batch_id: UUID) -> Optional[Enrollment]:
        """Enrollment placing the student in the batch, whatever its status."""
        stmt = (
            select(Enrollment)
            .where(Enrollment.student_id == student_id, Enrollment.batch_id == batch_id)
            .order_by(Enrollment.enrollment_date.desc())
        )
        return self.session.execute(stmt).scalars().first()

    def for_student(self, student_id: UUID, statuses: Optional[List[EnrollmentStatus]] = None) -> List[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.student_id == student_id)
        if statuses:
            stmt = stmt.where(Enrollment.status.in_(statuses))
        return list(
            self.session.execute(stmt.order_by(Enrollment.enrollment_date.desc())).scalars().all()
        )

    def for_course(self, course_id: UUID, statuses: Optional[List[EnrollmentStatus]] = None) -> List[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.course_id == course_id)
        if statuses:
            stmt = stmt.where(Enrollment.status.in_(statuses))
        return list(
            self.session.execute(stmt.order_by(Enrollment.enrollment_date.desc())).scalars().all()
        )

    def for_batch(self, batch_id: UUID, statuses: Optional[List[EnrollmentStatus]] = None) -> List[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.batch_id == batch_id)
        if statuses:
            stmt = stmt.where(Enrollment.status.in_(statuses))
        return list(self.session.execute(stmt).scalars().all())

    def status_counts(self, course_id: Optional[UUID] = None) -> Dict[str, int]:
        """Enrollment counts keyed by status value."""
        self.session.flush()
        filters = {"course_id": course_id} if course_id else None
        return self.count_by("status", filters)

    def has_active_for_student(self, student_id: UUID) -> bool:
        return self.exists(student_id=student_id, status=EnrollmentStatus.ACTIVE)

    def has_active_for_course(self, course_id: UUID) -> bool:
        return self.exists(course_id=course_id, status=EnrollmentStatus.ACTIVE)

    def recent(self, limit: int = 5) -> List[Enrollment]:
        stmt = select(Enrollment).order_by(Enrollment.enrollment_date.desc()).limit(limit)
        return list(self.session.execute(stmt).scalars().all())
