"""
Student repository.

Handles student queries including list filtering by batch and course
through the enrollments table.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.enrollment.enrollment import Enrollment
from backoffice.models.student.student import Student
from backoffice.repositories.base.base_repository import BaseRepository, Page


class StudentRepository(BaseRepository[Student]):
    """Data access for students."""

    search_columns = ("full_name", "student_id", "phone", "email")

    def __init__(self, session: Session):
        super().__init__(session, Student)

    def find_filtered(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,
        batch_id: Optional[UUID] = None,
        course_id: Optional[UUID] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[Student]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), filters), search)

        if batch_id or course_id:
            enrolled = select(Enrollment.student_id)
            if batch_id:
                enrolled = enrolled.where(Enrollment.batch_id == batch_id)
            if course_id:
                enrolled = enrolled.where(Enrollment.course_id == course_id)
            stmt = stmt.where(Student.id.in_(enrolled))

        return self.paginate(stmt, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def phone_taken(self, phone: str, exclude_id: Optional[UUID] = None) -> bool:
        return self.exists(exclude_id=exclude_id, phone=phone.strip())

    def email_taken(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        return self.exists(exclude_id=exclude_id, email=email.strip().lower())

    def created_between(self, start, end=None) -> List[Student]:
        stmt = select(Student).where(Student.created_at >= start)
        if end is not None:
            stmt = stmt.where(Student.created_at <= end)
        return list(self.session.execute(stmt).scalars().all())
