"""
Attendance repository.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.attendance.attendance import Attendance
from backoffice.models.student.student import Student
from backoffice.repositories.base.base_repository import BaseRepository, Page


class AttendanceRepository(BaseRepository[Attendance]):
    """Data access for attendance marks."""

    def __init__(self, session: Session):
        super().__init__(session, Attendance)

    def _range_select(
        self,
        filters: Optional[Dict[str, Any]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
    ):
        stmt = self._apply_filters(self._base_select(), filters)
        if start_date is not None:
            stmt = stmt.where(Attendance.date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Attendance.date <= end_date)
        if search:
            pattern = f"%{search.strip()}%"
            matching_students = select(Student.id).where(
                Student.full_name.ilike(pattern) | Student.student_id.ilike(pattern)
            )
            stmt = stmt.where(Attendance.student_id.in_(matching_students))
        return stmt

    def find_filtered(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[Attendance]:
        stmt = self._range_select(filters, start_date, end_date, search)
        return self.paginate(
            stmt, page=page, limit=limit, sort_by=sort_by or "date", sort_order=sort_order
        )

    def find_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Attendance]:
        stmt = self._range_select(filters, start_date, end_date).order_by(Attendance.date)
        return list(self.session.execute(stmt).scalars().all())

    def find_mark(self, student_id: UUID, batch_id: UUID, on: date) -> Optional[Attendance]:
        return self.get_by(student_id=student_id, batch_id=batch_id, date=on)

    def statuses(self, student_id: UUID, batch_id: Optional[UUID] = None) -> List[str]:
        self.session.flush()
        stmt = select(Attendance.status).where(Attendance.student_id == student_id)
        if batch_id is not None:
            stmt = stmt.where(Attendance.batch_id == batch_id)
        return [status.value for status in self.session.execute(stmt).scalars().all()]
