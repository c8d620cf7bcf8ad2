"""
Batch repository.

Seat reservation is a single conditional UPDATE so that concurrent
requests can never push occupancy past capacity. Releases recount
occupancy from the roster.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from backoffice.models.base.enums import BatchStatus, RosterStatus
from backoffice.models.batch.batch import Batch
from backoffice.models.batch.batch_session import BatchSession
from backoffice.models.batch.batch_student import BatchStudent
from backoffice.repositories.base.base_repository import BaseRepository, Page


class BatchRepository(BaseRepository[Batch]):
    """Data access for batches, their rosters and sessions."""

    search_columns = ("name", "batch_id", "description")

    def __init__(self, session: Session):
        super().__init__(session, Batch)

    # ------------------------------------------------------------------ #
    # Occupancy
    # ------------------------------------------------------------------ #
    def try_reserve_seat(self, batch_id: UUID) -> bool:
        """Atomically take one seat; False when the batch is full."""
        self.session.flush()
        stmt = (
            update(Batch)
            .where(Batch.id == batch_id, Batch.current_students < Batch.max_students)
            .values(current_students=Batch.current_students + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self._expire_occupancy(batch_id)
        return (result.rowcount or 0) == 1

    def _expire_occupancy(self, batch_id: UUID) -> None:
        loaded = self.session.identity_map.get(self.session.identity_key(Batch, batch_id))
        if loaded is not None:
            self.session.expire(loaded, ["current_students"])

    def active_roster_count(self, batch_id: UUID) -> int:
        stmt = select(func.count(BatchStudent.id)).where(
            BatchStudent.batch_id == batch_id,
            BatchStudent.status == RosterStatus.ACTIVE,
        )
        return self.session.execute(stmt).scalar_one()

    def reconcile_occupancy(self, batch_id: UUID) -> int:
        """Recount occupancy from active roster rows."""
        self.session.flush()
        count = self.active_roster_count(batch_id)
        batch = self.get(batch_id)
        if batch is not None:
            batch.current_students = count
            self.session.flush()
        return count

    # ------------------------------------------------------------------ #
    # Roster
    # ------------------------------------------------------------------ #
    def get_roster_entry(self, batch_id: UUID, student_id: UUID) -> Optional[BatchStudent]:
        stmt = select(BatchStudent).where(
            BatchStudent.batch_id == batch_id, BatchStudent.student_id == student_id
        )
        return self.session.execute(stmt).scalars().first()

    def roster(self, batch_id: UUID, status: Optional[RosterStatus] = None) -> List[BatchStudent]:
        stmt = select(BatchStudent).where(BatchStudent.batch_id == batch_id)
        if status is not None:
            stmt = stmt.where(BatchStudent.status == status)
        stmt = stmt.order_by(BatchStudent.enrollment_date)
        return list(self.session.execute(stmt).scalars().all())

    def add_roster_entry(self, batch_id: UUID, student_id: UUID) -> BatchStudent:
        entry = BatchStudent(batch_id=batch_id, student_id=student_id, status=RosterStatus.ACTIVE)
        self.session.add(entry)
        self.session.flush()
        return entry

    def roster_entries_for_student(self, student_id: UUID) -> List[BatchStudent]:
        stmt = select(BatchStudent).where(BatchStudent.student_id == student_id)
        return list(self.session.execute(stmt).scalars().all())

    def batch_ids_for_student(self, student_id: UUID) -> List[UUID]:
        stmt = select(BatchStudent.batch_id).where(
            BatchStudent.student_id == student_id,
            BatchStudent.status == RosterStatus.ACTIVE,
        )
        return list(self.session.execute(stmt).scalars().all())

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
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
        sort_order: str = "asc",
    ) -> Page[Batch]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), filters), search)
        if start_date is not None:
            stmt = stmt.where(Batch.start_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(Batch.start_date <= end_date)
        return self.paginate(
            stmt, page=page, limit=limit, sort_by=sort_by or "start_date", sort_order=sort_order
        )

    def for_course(self, course_id: UUID, statuses: Optional[List[BatchStatus]] = None) -> List[Batch]:
        stmt = select(Batch).where(Batch.course_id == course_id)
        if statuses:
            stmt = stmt.where(Batch.status.in_(statuses))
        return list(self.session.execute(stmt.order_by(Batch.start_date)).scalars().all())

    def upcoming(self, limit: int = 10) -> List[Batch]:
        stmt = (
            select(Batch)
            .where(Batch.status == BatchStatus.UPCOMING, Batch.start_date >= date.today())
            .order_by(Batch.start_date)
        )
        if limit:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())

    def stats_by_status(self) -> Dict[str, Dict[str, int]]:
        stmt = select(
            Batch.status,
            func.count(Batch.id),
            func.coalesce(func.sum(Batch.current_students), 0),
            func.coalesce(func.sum(Batch.max_students), 0),
        ).group_by(Batch.status)
        return {
            status.value: {"count": count, "students": int(students), "capacity": int(capacity)}
            for status, count, students, capacity in self.session.execute(stmt).all()
        }

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #
    def add_session(self, session_obj: BatchSession) -> BatchSession:
        self.session.add(session_obj)
        self.session.flush()
        return session_obj

    def get_session(self, batch_id: UUID, session_id: UUID) -> Optional[BatchSession]:
        stmt = select(BatchSession).where(
            BatchSession.batch_id == batch_id, BatchSession.id == session_id
        )
        return self.session.execute(stmt).scalars().first()

    def sessions(self, batch_id: UUID) -> List[BatchSession]:
        stmt = select(BatchSession).where(BatchSession.batch_id == batch_id).order_by(
            BatchSession.date
        )
        return list(self.session.execute(stmt).scalars().all())
