"""
Course repository.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.models.course.course import Course
from backoffice.repositories.base.base_repository import BaseRepository, Page


class CourseRepository(BaseRepository[Course]):
    """Data access for courses."""

    search_columns = ("name", "course_code", "description", "category")

    def __init__(self, session: Session):
        super().__init__(session, Course)

    def find_filtered(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,
        min_fee: Optional[Decimal] = None,
        max_fee: Optional[Decimal] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[Course]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), filters), search)
        if min_fee is not None:
            stmt = stmt.where(Course.regular_fee >= min_fee)
        if max_fee is not None:
            stmt = stmt.where(Course.regular_fee <= max_fee)
        return self.paginate(stmt, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def category_summary(self) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Course.category,
                func.count(Course.id),
                func.sum(Course.total_enrolled),
                func.avg(Course.regular_fee),
            )
            .group_by(Course.category)
            .order_by(func.count(Course.id).desc())
        )
        return [
            {
                "category": category,
                "count": count,
                "totalEnrolled": int(enrolled or 0),
                "avgFee": round(float(avg_fee or 0), 2),
            }
            for category, count, enrolled, avg_fee in self.session.execute(stmt).all()
        ]
