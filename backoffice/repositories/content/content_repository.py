"""
Content repository.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.base.enums import ContentStatus
from backoffice.models.content.content import Content
from backoffice.repositories.base.base_repository import BaseRepository


class ContentRepository(BaseRepository[Content]):
    """Data access for content items."""

    search_columns = ("title", "description")

    def __init__(self, session: Session):
        super().__init__(session, Content)

    def published_for_courses(self, course_ids: List[UUID]) -> List[Content]:
        if not course_ids:
            return []
        stmt = (
            select(Content)
            .where(Content.course_id.in_(course_ids), Content.status == ContentStatus.PUBLISHED)
            .order_by(Content.created_at.desc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def filtered(self, stmt_filters: Optional[dict] = None, search: Optional[str] = None) -> List[Content]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), stmt_filters), search)
        return list(self.session.execute(stmt.order_by(Content.created_at.desc())).scalars().all())
