"""
Lead repository.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from backoffice.models.lead.lead import Lead
from backoffice.repositories.base.base_repository import BaseRepository, Page


class LeadRepository(BaseRepository[Lead]):
    """Data access for leads."""

    search_columns = ("full_name", "email", "phone", "lead_id", "notes")

    def __init__(self, session: Session):
        super().__init__(session, Lead)

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
    ) -> Page[Lead]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), filters), search)
        if start_date is not None:
            stmt = stmt.where(Lead.created_at >= start_date)
        if end_date is not None:
            stmt = stmt.where(Lead.created_at <= end_date)
        return self.paginate(stmt, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def phone_taken(self, phone: str, exclude_id: Optional[UUID] = None) -> bool:
        return self.exists(exclude_id=exclude_id, phone=phone.strip())

    def created_between(self, start: datetime, end: Optional[datetime] = None) -> List[Lead]:
        stmt = select(Lead).where(Lead.created_at >= start)
        if end is not None:
            stmt = stmt.where(Lead.created_at <= end)
        return list(self.session.execute(stmt).scalars().all())

    def all(self) -> List[Lead]:
        return list(self.session.execute(select(Lead)).scalars().all())
