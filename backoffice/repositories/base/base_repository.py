from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.orm import Session

from backoffice.models.base import Base
from backoffice.utils.string_utils import to_snake_case

ModelType = TypeVar("ModelType", bound=Base)


@dataclass
class Page(Generic[ModelType]):
    """One page of results with the unpaginated total."""

    items: List[ModelType]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if not self.limit:
            return 1
        return (self.total + self.limit - 1) // self.limit


class BaseRepository(Generic[ModelType]):
    """
    Generic repository with common CRUD and query helpers.

    - Does not commit/rollback; caller manages transactions.
    """

    # Columns searched by the free-text `search` list parameter
    search_columns: Sequence[str] = ()

    def __init__(self, session: Session, model: Type[ModelType]):
        self.session = session
        self.model = model

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _base_select(self) -> Select:
        return select(self.model)

    def _apply_filters(
        self,
        stmt: Select,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Select:
        if not filters:
            return stmt

        for key, value in filters.items():
            if value is None:
                continue
            column = getattr(self.model, key, None)
            if column is None:
                continue

            if isinstance(value, (list, tuple, set)):
                stmt = stmt.where(column.in_(value))
            else:
                stmt = stmt.where(column == value)
        return stmt

    def _apply_search(self, stmt: Select, search: Optional[str]) -> Select:
        if not search or not self.search_columns:
            return stmt
        pattern = f"%{search.strip()}%"
        clauses = [getattr(self.model, name).ilike(pattern) for name in self.search_columns]
        return stmt.where(or_(*clauses))

    def _order_clause(self, sort_by: Optional[str], sort_order: str = "desc"):
        column = getattr(self.model, to_snake_case(sort_by), None) if sort_by else None
        if column is None:
            column = getattr(self.model, "created_at", None)
        if column is None:
            column = self.model.id
        return column.asc() if sort_order == "asc" else column.desc()

    # ------------------------------------------------------------------ #
    # Basic CRUD
    # ------------------------------------------------------------------ #
    def get(self, id_: UUID) -> Optional[ModelType]:
        return self.session.get(self.model, id_)

    def get_by_id(self, id_: UUID) -> Optional[ModelType]:
        return self.get(id_)

    def get_by(self, **criteria: Any) -> Optional[ModelType]:
        stmt = self._apply_filters(self._base_select(), criteria).limit(1)
        return self.session.execute(stmt).scalars().first()

    def exists(self, exclude_id: Optional[UUID] = None, **criteria: Any) -> bool:
        stmt = self._apply_filters(select(self.model.id), criteria)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return self.session.execute(stmt.limit(1)).first() is not None

    def get_multi(
        self,
        *,
        skip: int = 0,
        limit: int = 100,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[Iterable[Any]] = None,
    ) -> Sequence[ModelType]:
        stmt = self._base_select()
        stmt = self._apply_filters(stmt, filters)

        if order_by:
            stmt = stmt.order_by(*order_by)

        if skip:
            stmt = stmt.offset(skip)
        if limit:
            stmt = stmt.limit(limit)

        return self.session.execute(stmt).scalars().all()

    def find_between(
        self,
        column_name: str,
        start: Optional[Any] = None,
        end: Optional[Any] = None,
        filters: Optional[Dict[str, Any]] = None,
    ) -> List[ModelType]:
        """Rows whose date column falls in [start, end]; open bounds are skipped."""
        column = getattr(self.model, column_name)
        stmt = self._apply_filters(self._base_select(), filters)
        if start is not None:
            stmt = stmt.where(column >= start)
        if end is not None:
            stmt = stmt.where(column <= end)
        return list(self.session.execute(stmt.order_by(column)).scalars().all())

    def paginate(
        self,
        stmt: Select,
        *,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[ModelType]:
        """Count and slice an arbitrary select of this model."""
        total = self.session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()
        page = max(page, 1)
        stmt = stmt.order_by(self._order_clause(sort_by, sort_order))
        # limit=0 returns every row
        if limit:
            stmt = stmt.offset((page - 1) * limit).limit(limit)
        items = self.session.execute(stmt).scalars().all()
        return Page(items=list(items), total=total, page=page, limit=limit)

    def list_page(
        self,
        *,
        filters: Optional[Dict[str, Any]] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: Optional[str] = None,
        sort_order: str = "desc",
    ) -> Page[ModelType]:
        stmt = self._apply_search(self._apply_filters(self._base_select(), filters), search)
        return self.paginate(stmt, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = self._apply_filters(select(func.count(self.model.id)), filters)
        return self.session.execute(stmt).scalar_one()

    def count_by(self, column_name: str, filters: Optional[Dict[str, Any]] = None) -> Dict[Any, int]:
        """Group counts by a column value."""
        column = getattr(self.model, column_name)
        stmt = self._apply_filters(
            select(column, func.count(self.model.id)).group_by(column), filters
        )
        return {
            (key.value if hasattr(key, "value") else key): count
            for key, count in self.session.execute(stmt).all()
        }

    def create(self, obj_in: Dict[str, Any] | ModelType) -> ModelType:
        if isinstance(obj_in, self.model):
            db_obj = obj_in
        else:
            db_obj = self.model(**obj_in)
        self.session.add(db_obj)
        # flush to populate PK
        self.session.flush()
        return db_obj

    def update(
        self,
        db_obj: ModelType,
        obj_in: Dict[str, Any],
    ) -> ModelType:
        for field, value in obj_in.items():
            if hasattr(db_obj, field) and field != "id":
                setattr(db_obj, field, value)

        self.session.flush()
        return db_obj

    def delete(self, db_obj: ModelType) -> None:
        self.session.delete(db_obj)
        self.session.flush()

    # ------------------------------------------------------------------ #
    # Bulk helpers
    # ------------------------------------------------------------------ #
    def bulk_update(
        self,
        filters: Dict[str, Any],
        values: Dict[str, Any],
    ) -> int:
        stmt = update(self.model)
        for key, value in filters.items():
            column = getattr(self.model, key, None)
            if column is not None:
                stmt = stmt.where(column == value)
        stmt = stmt.values(**values)
        result = self.session.execute(stmt)
        self.session.flush()
        return result.rowcount or 0

    def bulk_delete(self, filters: Dict[str, Any]) -> int:
        stmt = delete(self.model)
        for key, value in filters.items():
            column = getattr(self.model, key, None)
            if column is not None:
                stmt = stmt.where(column == value)
        result = self.session.execute(stmt)
        self.session.flush()
        return result.rowcount or 0
