"""
User repository.
"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from backoffice.models.user.user import User
from backoffice.repositories.base.base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Data access for user accounts."""

    search_columns = ("username", "email", "first_name", "last_name", "employee_id")

    def __init__(self, session: Session):
        super().__init__(session, User)

    def find_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        stmt = select(User).where(
            or_(User.username == username, User.email == email.strip().lower())
        )
        return self.session.execute(stmt.limit(1)).scalars().first()

    def recent(self, limit: int = 5):
        stmt = select(User).order_by(User.created_at.desc()).limit(limit)
        return self.session.execute(stmt).scalars().all()
