"""
SQLAlchemy model mixins for reusable functionality.

Provides timestamp and audit envelope fields shared by every entity.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from backoffice.utils.datetime_utils import utcnow


class TimestampMixin:
    """
    Mixin for automatic timestamp tracking.

    Provides created_at and updated_at fields with
    automatic timezone-aware timestamp management.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
        comment="Record creation timestamp (UTC)"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        comment="Record last update timestamp (UTC)"
    )


class AuditMixin:
    """
    Mixin for audit trail tracking.

    Records which user created and last modified the row.
    """

    @declared_attr
    def created_by_id(cls) -> Mapped[Optional[UUID]]:
        return mapped_column(
            Uuid,
            ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            comment="User who created the record"
        )

    @declared_attr
    def updated_by_id(cls) -> Mapped[Optional[UUID]]:
        return mapped_column(
            Uuid,
            ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            comment="User who last updated the record"
        )

    def stamp(self, actor_id: Optional[UUID], created: bool = False) -> None:
        """Record the acting user on the audit envelope."""
        if created:
            self.created_by_id = actor_id
        self.updated_by_id = actor_id
