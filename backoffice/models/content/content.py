"""
Learning content model.

Documents, videos, links, assignments and quizzes attached to a course
(and optionally a batch), with access control and submissions.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import AccessType, ContentStatus, ContentType, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin


class Content(BaseModel, TimestampMixin, AuditMixin):
    """
    Course content item.

    Access:
        public      - anyone
        private     - allowed users and students only
        restricted  - allowed users, students and members of allowed batches
    """

    __tablename__ = "contents"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[ContentType] = mapped_column(
        enum_type(ContentType), nullable=False, index=True
    )
    course_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    batch_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    module: Mapped[Dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, comment="moduleId, title, moduleNumber"
    )
    file: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assignment_details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    quiz_details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    access_type: Mapped[AccessType] = mapped_column(
        enum_type(AccessType), nullable=False, default=AccessType.PUBLIC
    )
    allowed_users: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    allowed_students: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    allowed_batches: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[ContentStatus] = mapped_column(
        enum_type(ContentStatus), nullable=False, default=ContentStatus.DRAFT, index=True
    )
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downloads: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submissions_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    avg_score: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=Decimal("0"))
    submissions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "views": self.views or 0,
            "downloads": self.downloads or 0,
            "submissions": self.submissions_count or 0,
            "avgScore": float(self.avg_score or 0),
        }

    def __repr__(self) -> str:
        return f"<Content(id={self.id}, title={self.title}, type={self.type})>"
