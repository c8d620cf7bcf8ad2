"""
Batch session (one scheduled class meeting).
"""

from datetime import date as Date
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, Boolean, Date as SQLDate, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import SessionStatus, enum_type
from backoffice.models.base.mixins import TimestampMixin


class BatchSession(BaseModel, TimestampMixin):
    """Scheduled session of a batch."""

    __tablename__ = "batch_sessions"

    session_id: Mapped[str] = mapped_column(
        String(30),
        unique=True,
        nullable=False,
        index=True,
        comment="SESS-YYYYMMDD-NNNN",
    )
    batch_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("batches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructor_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    start_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    status: Mapped[SessionStatus] = mapped_column(
        enum_type(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED
    )
    attendance_taken: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attendance_summary: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    resources: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
