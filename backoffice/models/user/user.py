"""
User account model.

Staff and student accounts with role, profile and per-user
permission overrides.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from backoffice.models.base.base_model import BaseModel
from backoffice.models.base.enums import UserRole, UserStatus, enum_type
from backoffice.models.base.mixins import AuditMixin, TimestampMixin


class User(BaseModel, TimestampMixin, AuditMixin):
    """
    Back-office user.

    Admin and employee accounts carry an EMP employee identifier.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Login name",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="Email address",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Password hash",
    )
    role: Mapped[UserRole] = mapped_column(
        enum_type(UserRole),
        nullable=False,
        default=UserRole.EMPLOYEE,
        index=True,
        comment="Access role",
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    designation: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    profile: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="Extended profile fields (avatar, address, ...)",
    )
    employee_id: Mapped[Optional[str]] = mapped_column(
        String(20),
        unique=True,
        nullable=True,
        comment="EMP identifier for admin/employee roles",
    )
    permissions: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Per-user module permission overrides",
    )
    status: Mapped[UserStatus] = mapped_column(
        enum_type(UserStatus),
        nullable=False,
        default=UserStatus.ACTIVE,
        index=True,
    )
    last_login: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @validates("email")
    def validate_email(self, key: str, value: str) -> str:
        return value.strip().lower() if value else value

    @validates("username")
    def validate_username(self, key: str, value: str) -> str:
        return value.strip() if value else value

    @property
    def full_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.username

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role})>"
