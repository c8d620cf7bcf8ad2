"""
User account schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field, field_validator

from backoffice.models.base.enums import UserRole, UserStatus
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
)

__all__ = [
    "ModulePermission",
    "UserCreate",
    "UserUpdate",
    "ProfileUpdate",
    "PermissionsUpdate",
    "StatusUpdate",
    "RoleUpdate",
    "PasswordReset",
    "UserResponse",
]

MODULE_NAMES = (
    "dashboard",
    "leads",
    "students",
    "courses",
    "enrollments",
    "payments",
    "attendance",
    "content",
    "users",
    "reports",
)


class ModulePermission(BaseSchema):
    """Per-user override for one module."""

    module: str
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False

    @field_validator("module")
    @classmethod
    def validate_module(cls, v: str) -> str:
        if v not in MODULE_NAMES:
            raise ValueError(f"Unknown module: {v}")
        return v


class UserCreate(BaseCreateSchema):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.EMPLOYEE
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    designation: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    profile: Dict[str, Any] = Field(default_factory=dict)
    permissions: List[ModulePermission] = Field(default_factory=list)
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(BaseUpdateSchema):
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    designation: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    profile: Optional[Dict[str, Any]] = None


class ProfileUpdate(BaseUpdateSchema):
    """Fields a user may change on their own account."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    profile: Optional[Dict[str, Any]] = None


class PermissionsUpdate(BaseSchema):
    permissions: List[ModulePermission]

    def as_overrides(self) -> List[Dict[str, Any]]:
        return [entry.model_dump(by_alias=True) for entry in self.permissions]


class StatusUpdate(BaseSchema):
    status: UserStatus


class RoleUpdate(BaseSchema):
    role: UserRole


class PasswordReset(BaseSchema):
    new_password: str = Field(..., min_length=6, max_length=128)


class UserResponse(BaseResponseSchema):
    username: str
    email: str
    role: UserRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    profile: Dict[str, Any] = Field(default_factory=dict)
    employee_id: Optional[str] = None
    permissions: List[Dict[str, Any]] = Field(default_factory=list)
    status: UserStatus
    last_login: Optional[datetime] = None
