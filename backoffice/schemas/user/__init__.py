from .user import (
    ModulePermission,
    PasswordReset,
    PermissionsUpdate,
    ProfileUpdate,
    RoleUpdate,
    StatusUpdate,
    UserCreate,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "ModulePermission",
    "PasswordReset",
    "PermissionsUpdate",
    "ProfileUpdate",
    "RoleUpdate",
    "StatusUpdate",
    "UserCreate",
    "UserResponse",
    "UserUpdate",
]
