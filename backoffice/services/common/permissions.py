"""
Permission and authorization utilities.

A single declarative table maps role -> module -> allowed actions.
Per-user overrides stored on the user account are consulted first.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple
from uuid import UUID

from backoffice.models.base.enums import UserRole

from .errors import AuthorizationError

MODULES: Tuple[str, ...] = (
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

ACTIONS: Tuple[str, ...] = ("view", "create", "edit", "delete")

# Override records use canView/canCreate/... keys
ACTION_FLAGS: Dict[str, str] = {
    "view": "canView",
    "create": "canCreate",
    "edit": "canEdit",
    "delete": "canDelete",
}

VIEW = frozenset({"view"})
VIEW_CREATE = frozenset({"view", "create"})
VIEW_CREATE_EDIT = frozenset({"view", "create", "edit"})
ALL = frozenset(ACTIONS)
NONE: FrozenSet[str] = frozenset()

DEFAULT_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "dashboard": VIEW,
    "leads": VIEW_CREATE_EDIT,
    "students": VIEW_CREATE_EDIT,
    "courses": VIEW,
    "enrollments": VIEW_CREATE_EDIT,
    "payments": VIEW_CREATE,
    "attendance": VIEW_CREATE_EDIT,
    "content": VIEW,
    "users": NONE,
    "reports": VIEW,
}

PERMISSION_TABLE: Dict[UserRole, Dict[str, FrozenSet[str]]] = {
    UserRole.ADMIN: {module: ALL for module in MODULES},
    UserRole.EMPLOYEE: dict(DEFAULT_PERMISSIONS),
    UserRole.TRAINER: {
        **DEFAULT_PERMISSIONS,
        "students": VIEW_CREATE_EDIT,
        "attendance": VIEW_CREATE_EDIT,
        "content": VIEW_CREATE_EDIT,
        "courses": VIEW_CREATE_EDIT,
    },
    UserRole.COUNSELOR: {
        **DEFAULT_PERMISSIONS,
        "leads": VIEW_CREATE_EDIT,
        "students": VIEW_CREATE_EDIT,
        "enrollments": VIEW_CREATE_EDIT,
    },
    UserRole.STUDENT: {
        **{module: NONE for module in MODULES},
        "dashboard": VIEW,
        "courses": VIEW,
        "content": VIEW,
    },
}


class PermissionDenied(AuthorizationError):
    """Raised when a user lacks required permissions."""

    def __init__(
        self,
        message: str = "Not authorized to perform this action",
        user_id: Optional[UUID] = None,
        role: Optional[UserRole] = None,
        required_permission: Optional[str] = None,
    ) -> None:
        super().__init__(message, required_permission=required_permission)
        self.user_id = user_id
        self.role = role


@dataclass(frozen=True)
class Principal:
    """
    Represents an authenticated user in the service layer.

    Attributes:
        user_id: Unique identifier for the user
        role: User's role
        permissions: Per-user module overrides ({module, canView, ...})
        metadata: Optional additional user context (username, student id)
    """
    user_id: UUID
    role: UserRole
    permissions: Tuple[Mapping[str, Any], ...] = ()
    metadata: dict = field(default_factory=dict)

    def has_any_role(self, roles: Iterable[UserRole]) -> bool:
        return self.role in set(roles)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

def is_allowed(
    role: UserRole,
    module: str,
    action: str,
    overrides: Optional[Iterable[Mapping[str, Any]]] = None,
) -> bool:
    """
    Decide whether a role (with optional per-user overrides) may act on a module.

    Args:
        role: The user's role
        module: One of MODULES
        action: One of view/create/edit/delete
        overrides: Per-user override records

    Returns:
        True if allowed

    Example:
        >>> is_allowed(UserRole.EMPLOYEE, "payments", "create")
        True
        >>> is_allowed(UserRole.EMPLOYEE, "payments", "delete")
        False
    """
    for entry in overrides or ():
        if entry.get("module") == module:
            flag = ACTION_FLAGS.get(action)
            if flag in entry:
                return bool(entry[flag])

    return action in PERMISSION_TABLE.get(role, {}).get(module, NONE)


def authorize(principal: Principal, module: str, action: str) -> None:
    """
    Require a module action for the principal.

    Raises:
        PermissionDenied: If the action is not allowed
    """
    if not is_allowed(principal.role, module, action, principal.permissions):
        raise PermissionDenied(
            f"User role {principal.role.value} is not authorized to {action} {module}",
            user_id=principal.user_id,
            role=principal.role,
            required_permission=f"{module}:{action}",
        )


def require_role(principal: Principal, allowed_roles: Iterable[UserRole]) -> None:
    """
    Ensure principal has one of the allowed roles.

    Raises:
        PermissionDenied: If principal's role is not in allowed set
    """
    allowed = set(allowed_roles)
    if principal.role not in allowed:
        raise PermissionDenied(
            f"User role {principal.role.value} is not authorized to access this route",
            user_id=principal.user_id,
            role=principal.role,
        )


def effective_permissions(role: UserRole, overrides: Optional[Iterable[Mapping[str, Any]]] = None) -> List[Dict[str, Any]]:
    """Expanded permission matrix for display on user profiles."""
    return [
        {
            "module": module,
            **{flag: is_allowed(role, module, action, overrides) for action, flag in ACTION_FLAGS.items()},
        }
        for module in MODULES
    ]
