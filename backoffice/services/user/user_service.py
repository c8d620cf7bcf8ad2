"""
User service: back-office accounts.

Handles:
- User CRUD with unique username/email
- Own profile read/update
- Permission overrides, status and role changes
- Administrative password reset
- User statistics
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice.core.security import hash_password
from backoffice.models.base.enums import UserRole, UserStatus
from backoffice.models.user.user import User
from backoffice.repositories.base.base_repository import Page
from backoffice.repositories.user.user_repository import UserRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.user import (
    PasswordReset,
    PermissionsUpdate,
    ProfileUpdate,
    UserCreate,
    UserUpdate,
)
from backoffice.services.base import BaseService, ServiceResult
from backoffice.services.common.errors import AlreadyExistsError, ValidationError
from backoffice.services.common.permissions import (
    PermissionDenied,
    Principal,
    effective_permissions,
    require_role,
)
from backoffice.services.core.counter_service import CounterService
from backoffice.utils.email import send_email

EMPLOYEE_ID_ROLES = (UserRole.ADMIN, UserRole.EMPLOYEE)


class UserService(BaseService[User, UserRepository]):
    """Back-office user management."""

    resource_name = "User"

    def __init__(self, db_session: Session):
        super().__init__(UserRepository(db_session), db_session)
        self.counters = CounterService(db_session)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_users(
        self,
        params: ListParams,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> ServiceResult[Page[User]]:
        try:
            page = self.repository.list_page(
                filters={"role": role, "status": status},
                search=params.search,
                **params.paging(),
            )
            return ServiceResult.success(page)
        except Exception as e:
            return self._handle_exception(e, "list users")

    def get_user(self, user_id: UUID, actor: Principal) -> ServiceResult[User]:
        """
        Fetch a user. Non-admin users may only read their own account.
        """
        try:
            if not actor.is_admin and actor.user_id != user_id:
                raise PermissionDenied(
                    "Not authorized to view this user",
                    user_id=actor.user_id,
                    role=actor.role,
                )
            return ServiceResult.success(self._get_or_raise(user_id))
        except Exception as e:
            return self._handle_exception(e, "get user", user_id)

    def get_me(self, actor: Principal) -> ServiceResult[User]:
        return self.get_user(actor.user_id, actor)

    def permission_matrix(self, user: User) -> list:
        return effective_permissions(UserRole(user.role), user.permissions)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_user(self, data: UserCreate, actor: Principal) -> ServiceResult[User]:
        """
        Create a user account.

        Args:
            data: Account fields including the plain password
            actor: Acting principal

        Returns:
            ServiceResult containing the new user
        """
        self._logger.info(f"Creating user {data.username}", extra={"role": data.role.value})
        try:
            with self.transaction():
                self._ensure_unique(data.username, str(data.email))

                values = data.model_dump(exclude={"password", "permissions"})
                values["password_hash"] = hash_password(data.password)
                values["permissions"] = [p.model_dump(by_alias=True) for p in data.permissions]
                if data.role in EMPLOYEE_ID_ROLES:
                    values["employee_id"] = self.counters.next_employee_id()

                user = User(**values)
                user.stamp(actor.user_id, created=True)
                self.repository.create(user)

            self._log_operation("create user", user.id, {"username": user.username})
            send_email(
                user.email,
                "welcome",
                {"name": user.first_name or user.username, "username": user.username, "role": data.role.value},
            )
            return ServiceResult.success(user, message="User created successfully")
        except Exception as e:
            return self._handle_exception(e, "create user", data.username)

    def update_user(self, user_id: UUID, data: UserUpdate, actor: Principal) -> ServiceResult[User]:
        try:
            with self.transaction():
                user = self._get_or_raise(user_id)
                changes = data.changes()
                if changes.get("email") and self.repository.exists(
                    exclude_id=user_id, email=str(changes["email"]).lower()
                ):
                    raise AlreadyExistsError("User", "email", changes["email"], "Email already in use")

                self.repository.update(user, changes)
                user.stamp(actor.user_id)

            return ServiceResult.success(user, message="User updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update user", user_id)

    def update_me(self, data: ProfileUpdate, actor: Principal) -> ServiceResult[User]:
        try:
            with self.transaction():
                user = self._get_or_raise(actor.user_id)
                self.repository.update(user, data.changes())
                user.stamp(actor.user_id)
            return ServiceResult.success(user, message="Profile updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update profile", actor.user_id)

    def delete_user(self, user_id: UUID, actor: Principal) -> ServiceResult[bool]:
        if actor.user_id == user_id:
            return ServiceResult.validation_failure("You cannot delete your own account")
        return self.delete(user_id)

    def update_permissions(
        self, user_id: UUID, data: PermissionsUpdate, actor: Principal
    ) -> ServiceResult[User]:
        """Replace the per-user permission overrides."""
        try:
            with self.transaction():
                user = self._get_or_raise(user_id)
                user.permissions = data.as_overrides()
                user.stamp(actor.user_id)

            self._log_operation("update permissions", user_id, {"modules": len(user.permissions)})
            return ServiceResult.success(user, message="Permissions updated successfully")
        except Exception as e:
            return self._handle_exception(e, "update permissions", user_id)

    def update_status(self, user_id: UUID, status: UserStatus, actor: Principal) -> ServiceResult[User]:
        try:
            if actor.user_id == user_id and status != UserStatus.ACTIVE:
                raise ValidationError("You cannot deactivate your own account", field="status")

            with self.transaction():
                user = self._get_or_raise(user_id)
                user.status = status
                user.stamp(actor.user_id)

            self._log_operation("update user status", user_id, {"status": status.value})
            return ServiceResult.success(user, message=f"User status updated to {status.value}")
        except Exception as e:
            return self._handle_exception(e, "update user status", user_id)

    def update_role(self, user_id: UUID, role: UserRole, actor: Principal) -> ServiceResult[User]:
        try:
            if actor.user_id == user_id and actor.is_admin and role != UserRole.ADMIN:
                raise ValidationError("You cannot change your own admin role", field="role")

            with self.transaction():
                user = self._get_or_raise(user_id)
                user.role = role
                if role in EMPLOYEE_ID_ROLES and not user.employee_id:
                    user.employee_id = self.counters.next_employee_id()
                user.stamp(actor.user_id)

            self._log_operation("update user role", user_id, {"role": role.value})
            return ServiceResult.success(user, message=f"User role updated to {role.value}")
        except Exception as e:
            return self._handle_exception(e, "update user role", user_id)

    def reset_password(self, user_id: UUID, data: PasswordReset, actor: Principal) -> ServiceResult[bool]:
        """Set a new password for a user (administrators only)."""
        try:
            require_role(actor, [UserRole.ADMIN])
            with self.transaction():
                user = self._get_or_raise(user_id)
                user.password_hash = hash_password(data.new_password)
                user.stamp(actor.user_id)

            self._log_operation("reset password", user_id)
            return ServiceResult.success(True, message="Password reset successfully")
        except Exception as e:
            return self._handle_exception(e, "reset password", user_id)

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_stats(self) -> ServiceResult[Dict[str, Any]]:
        try:
            by_role = self.repository.count_by("role")
            by_status = self.repository.count_by("status")
            recent = [
                {
                    "id": str(user.id),
                    "username": user.username,
                    "fullName": user.full_name,
                    "role": user.role.value,
                    "createdAt": user.created_at.isoformat() if user.created_at else None,
                }
                for user in self.repository.recent(5)
            ]
            return ServiceResult.success(
                {
                    "total": sum(by_role.values()),
                    "active": by_status.get(UserStatus.ACTIVE.value, 0),
                    "byRole": by_role,
                    "byStatus": by_status,
                    "recentUsers": recent,
                }
            )
        except Exception as e:
            return self._handle_exception(e, "get user stats")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _ensure_unique(self, username: str, email: str) -> None:
        existing = self.repository.find_by_username_or_email(username.strip(), email)
        if existing is None:
            return
        if existing.username == username.strip():
            raise AlreadyExistsError("User", "username", username, "Username already exists")
        raise AlreadyExistsError("User", "email", email, "Email already exists")
