"""
User API

Staff and student accounts: profile self-service, administration of
roles, statuses, permission overrides and passwords.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success, unwrap
from backoffice.models.base.enums import UserRole, UserStatus
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.user import (
    PasswordReset,
    PermissionsUpdate,
    ProfileUpdate,
    RoleUpdate,
    StatusUpdate,
    UserCreate,
    UserUpdate,
)
from backoffice.services.common.permissions import Principal
from backoffice.services.user import UserService

router = APIRouter(prefix="/users", tags=["Users"])

ADMIN = UserRole.ADMIN


@router.get("/me")
def read_me(
    principal: Principal = Depends(deps.get_current_principal),
    service: UserService = Depends(deps.get_user_service),
):
    result = service.get_me(principal)
    return success(result, permissions=service.permission_matrix(unwrap(result)))


@router.put("/me")
def update_me(
    data: ProfileUpdate,
    principal: Principal = Depends(deps.get_current_principal),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.update_me(data, principal))


@router.get("/stats")
def user_stats(
    principal: Principal = Depends(deps.require_roles(ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.get_stats())


@router.get("")
def list_users(
    params: ListParams = Depends(deps.get_list_params),
    role: Optional[UserRole] = None,
    user_status: Optional[UserStatus] = Query(None, alias="status"),
    principal: Principal = Depends(
        deps.require_permission("users", "view", ADMIN, UserRole.EMPLOYEE)
    ),
    service: UserService = Depends(deps.get_user_service),
):
    return paginated(service.list_users(params, role, user_status))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    data: UserCreate,
    principal: Principal = Depends(deps.require_permission("users", "create", ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.create_user(data, principal))


@router.get("/{user_id}")
def get_user(
    user_id: UUID,
    principal: Principal = Depends(
        deps.require_permission("users", "view", ADMIN, UserRole.EMPLOYEE)
    ),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.get_user(user_id, principal))


@router.put("/{user_id}")
def update_user(
    user_id: UUID,
    data: UserUpdate,
    principal: Principal = Depends(deps.require_permission("users", "edit", ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.update_user(user_id, data, principal))


@router.delete("/{user_id}")
def delete_user(
    user_id: UUID,
    principal: Principal = Depends(deps.require_permission("users", "delete", ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return message_only(service.delete_user(user_id, principal))


@router.put("/{user_id}/permissions")
def update_permissions(
    user_id: UUID,
    data: PermissionsUpdate,
    principal: Principal = Depends(deps.require_roles(ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.update_permissions(user_id, data, principal))


@router.put("/{user_id}/status")
def update_status(
    user_id: UUID,
    data: StatusUpdate,
    principal: Principal = Depends(deps.require_roles(ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.update_status(user_id, data.status, principal))


@router.put("/{user_id}/role")
def update_role(
    user_id: UUID,
    data: RoleUpdate,
    principal: Principal = Depends(deps.require_roles(ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return success(service.update_role(user_id, data.role, principal))


@router.put("/{user_id}/reset-password")
def reset_password(
    user_id: UUID,
    data: PasswordReset,
    principal: Principal = Depends(deps.require_roles(ADMIN)),
    service: UserService = Depends(deps.get_user_service),
):
    return message_only(service.reset_password(user_id, data, principal))
