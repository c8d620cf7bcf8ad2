"""
FastAPI dependencies: database session, authenticated principal,
permission guards, list parameters and service factories.

Example usage in a router:

    @router.get("/me")
    def read_me(principal: Principal = Depends(deps.get_current_principal)):
        ...
"""

from typing import Callable, Literal, Optional
from uuid import UUID

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backoffice.core.exceptions import AuthenticationFailed, Forbidden
from backoffice.core.logging import get_audit_logger, user_id as user_id_var
from backoffice.core.security import TokenManager
from backoffice.db.session import get_db
from backoffice.models.base.enums import UserRole
from backoffice.models.user.user import User
from backoffice.repositories.student.student_repository import StudentRepository
from backoffice.schemas.common.pagination import ListParams
from backoffice.services.analytics import AnalyticsService
from backoffice.services.attendance import AttendanceService
from backoffice.services.batch import BatchService
from backoffice.services.common.errors import AuthenticationError
from backoffice.services.common.permissions import (
    PermissionDenied,
    Principal,
    authorize,
    require_role,
)
from backoffice.services.content import ContentService
from backoffice.services.course import CourseService
from backoffice.services.enrollment import EnrollmentService
from backoffice.services.lead import LeadService
from backoffice.services.payment import PaymentService
from backoffice.services.student import StudentService
from backoffice.services.user import UserService

audit = get_audit_logger()

bearer_scheme = HTTPBearer(auto_error=False)


# --- Authentication -----------------------------------------------------------

def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the bearer token to an active user and build its Principal."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationFailed()

    try:
        payload = TokenManager.decode_token(credentials.credentials)
        subject = UUID(str(payload["sub"]))
    except AuthenticationError as e:
        raise AuthenticationFailed(e.message) from e
    except ValueError as e:
        raise AuthenticationFailed() from e

    user = db.get(User, subject)
    if user is None:
        raise AuthenticationFailed()
    if not user.is_active:
        audit.warning("inactive account rejected", user_id=str(user.id), status=user.status.value)
        raise AuthenticationFailed("User account is inactive")

    metadata = {"username": user.username, "email": user.email}
    if user.role == UserRole.STUDENT and user.email:
        student = StudentRepository(db).get_by(email=user.email.lower())
        if student is not None:
            metadata["student_id"] = str(student.id)

    user_id_var.set(str(user.id))
    return Principal(
        user_id=user.id,
        role=user.role,
        permissions=tuple(user.permissions or ()),
        metadata=metadata,
    )


# --- Authorization ------------------------------------------------------------

def require_permission(module: str, action: str, *roles: UserRole) -> Callable[..., Principal]:
    """
    Guard a route with a module action from the permission table.

    When roles are given the principal must also hold one of them; the
    role check runs first.
    """

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        try:
            if roles:
                require_role(principal, roles)
            authorize(principal, module, action)
        except PermissionDenied as e:
            audit.warning(
                "permission denied",
                user_id=str(principal.user_id),
                role=principal.role.value,
                permission=f"{module}:{action}",
            )
            raise Forbidden(e.message) from e
        return principal

    return dependency


def require_roles(*roles: UserRole) -> Callable[..., Principal]:
    """Guard a route with an explicit role list."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        try:
            require_role(principal, roles)
        except PermissionDenied as e:
            raise Forbidden(e.message) from e
        return principal

    return dependency


# --- List parameters ------------------------------------------------------------

def get_list_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    search: Optional[str] = Query(None),
) -> ListParams:
    return ListParams(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order, search=search)


# --- Services -----------------------------------------------------------------

def get_student_service(db: Session = Depends(get_db)) -> StudentService:
    return StudentService(db)


def get_course_service(db: Session = Depends(get_db)) -> CourseService:
    return CourseService(db)


def get_batch_service(db: Session = Depends(get_db)) -> BatchService:
    return BatchService(db)


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    return EnrollmentService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


def get_attendance_service(db: Session = Depends(get_db)) -> AttendanceService:
    return AttendanceService(db)


def get_lead_service(db: Session = Depends(get_db)) -> LeadService:
    return LeadService(db)


def get_content_service(db: Session = Depends(get_db)) -> ContentService:
    return ContentService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


__all__ = [
    "get_db",
    "get_current_principal",
    "require_permission",
    "require_roles",
    "get_list_params",
    "get_student_service",
    "get_course_service",
    "get_batch_service",
    "get_enrollment_service",
    "get_payment_service",
    "get_attendance_service",
    "get_lead_service",
    "get_content_service",
    "get_user_service",
    "get_analytics_service",
]
