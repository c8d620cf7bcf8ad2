"""
Course API

Course catalogue, category summaries, per-course stats and enrollment
listings, reviews, and batch scheduling under a course.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import CourseStatus, EnrollmentStatus, UserRole
from backoffice.schemas.batch import BatchCreate, CourseBatchCreate
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.course import CourseCreate, CourseUpdate, ReviewCreate
from backoffice.services.batch import BatchService
from backoffice.services.common.permissions import Principal
from backoffice.services.course import CourseService

router = APIRouter(prefix="/courses", tags=["Courses"])

MANAGERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.get("/active")
def active_courses(
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.active_courses())


@router.get("/categories")
def course_categories(
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.categories())


@router.get("")
def list_courses(
    params: ListParams = Depends(deps.get_list_params),
    category: Optional[str] = None,
    course_status: Optional[CourseStatus] = Query(None, alias="status"),
    min_fee: Optional[Decimal] = Query(None, alias="minFee", ge=0),
    max_fee: Optional[Decimal] = Query(None, alias="maxFee", ge=0),
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return paginated(service.list_courses(params, category, course_status, min_fee, max_fee))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreate,
    principal: Principal = Depends(deps.require_permission("courses", "create", *MANAGERS)),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.create_course(data, principal))


@router.get("/{course_id}")
def get_course(
    course_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.get_course(course_id))


@router.put("/{course_id}")
def update_course(
    course_id: UUID,
    data: CourseUpdate,
    principal: Principal = Depends(deps.require_permission("courses", "edit", *MANAGERS)),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.update_course(course_id, data, principal))


@router.delete("/{course_id}")
def delete_course(
    course_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "delete", UserRole.ADMIN)),
    service: CourseService = Depends(deps.get_course_service),
):
    return message_only(service.delete_course(course_id))


@router.get("/{course_id}/stats")
def course_stats(
    course_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.get_stats(course_id))


@router.get("/{course_id}/enrollments")
def course_enrollments(
    course_id: UUID,
    enrollment_status: Optional[EnrollmentStatus] = Query(None, alias="status"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(
        service.course_enrollments(course_id, enrollment_status, batch_id, start_date, end_date)
    )


@router.post("/{course_id}/batches", status_code=status.HTTP_201_CREATED)
def create_course_batch(
    course_id: UUID,
    data: CourseBatchCreate,
    principal: Principal = Depends(deps.require_permission("courses", "create", *MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    batch = BatchCreate(course_id=course_id, **data.model_dump())
    return success(service.create_batch(batch, principal))


@router.post("/{course_id}/reviews", status_code=status.HTTP_201_CREATED)
def add_review(
    course_id: UUID,
    data: ReviewCreate,
    principal: Principal = Depends(deps.require_permission("courses", "edit")),
    service: CourseService = Depends(deps.get_course_service),
):
    return success(service.add_review(course_id, data, principal))
