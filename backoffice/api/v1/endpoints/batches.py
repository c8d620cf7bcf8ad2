"""
Batch API

Batch scheduling, roster membership, sessions and bulk session
attendance.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import BatchStatus, UserRole
from backoffice.schemas.batch import (
    BatchCreate,
    BatchUpdate,
    RosterAdd,
    SessionAttendance,
    SessionCreate,
)
from backoffice.schemas.common.pagination import ListParams
from backoffice.services.attendance import AttendanceService
from backoffice.services.batch import BatchService
from backoffice.services.common.permissions import Principal

router = APIRouter(prefix="/batches", tags=["Batches"])

MANAGERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.get("/upcoming")
def upcoming_batches(
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.upcoming())


@router.get("/stats")
def batch_stats(
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.get_stats())


@router.get("")
def list_batches(
    params: ListParams = Depends(deps.get_list_params),
    course_id: Optional[UUID] = Query(None, alias="course"),
    instructor_id: Optional[UUID] = Query(None, alias="instructor"),
    batch_status: Optional[BatchStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: BatchService = Depends(deps.get_batch_service),
):
    return paginated(
        service.list_batches(params, course_id, instructor_id, batch_status, start_date, end_date)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_batch(
    data: BatchCreate,
    principal: Principal = Depends(deps.require_permission("courses", "create", *MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.create_batch(data, principal))


@router.get("/{batch_id}")
def get_batch(
    batch_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.get_batch(batch_id))


@router.put("/{batch_id}")
def update_batch(
    batch_id: UUID,
    data: BatchUpdate,
    principal: Principal = Depends(deps.require_permission("courses", "edit", *MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.update_batch(batch_id, data, principal))


@router.delete("/{batch_id}")
def delete_batch(
    batch_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "delete", UserRole.ADMIN)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return message_only(service.delete_batch(batch_id))


@router.get("/{batch_id}/students")
def batch_students(
    batch_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.list_students(batch_id))


@router.post("/{batch_id}/students", status_code=status.HTTP_201_CREATED)
def add_batch_student(
    batch_id: UUID,
    data: RosterAdd,
    principal: Principal = Depends(
        deps.require_permission(
            "students", "edit", UserRole.ADMIN, UserRole.TRAINER, UserRole.EMPLOYEE
        )
    ),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.add_student(batch_id, data.student_id, principal))


@router.delete("/{batch_id}/students/{student_id}")
def remove_batch_student(
    batch_id: UUID,
    student_id: UUID,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return message_only(service.remove_student(batch_id, student_id, principal))


@router.post("/{batch_id}/sessions", status_code=status.HTTP_201_CREATED)
def add_session(
    batch_id: UUID,
    data: SessionCreate,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: BatchService = Depends(deps.get_batch_service),
):
    return success(service.add_session(batch_id, data, principal))


@router.post("/{batch_id}/sessions/{session_id}/attendance")
def mark_session_attendance(
    batch_id: UUID,
    session_id: UUID,
    data: SessionAttendance,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.mark_session_attendance(batch_id, session_id, data, principal))
