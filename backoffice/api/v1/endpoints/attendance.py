"""
Attendance API

Daily attendance records, per-student and per-batch views, stats and
report generation.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import AttendanceStatus, UserRole
from backoffice.schemas.attendance import (
    AttendanceCreate,
    AttendanceReportRequest,
    AttendanceUpdate,
)
from backoffice.schemas.common.pagination import ListParams
from backoffice.services.attendance import AttendanceService
from backoffice.services.common.permissions import Principal

router = APIRouter(prefix="/attendance", tags=["Attendance"])

MANAGERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.get("/stats")
def attendance_stats(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.get_stats(start_date, end_date, batch_id))


@router.post("/report")
def attendance_report(
    data: AttendanceReportRequest,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.report(data))


@router.get("/student/{student_id}")
def student_attendance(
    student_id: UUID,
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("attendance", "view")),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.student_attendance(student_id, batch_id, start_date, end_date))


@router.get("/batch/{batch_id}")
def batch_attendance(
    batch_id: UUID,
    on: Optional[date] = Query(None, alias="date"),
    session_id: Optional[UUID] = Query(None, alias="session"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("attendance", "view")),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.batch_attendance(batch_id, on, session_id, start_date, end_date))


@router.get("")
def list_attendance(
    params: ListParams = Depends(deps.get_list_params),
    student_id: Optional[UUID] = Query(None, alias="student"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    session_id: Optional[UUID] = Query(None, alias="session"),
    attendance_status: Optional[AttendanceStatus] = Query(None, alias="status"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("attendance", "view")),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return paginated(
        service.list_attendance(
            params, student_id, batch_id, session_id, attendance_status, start_date, end_date
        )
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def mark_attendance(
    data: AttendanceCreate,
    principal: Principal = Depends(deps.require_permission("attendance", "create", *MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.mark_attendance(data, principal))


@router.get("/{attendance_id}")
def get_attendance(
    attendance_id: UUID,
    principal: Principal = Depends(deps.require_permission("attendance", "view")),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.get_attendance(attendance_id))


@router.put("/{attendance_id}")
def update_attendance(
    attendance_id: UUID,
    data: AttendanceUpdate,
    principal: Principal = Depends(deps.require_permission("attendance", "edit", *MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.update_attendance(attendance_id, data, principal))


@router.delete("/{attendance_id}")
def delete_attendance(
    attendance_id: UUID,
    principal: Principal = Depends(deps.require_permission("attendance", "delete", *MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return message_only(service.delete_attendance(attendance_id, principal))


@router.put("/{attendance_id}/approve")
def approve_attendance(
    attendance_id: UUID,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.approve_attendance(attendance_id, principal))
