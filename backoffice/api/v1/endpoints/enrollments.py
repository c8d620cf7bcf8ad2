"""
Enrollment API

Enrollment records with their fee, progress, attendance, assignment and
certificate sub-records.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import EnrollmentStatus, EnrollmentType, UserRole
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.content import AssignmentSubmission, SubmissionGrade
from backoffice.schemas.enrollment import (
    EnrollmentAttendanceMark,
    EnrollmentCreate,
    EnrollmentUpdate,
    ProgressUpdate,
)
from backoffice.services.common.permissions import Principal
from backoffice.services.enrollment import EnrollmentService

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])

MANAGERS = (UserRole.ADMIN, UserRole.TRAINER)


@router.get("/stats")
def enrollment_stats(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.get_stats(start_date, end_date))


@router.get("/student/{student_id}")
def student_enrollments(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.student_enrollments(student_id))


@router.get("/course/{course_id}")
def course_enrollments(
    course_id: UUID,
    principal: Principal = Depends(deps.require_permission("courses", "view")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.course_enrollments(course_id))


@router.get("")
def list_enrollments(
    params: ListParams = Depends(deps.get_list_params),
    enrollment_status: Optional[EnrollmentStatus] = Query(None, alias="status"),
    course_id: Optional[UUID] = Query(None, alias="course"),
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    student_id: Optional[UUID] = Query(None, alias="student"),
    enrollment_type: Optional[EnrollmentType] = Query(None, alias="enrollmentType"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return paginated(
        service.list_enrollments(
            params,
            enrollment_status,
            course_id,
            batch_id,
            student_id,
            enrollment_type,
            start_date,
            end_date,
        )
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_enrollment(
    data: EnrollmentCreate,
    principal: Principal = Depends(deps.require_permission("students", "create")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.create_enrollment(data, principal))


@router.get("/{enrollment_id}")
def get_enrollment(
    enrollment_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.get_enrollment(enrollment_id))


@router.put("/{enrollment_id}")
def update_enrollment(
    enrollment_id: UUID,
    data: EnrollmentUpdate,
    principal: Principal = Depends(deps.require_permission("students", "edit")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.update_enrollment(enrollment_id, data, principal))


@router.delete("/{enrollment_id}")
def delete_enrollment(
    enrollment_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "delete", UserRole.ADMIN)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return message_only(service.delete_enrollment(enrollment_id))


@router.put("/{enrollment_id}/progress")
def update_progress(
    enrollment_id: UUID,
    data: ProgressUpdate,
    principal: Principal = Depends(deps.require_permission("students", "edit", *MANAGERS)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.update_progress(enrollment_id, data, principal))


@router.post("/{enrollment_id}/attendance")
def mark_attendance(
    enrollment_id: UUID,
    data: EnrollmentAttendanceMark,
    principal: Principal = Depends(deps.require_permission("attendance", "create", *MANAGERS)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.mark_attendance(enrollment_id, data, principal))


@router.post("/{enrollment_id}/assignments/{assignment_id}/submit")
def submit_assignment(
    enrollment_id: UUID,
    assignment_id: UUID,
    data: AssignmentSubmission,
    principal: Principal = Depends(deps.require_permission("content", "edit")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.submit_assignment(enrollment_id, assignment_id, data, principal))


@router.put("/{enrollment_id}/assignments/{assignment_id}/grade")
def grade_assignment(
    enrollment_id: UUID,
    assignment_id: UUID,
    data: SubmissionGrade,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.grade_assignment(enrollment_id, assignment_id, data, principal))


@router.post("/{enrollment_id}/certificate")
def generate_certificate(
    enrollment_id: UUID,
    principal: Principal = Depends(deps.require_roles(*MANAGERS)),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    return success(service.generate_certificate(enrollment_id, principal))
