"""
Student API

Student records, fee summaries and the student-scoped shortcuts for
enrolling, recording payments, marking attendance and adding documents.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success
from backoffice.models.base.enums import AdmissionType, StudentStatus
from backoffice.schemas.attendance import StudentAttendanceMark
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.enrollment import EnrollmentCreate, StudentEnrollmentCreate
from backoffice.schemas.payment import StudentPaymentCreate
from backoffice.schemas.student import DocumentCreate, StudentCreate, StudentUpdate
from backoffice.services.attendance import AttendanceService
from backoffice.services.common.permissions import Principal
from backoffice.services.enrollment import EnrollmentService
from backoffice.services.payment import PaymentService
from backoffice.services.student import StudentService

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("")
def list_students(
    params: ListParams = Depends(deps.get_list_params),
    student_status: Optional[StudentStatus] = Query(None, alias="status"),
    admission_type: Optional[AdmissionType] = Query(None, alias="admissionType"),
    branch: Optional[str] = None,
    batch_id: Optional[UUID] = Query(None, alias="batch"),
    course_id: Optional[UUID] = Query(None, alias="course"),
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: StudentService = Depends(deps.get_student_service),
):
    return paginated(
        service.list_students(params, student_status, admission_type, branch, batch_id, course_id)
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_student(
    data: StudentCreate,
    principal: Principal = Depends(deps.require_permission("students", "create")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.create_student(data, principal))


@router.get("/stats")
def student_stats(
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.get_stats())


@router.get("/{student_id}")
def get_student(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.get_student(student_id))


@router.put("/{student_id}")
def update_student(
    student_id: UUID,
    data: StudentUpdate,
    principal: Principal = Depends(deps.require_permission("students", "edit")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.update_student(student_id, data, principal))


@router.delete("/{student_id}")
def delete_student(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "delete")),
    service: StudentService = Depends(deps.get_student_service),
):
    return message_only(service.delete_student(student_id))


@router.post("/{student_id}/enroll", status_code=status.HTTP_201_CREATED)
def enroll_student(
    student_id: UUID,
    data: StudentEnrollmentCreate,
    principal: Principal = Depends(deps.require_permission("students", "edit")),
    service: EnrollmentService = Depends(deps.get_enrollment_service),
):
    enrollment = EnrollmentCreate(student_id=student_id, **data.model_dump())
    return success(service.create_enrollment(enrollment, principal, add_to_student_fees=True))


@router.post("/{student_id}/payment", status_code=status.HTTP_201_CREATED)
def record_payment(
    student_id: UUID,
    data: StudentPaymentCreate,
    principal: Principal = Depends(deps.require_permission("payments", "create")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.record_student_payment(student_id, data, principal))


@router.get("/{student_id}/fee-summary")
def fee_summary(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("students", "view")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.get_fee_summary(student_id))


@router.post("/{student_id}/attendance", status_code=status.HTTP_201_CREATED)
def mark_attendance(
    student_id: UUID,
    data: StudentAttendanceMark,
    principal: Principal = Depends(deps.require_permission("attendance", "create")),
    service: AttendanceService = Depends(deps.get_attendance_service),
):
    return success(service.mark_attendance(data.for_student(student_id), principal))


@router.post("/{student_id}/documents", status_code=status.HTTP_201_CREATED)
def add_document(
    student_id: UUID,
    data: DocumentCreate,
    principal: Principal = Depends(deps.require_permission("students", "edit")),
    service: StudentService = Depends(deps.get_student_service),
):
    return success(service.add_document(student_id, data, principal))
