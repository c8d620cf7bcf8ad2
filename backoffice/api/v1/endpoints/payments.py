"""
Payment API

Payment records, verification, refunds and receipts (JSON and PDF).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from backoffice.api import deps
from backoffice.api.responses import message_only, paginated, success, unwrap
from backoffice.models.base.enums import PaymentMode, PaymentStatus, UserRole
from backoffice.schemas.common.pagination import ListParams
from backoffice.schemas.payment import PaymentCreate, PaymentUpdate, RefundRequest
from backoffice.services.common.permissions import Principal
from backoffice.services.payment import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])

CASHIERS = (UserRole.ADMIN, UserRole.EMPLOYEE)


@router.get("/stats")
def payment_stats(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_roles(*CASHIERS)),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.get_stats(start_date, end_date))


@router.get("/student/{student_id}")
def student_payments(
    student_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "view")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.student_payments(student_id))


@router.get("")
def list_payments(
    params: ListParams = Depends(deps.get_list_params),
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    payment_mode: Optional[PaymentMode] = Query(None, alias="paymentMode"),
    student_id: Optional[UUID] = Query(None, alias="student"),
    enrollment_id: Optional[UUID] = Query(None, alias="enrollment"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    principal: Principal = Depends(deps.require_permission("payments", "view")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return paginated(
        service.list_payments(
            params, payment_status, payment_mode, student_id, enrollment_id, start_date, end_date
        )
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(
    data: PaymentCreate,
    principal: Principal = Depends(deps.require_permission("payments", "create")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.create_payment(data, principal))


@router.get("/{payment_id}")
def get_payment(
    payment_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "view")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.get_payment(payment_id))


@router.put("/{payment_id}")
def update_payment(
    payment_id: UUID,
    data: PaymentUpdate,
    principal: Principal = Depends(deps.require_permission("payments", "edit")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.update_payment(payment_id, data, principal))


@router.delete("/{payment_id}")
def delete_payment(
    payment_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "delete", UserRole.ADMIN)),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return message_only(service.delete_payment(payment_id))


@router.get("/{payment_id}/receipt")
def payment_receipt(
    payment_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "view")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.receipt(payment_id))


@router.get("/{payment_id}/receipt/pdf")
def payment_receipt_pdf(
    payment_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "view")),
    service: PaymentService = Depends(deps.get_payment_service),
):
    document = unwrap(service.receipt_pdf(payment_id))
    return Response(
        content=document["content"],
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{document["filename"]}"'},
    )


@router.put("/{payment_id}/verify")
def verify_payment(
    payment_id: UUID,
    principal: Principal = Depends(deps.require_permission("payments", "edit", *CASHIERS)),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.verify_payment(payment_id, principal))


@router.put("/{payment_id}/refund")
def refund_payment(
    payment_id: UUID,
    data: RefundRequest,
    principal: Principal = Depends(deps.require_roles(UserRole.ADMIN)),
    service: PaymentService = Depends(deps.get_payment_service),
):
    return success(service.refund_payment(payment_id, data, principal))
