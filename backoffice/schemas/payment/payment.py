"""
Payment schemas: fee payments, verification and refunds.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import Field

from backoffice.models.base.enums import PaymentFor, PaymentMode, PaymentStatus
from backoffice.schemas.common.base import (
    BaseCreateSchema,
    BaseResponseSchema,
    BaseSchema,
    BaseUpdateSchema,
    Money,
)

__all__ = [
    "StudentPaymentCreate",
    "PaymentCreate",
    "PaymentUpdate",
    "RefundRequest",
    "PaymentResponse",
]


class StudentPaymentCreate(BaseCreateSchema):
    """Payment fields when the student comes from the path."""

    enrollment_id: Optional[UUID] = None
    amount: Money = Field(..., gt=0)
    payment_mode: PaymentMode = PaymentMode.CASH
    payment_date: Optional[datetime] = None
    transaction_details: Dict[str, Any] = Field(default_factory=dict)
    installment_number: Optional[int] = Field(default=None, ge=1)
    payment_for: PaymentFor = PaymentFor.TUITION
    remarks: Optional[str] = None


class PaymentCreate(StudentPaymentCreate):
    student_id: UUID


class PaymentUpdate(BaseUpdateSchema):
    amount: Optional[Money] = Field(default=None, gt=0)
    payment_mode: Optional[PaymentMode] = None
    payment_date: Optional[datetime] = None
    status: Optional[PaymentStatus] = None
    transaction_details: Optional[Dict[str, Any]] = None
    installment_number: Optional[int] = Field(default=None, ge=1)
    payment_for: Optional[PaymentFor] = None
    remarks: Optional[str] = None


class RefundRequest(BaseSchema):
    amount: Optional[Money] = Field(default=None, gt=0, description="Defaults to the full amount")
    reason: str = Field(..., min_length=1)
    refund_mode: Optional[PaymentMode] = None
    transaction_id: Optional[str] = Field(default=None, max_length=100)


class PaymentResponse(BaseResponseSchema):
    payment_id: str
    receipt_number: str
    student_id: UUID
    enrollment_id: Optional[UUID] = None
    amount: Money
    payment_mode: PaymentMode
    payment_date: datetime
    status: PaymentStatus
    transaction_details: Dict[str, Any] = Field(default_factory=dict)
    installment_number: Optional[int] = None
    payment_for: PaymentFor
    remarks: Optional[str] = None
    received_by_id: Optional[UUID] = None
    verified_by_id: Optional[UUID] = None
    verification_date: Optional[datetime] = None
    refund_details: Dict[str, Any] = Field(default_factory=dict)
    net_amount: Money = Decimal("0")
