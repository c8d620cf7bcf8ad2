from .payment import (
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    RefundRequest,
    StudentPaymentCreate,
)

__all__ = [
    "PaymentCreate",
    "PaymentResponse",
    "PaymentUpdate",
    "RefundRequest",
    "StudentPaymentCreate",
]
