"""
Allowed status transitions for enrollments, students and payments.

Setting the current status again is always accepted as a no-op.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Mapping, Type

from backoffice.models.base.enums import EnrollmentStatus, PaymentStatus, StudentStatus

from .errors import InvalidTransitionError

ENROLLMENT_TRANSITIONS: Dict[EnrollmentStatus, FrozenSet[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.DROPPED}),
    EnrollmentStatus.ACTIVE: frozenset({
        EnrollmentStatus.COMPLETED,
        EnrollmentStatus.DROPPED,
        EnrollmentStatus.SUSPENDED,
        EnrollmentStatus.TRANSFERRED,
    }),
    EnrollmentStatus.SUSPENDED: frozenset({EnrollmentStatus.ACTIVE, EnrollmentStatus.DROPPED}),
    EnrollmentStatus.COMPLETED: frozenset(),
    EnrollmentStatus.DROPPED: frozenset(),
    EnrollmentStatus.TRANSFERRED: frozenset(),
}

STUDENT_TRANSITIONS: Dict[StudentStatus, FrozenSet[StudentStatus]] = {
    StudentStatus.ACTIVE: frozenset({
        StudentStatus.ALUMNI,
        StudentStatus.DROPPED,
        StudentStatus.SUSPENDED,
        StudentStatus.TRANSFERRED,
        StudentStatus.PROBATION,
    }),
    StudentStatus.PROBATION: frozenset({
        StudentStatus.ACTIVE,
        StudentStatus.SUSPENDED,
        StudentStatus.DROPPED,
    }),
    StudentStatus.SUSPENDED: frozenset({
        StudentStatus.ACTIVE,
        StudentStatus.DROPPED,
        StudentStatus.PROBATION,
    }),
    StudentStatus.DROPPED: frozenset({StudentStatus.ACTIVE}),
    StudentStatus.ALUMNI: frozenset(),
    StudentStatus.TRANSFERRED: frozenset(),
}

PAYMENT_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.PENDING: frozenset({
        PaymentStatus.COMPLETED,
        PaymentStatus.FAILED,
        PaymentStatus.CANCELLED,
    }),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.COMPLETED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.CANCELLED: frozenset(),
}


def can_transition(table: Mapping[Enum, FrozenSet[Enum]], current: Enum, target: Enum) -> bool:
    if current == target:
        return True
    return target in table.get(current, frozenset())


def ensure_transition(
    entity: str,
    table: Mapping[Enum, FrozenSet[Enum]],
    enum_cls: Type[Enum],
    current,
    target,
) -> bool:
    """
    Validate a status change.

    Returns:
        True when the status actually changes, False for a no-op

    Raises:
        InvalidTransitionError: If the change is not allowed
    """
    current = enum_cls(current)
    target = enum_cls(target)
    if not can_transition(table, current, target):
        raise InvalidTransitionError(entity, current.value, target.value)
    return current != target


def ensure_enrollment_transition(current, target) -> bool:
    return ensure_transition("enrollment", ENROLLMENT_TRANSITIONS, EnrollmentStatus, current, target)


def ensure_student_transition(current, target) -> bool:
    return ensure_transition("student", STUDENT_TRANSITIONS, StudentStatus, current, target)


def ensure_payment_transition(current, target) -> bool:
    return ensure_transition("payment", PAYMENT_TRANSITIONS, PaymentStatus, current, target)
