"""
Unit Tests for shared business rules
Tests for: percentages, status transitions, role permissions, tokens
"""
from datetime import timedelta
from uuid import uuid4

import pytest

from backoffice.core.security import PasswordManager, TokenManager
from backoffice.models.base.enums import (
    EnrollmentStatus,
    PaymentStatus,
    StudentStatus,
    UserRole,
)
from backoffice.services.common.errors import AuthenticationError, InvalidTransitionError
from backoffice.services.common.metrics import (
    attendance_percentage,
    mean,
    percentage,
    round_half_up,
)
from backoffice.services.common.permissions import (
    PermissionDenied,
    Principal,
    authorize,
    effective_permissions,
    is_allowed,
    require_role,
)
from backoffice.services.common.transitions import (
    ENROLLMENT_TRANSITIONS,
    can_transition,
    ensure_enrollment_transition,
    ensure_payment_transition,
    ensure_student_transition,
)


class TestMetrics:
    """Test percentage helpers"""

    def test_attendance_counts_late_as_attended(self):
        """Three of four marks attended gives 75"""
        assert attendance_percentage(["present", "present", "absent", "late"]) == 75

    def test_attendance_with_no_marks_is_zero(self):
        assert attendance_percentage([]) == 0

    def test_percentage_rounds_half_up(self):
        """1/8 = 12.5% rounds to 13, not banker's 12"""
        assert percentage(1, 8) == 13
        assert percentage(1, 3, digits=2) == 33.33

    def test_percentage_of_zero_total(self):
        assert percentage(5, 0) == 0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13

    def test_mean_of_empty_values(self):
        assert mean([]) == 0.0
        assert mean([70, 80, 90]) == 80.0


class TestTransitions:
    """Test status transition tables"""

    def test_same_status_is_noop(self):
        assert ensure_enrollment_transition("active", "active") is False

    def test_allowed_enrollment_change(self):
        assert ensure_enrollment_transition(EnrollmentStatus.ACTIVE, EnrollmentStatus.COMPLETED) is True

    def test_completed_enrollment_is_terminal(self):
        assert ENROLLMENT_TRANSITIONS[EnrollmentStatus.COMPLETED] == frozenset()
        with pytest.raises(InvalidTransitionError) as exc_info:
            ensure_enrollment_transition("completed", "active")

        assert exc_info.value.message == "Cannot change enrollment status from completed to active"

    def test_dropped_student_can_be_reactivated(self):
        assert ensure_student_transition(StudentStatus.DROPPED, StudentStatus.ACTIVE) is True

    def test_alumni_cannot_be_suspended(self):
        with pytest.raises(InvalidTransitionError):
            ensure_student_transition(StudentStatus.ALUMNI, StudentStatus.SUSPENDED)

    def test_refund_only_from_completed(self):
        assert ensure_payment_transition(PaymentStatus.COMPLETED, PaymentStatus.REFUNDED) is True
        with pytest.raises(InvalidTransitionError):
            ensure_payment_transition(PaymentStatus.PENDING, PaymentStatus.REFUNDED)

    def test_can_transition_unknown_status(self):
        assert can_transition({}, PaymentStatus.PENDING, PaymentStatus.COMPLETED) is False


class TestPermissions:
    """Test the role permission table and overrides"""

    def test_admin_can_do_everything(self):
        for module in ("users", "payments", "reports"):
            assert is_allowed(UserRole.ADMIN, module, "delete") is True

    def test_employee_defaults(self):
        assert is_allowed(UserRole.EMPLOYEE, "payments", "create") is True
        assert is_allowed(UserRole.EMPLOYEE, "payments", "delete") is False
        assert is_allowed(UserRole.EMPLOYEE, "users", "view") is False

    def test_trainer_manages_content(self):
        assert is_allowed(UserRole.TRAINER, "content", "edit") is True
        assert is_allowed(UserRole.EMPLOYEE, "content", "edit") is False

    def test_student_sees_only_learning_modules(self):
        assert is_allowed(UserRole.STUDENT, "courses", "view") is True
        assert is_allowed(UserRole.STUDENT, "students", "view") is False

    def test_override_wins_over_role(self):
        overrides = [{"module": "payments", "canDelete": True}]

        assert is_allowed(UserRole.EMPLOYEE, "payments", "delete", overrides) is True
        # Flags missing from the override fall back to the role
        assert is_allowed(UserRole.EMPLOYEE, "payments", "create", overrides) is True

    def test_authorize_raises_with_message(self):
        principal = Principal(user_id=uuid4(), role=UserRole.STUDENT)

        with pytest.raises(PermissionDenied) as exc_info:
            authorize(principal, "payments", "view")

        assert exc_info.value.message == "User role student is not authorized to view payments"

    def test_require_role(self):
        principal = Principal(user_id=uuid4(), role=UserRole.TRAINER)

        require_role(principal, [UserRole.ADMIN, UserRole.TRAINER])
        with pytest.raises(PermissionDenied):
            require_role(principal, [UserRole.ADMIN])

    def test_effective_permissions_lists_every_module(self):
        matrix = effective_permissions(UserRole.COUNSELOR)
        leads = next(row for row in matrix if row["module"] == "leads")

        assert len(matrix) == 10
        assert leads == {
            "module": "leads",
            "canView": True,
            "canCreate": True,
            "canEdit": True,
            "canDelete": False,
        }


class TestSecurity:
    """Test password hashing and token decoding"""

    def test_verify_password(self):
        hashed = PasswordManager.hash_password("testpassword123")

        assert hashed != "testpassword123"
        assert PasswordManager.verify_password("testpassword123", hashed) is True
        assert PasswordManager.verify_password("wrongpassword", hashed) is False

    def test_token_round_trip(self):
        subject = str(uuid4())
        payload = TokenManager.decode_token(TokenManager.create_token(subject, role="admin"))

        assert payload["sub"] == subject
        assert payload["role"] == "admin"

    def test_expired_token(self):
        token = TokenManager.create_token(str(uuid4()), expires_delta=timedelta(seconds=-5))

        with pytest.raises(AuthenticationError) as exc_info:
            TokenManager.decode_token(token)

        assert exc_info.value.message == "Token has expired"

    def test_malformed_token(self):
        with pytest.raises(AuthenticationError):
            TokenManager.decode_token("not-a-token")
