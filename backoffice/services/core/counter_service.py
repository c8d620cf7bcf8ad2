"""
Counter service: human-readable identifier generation.

Handles:
- Atomic per-name sequence increments
- Formatting of student, enrollment, payment, lead and employee ids
- Course codes, batch ids, session ids and receipt numbers
"""

import time
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.logging import get_logger
from backoffice.repositories.core.counter_repository import CounterRepository
from backoffice.services.common.errors import CounterUnavailableError
from backoffice.utils.datetime_utils import utcnow
from backoffice.utils.string_utils import alpha_prefix

logger = get_logger(__name__)

STUDENT_SEQUENCE = "studentId"
ENROLLMENT_SEQUENCE = "enrollmentId"
PAYMENT_SEQUENCE = "paymentId"
LEAD_SEQUENCE = "leadId"
EMPLOYEE_SEQUENCE = "employeeId"


class CounterService:
    """
    Generates monotonically increasing identifiers.

    Increments run inside the caller's transaction, so an identifier is
    only consumed when the entity that uses it is committed.
    """

    def __init__(self, db_session: Session, repository: Optional[CounterRepository] = None):
        self.db = db_session
        self.repository = repository or CounterRepository(db_session)

    def next_value(self, sequence_name: str) -> int:
        """
        Atomically increment a named sequence.

        Args:
            sequence_name: Counter name

        Returns:
            The post-increment value (1 for a new sequence)

        Raises:
            CounterUnavailableError: If the increment cannot be performed
        """
        try:
            value = self.repository.increment(sequence_name)
        except SQLAlchemyError as e:
            logger.error(f"Counter {sequence_name} increment failed: {e}", exc_info=True)
            raise CounterUnavailableError(sequence_name, type(e).__name__) from e

        logger.debug("Sequence advanced", extra={"sequence": sequence_name, "value": value})
        return value

    # ------------------------------------------------------------------
    # Formatted identifiers
    # ------------------------------------------------------------------

    def next_student_id(self) -> str:
        return f"STU{self.next_value(STUDENT_SEQUENCE):06d}"

    def next_enrollment_id(self) -> str:
        return f"ENR{self.next_value(ENROLLMENT_SEQUENCE):08d}"

    def next_payment_id(self) -> str:
        return f"PAY{self.next_value(PAYMENT_SEQUENCE):08d}"

    def next_lead_id(self) -> str:
        return f"LEAD{self.next_value(LEAD_SEQUENCE):06d}"

    def next_employee_id(self) -> str:
        return f"EMP{self.next_value(EMPLOYEE_SEQUENCE):05d}"

    def next_receipt_number(self, on: Optional[datetime] = None) -> str:
        """RCPT + YYMM + 4-digit monthly sequence."""
        on = on or utcnow()
        period = on.strftime("%y%m")
        return f"RCPT{period}{self.next_value(f'receipt_{period}'):04d}"

    def next_course_code(self, course_name: str) -> str:
        prefix = alpha_prefix(course_name)
        return f"{prefix}{self.next_value(f'{prefix}_course'):04d}"

    def next_batch_id(self, course_code: Optional[str]) -> str:
        prefix = (course_code or "")[:3].upper() or "BAT"
        return f"{prefix}-B{self.next_value(f'{prefix}_batch'):03d}"

    def next_session_id(self, on: date) -> str:
        stamp = on.strftime("%Y%m%d")
        return f"SESS-{stamp}-{self.next_value(f'session_{stamp}'):04d}"

    @staticmethod
    def certificate_id(enrollment_code: str) -> str:
        """CERT-{enrollmentId}-{last 6 digits of the epoch millis}."""
        suffix = int(time.time() * 1000) % 1_000_000
        return f"CERT-{enrollment_code}-{suffix:06d}"
